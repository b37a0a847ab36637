# gitlab_ec2/constants.py

# Defaults for optional environment values
DEFAULT_REGION = "ap-northeast-1"
DEFAULT_INSTANCE_TYPE = "t3.medium"
DEFAULT_ARCHITECTURE = "x86_64"
DEFAULT_DISK_SIZE_GB = "50"
DEFAULT_DOMAIN_NAME = "gitlab.example.com"
DEFAULT_EMAIL_DISPLAY_NAME = "GitLab"
DEFAULT_TIME_ZONE = "Asia/Tokyo"

ARCHITECTURES = ("x86_64", "arm64")
MIN_DISK_SIZE_GB = 20

# Networking
ANY_IPV4 = "0.0.0.0/0"
HTTP_PORT = 80
HTTPS_PORT = 443
REGISTRY_PORT = 5050
DNS_TTL_SECONDS = 300

# Root password secret
ROOT_USERNAME = "root"
PASSWORD_LENGTH = 32
PASSWORD_EXCLUDED_CHARACTERS = " %+~`#$&*()|[]{}:;<>?!'/@\"\\"

# AWS CLI v2 bundle per architecture
AWS_CLI_URLS = {
    "x86_64": "https://awscli.amazonaws.com/awscli-exe-linux-x86_64.zip",
    "arm64": "https://awscli.amazonaws.com/awscli-exe-linux-aarch64.zip",
}

# Post-bootstrap health poll (curl --retry / --retry-delay)
HEALTH_CHECK_URL = "http://localhost/-/health"
HEALTH_CHECK_RETRIES = 10
HEALTH_CHECK_DELAY_SECONDS = 30

INSTANCE_MANAGED_POLICIES = [
    "CloudWatchAgentServerPolicy",
    "AmazonSSMManagedInstanceCore",
]

# Weekday schedule: 08:00 and 22:00 JST, written in UTC
START_SCHEDULE_EXPRESSION = "cron(0 23 ? * SUN-THU *)"
STOP_SCHEDULE_EXPRESSION = "cron(0 13 ? * MON-FRI *)"
SCHEDULE_TIMEZONE = "UTC"
SCHEDULE_MAX_EVENT_AGE_SECONDS = 300
SCHEDULE_MAX_RETRY_ATTEMPTS = 3
SCHEDULE_DESCRIPTION = (
    "Instance will automatically start at 8:00 AM and stop at 10:00 PM JST (Monday-Friday)"
)
START_INSTANCES_TARGET = "arn:aws:scheduler:::aws-sdk:ec2:startInstances"
STOP_INSTANCES_TARGET = "arn:aws:scheduler:::aws-sdk:ec2:stopInstances"

# Descriptor kinds understood by providers/aws.py
KIND_SECRET = "secret"
KIND_SECURITY_GROUP = "security-group"
KIND_ROLE = "iam-role"
KIND_INSTANCE_PROFILE = "instance-profile"
KIND_ELASTIC_IP = "elastic-ip"
KIND_INSTANCE = "instance"
KIND_EIP_ASSOCIATION = "eip-association"
KIND_DNS_RECORD = "dns-record"
KIND_SCHEDULE = "schedule"
