import pytest

from gitlab_ec2.config.load import load_config


@pytest.fixture
def env() -> dict[str, str]:
    return {
        "VPC_ID": "vpc-12345678",
        "GITLAB_AMI_ID": "ami-12345678",
        "HOSTED_ZONE_ID": "Z1234567890",
        "DOMAIN_NAME": "gitlab.example.com",
        "ALLOWED_HTTPS_CIDR": "10.0.0.0/8,172.16.0.0/12",
        "ALLOWED_REGISTRY_CIDR": "192.168.0.0/16,10.0.0.0/8",
        "SMTP_ADDRESS": "email-smtp.us-west-2.amazonaws.com",
        "SMTP_PORT": "587",
        "SMTP_USER_NAME": "test-smtp-user",
        "SMTP_PASSWORD": "test-smtp-password",
        "SMTP_DOMAIN": "example.com",
        "EMAIL_FROM": "noreply@example.com",
        "EMAIL_DISPLAY_NAME": "GitLab Test",
        "EMAIL_REPLY_TO": "reply@example.com",
        "LETSENCRYPT_EMAIL": "admin@example.com",
    }


@pytest.fixture
def config(env):
    return load_config(env)
