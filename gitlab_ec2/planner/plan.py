from __future__ import annotations

import logging

from ..components.bootstrap import BootstrapScript, GitLabSettings
from ..config.models import DeploymentConfig
from ..constants import (
    ANY_IPV4,
    AWS_CLI_URLS,
    DEFAULT_EMAIL_DISPLAY_NAME,
    DNS_TTL_SECONDS,
    HTTP_PORT,
    HTTPS_PORT,
    INSTANCE_MANAGED_POLICIES,
    KIND_DNS_RECORD,
    KIND_EIP_ASSOCIATION,
    KIND_ELASTIC_IP,
    KIND_INSTANCE,
    KIND_INSTANCE_PROFILE,
    KIND_ROLE,
    KIND_SCHEDULE,
    KIND_SECRET,
    KIND_SECURITY_GROUP,
    PASSWORD_EXCLUDED_CHARACTERS,
    PASSWORD_LENGTH,
    REGISTRY_PORT,
    ROOT_USERNAME,
    SCHEDULE_DESCRIPTION,
    SCHEDULE_MAX_EVENT_AGE_SECONDS,
    SCHEDULE_MAX_RETRY_ATTEMPTS,
    SCHEDULE_TIMEZONE,
    START_INSTANCES_TARGET,
    START_SCHEDULE_EXPRESSION,
    STOP_INSTANCES_TARGET,
    STOP_SCHEDULE_EXPRESSION,
)
from .models import IngressRule, Ref, ResourceDescriptor, ResourcePlan
from .validate import parse_int, split_cidrs, validate

_logger = logging.getLogger(__name__)

SECRET = "gitlab-root-password"
SECURITY_GROUP = "gitlab-security-group"
INSTANCE_ROLE = "gitlab-role"
INSTANCE_PROFILE = "gitlab-instance-profile"
ELASTIC_IP = "gitlab-elastic-ip"
INSTANCE = "gitlab-instance"
EIP_ASSOCIATION = "gitlab-eip-association"
DNS_RECORD = "gitlab-a-record"
SCHEDULER_ROLE = "scheduler-ec2-role"
START_SCHEDULE = "gitlab-start-schedule"
STOP_SCHEDULE = "gitlab-stop-schedule"


def cidr_list(raw: str | None) -> list[str]:
    """Comma-separated CIDRs, trimmed, in order, duplicates kept. Absent means anywhere."""
    if raw is None:
        return [ANY_IPV4]
    return split_cidrs(raw)


def split_domain(domain_name: str) -> tuple[str, str]:
    """
    Split 'gitlab.example.com' into ('gitlab', 'example.com').

    A root domain such as 'example.com' is split the same way, which yields a
    wrong zone ('com'); callers are warned but not stopped.
    """
    leaf, _, zone = domain_name.partition(".")
    return leaf, zone


def image_map(region: str, ami_id: str) -> dict[str, str]:
    return {region: ami_id}


def ingress_rules(https_cidrs: list[str], registry_cidrs: list[str]) -> list[IngressRule]:
    rules = [IngressRule(HTTPS_PORT, cidr, f"Allow HTTPS access from {cidr}") for cidr in https_cidrs]
    rules += [
        IngressRule(REGISTRY_PORT, cidr, f"Allow GitLab Container Registry access from {cidr}")
        for cidr in registry_cidrs
    ]
    rules.append(IngressRule(HTTP_PORT, ANY_IPV4, "Allow HTTP access for Lets Encrypt challenges"))
    return rules


def _schedule(
    name: str,
    *,
    schedule_name: str,
    expression: str,
    target: str,
    description: str,
) -> ResourceDescriptor:
    return ResourceDescriptor(
        KIND_SCHEDULE,
        name,
        {
            "schedule_name": schedule_name,
            "description": description,
            "schedule_expression": expression,
            "schedule_expression_timezone": SCHEDULE_TIMEZONE,
            "flexible_time_window": "OFF",
            "state": "ENABLED",
            "target_arn": target,
            "role_arn": Ref(SCHEDULER_ROLE, "arn"),
            "instance_ids": [Ref(INSTANCE, "id")],
            "retry_policy": {
                "maximum_event_age_in_seconds": SCHEDULE_MAX_EVENT_AGE_SECONDS,
                "maximum_retry_attempts": SCHEDULE_MAX_RETRY_ATTEMPTS,
            },
        },
    )


def plan(config: DeploymentConfig, *, region: str) -> ResourcePlan:
    """
    Build the resource plan for one GitLab instance.

    Raises ValidationError (and builds nothing) if the config is unusable.
    """
    validate(config)

    disk_size_gb = parse_int(config.disk_size_gb)
    smtp_port = parse_int(config.smtp_port)
    https_cidrs = cidr_list(config.allowed_https_cidr)
    registry_cidrs = cidr_list(config.allowed_registry_cidr)

    record_name, zone_name = split_domain(config.domain_name)
    if zone_name.count(".") < 1:
        _logger.warning(
            "DOMAIN_NAME %r has no subdomain; record %r in zone %r is probably not what you want",
            config.domain_name, record_name, zone_name,
        )

    email_from = config.email_from
    settings = GitLabSettings(
        domain_name=config.domain_name,
        time_zone=config.time_zone,
        smtp_address=config.smtp_address,
        smtp_port=smtp_port,
        smtp_user_name=config.smtp_user_name,
        smtp_password=config.smtp_password,
        smtp_domain=config.smtp_domain,
        email_from=email_from,
        email_display_name=config.email_display_name or DEFAULT_EMAIL_DISPLAY_NAME,
        email_reply_to=config.email_reply_to or email_from,
        letsencrypt_email=config.letsencrypt_email,
    )
    script = BootstrapScript(
        settings=settings,
        secret=Ref(SECRET, "arn"),
        region=region,
        aws_cli_url=AWS_CLI_URLS[config.architecture],
    )

    resources = (
        ResourceDescriptor(
            KIND_SECRET,
            SECRET,
            {
                "description": "GitLab root user password",
                "username": ROOT_USERNAME,
                "length": PASSWORD_LENGTH,
                "excluded_characters": PASSWORD_EXCLUDED_CHARACTERS,
            },
        ),
        ResourceDescriptor(
            KIND_SECURITY_GROUP,
            SECURITY_GROUP,
            {
                "vpc_id": config.vpc_id,
                "description": "Security group for GitLab EC2 instance",
                "ingress": ingress_rules(https_cidrs, registry_cidrs),
                "allow_all_outbound": True,
            },
        ),
        ResourceDescriptor(
            KIND_ROLE,
            INSTANCE_ROLE,
            {
                "service": "ec2.amazonaws.com",
                "managed_policies": list(INSTANCE_MANAGED_POLICIES),
                "statements": [
                    {
                        "actions": ["secretsmanager:GetSecretValue", "secretsmanager:DescribeSecret"],
                        "resources": [Ref(SECRET, "arn")],
                    },
                ],
            },
        ),
        ResourceDescriptor(KIND_INSTANCE_PROFILE, INSTANCE_PROFILE, {"role": Ref(INSTANCE_ROLE, "name")}),
        ResourceDescriptor(KIND_ELASTIC_IP, ELASTIC_IP, {"domain": "vpc", "tags": {"Name": "GitLab-EIP"}}),
        ResourceDescriptor(
            KIND_INSTANCE,
            INSTANCE,
            {
                "instance_type": config.instance_type,
                "images": image_map(region, config.ami_id),
                "vpc_id": config.vpc_id,
                "subnet_id": config.subnet_id,
                "security_groups": [Ref(SECURITY_GROUP, "id")],
                "instance_profile": Ref(INSTANCE_PROFILE, "name"),
                "user_data": script,
                "root_volume": {
                    "size_gb": disk_size_gb,
                    "volume_type": "gp3",
                    "encrypted": True,
                },
            },
        ),
        ResourceDescriptor(
            KIND_EIP_ASSOCIATION,
            EIP_ASSOCIATION,
            {
                "allocation_id": Ref(ELASTIC_IP, "allocation_id"),
                "instance_id": Ref(INSTANCE, "id"),
            },
        ),
        ResourceDescriptor(
            KIND_DNS_RECORD,
            DNS_RECORD,
            {
                "zone_id": config.hosted_zone_id,
                "zone_name": zone_name,
                "name": record_name,
                "type": "A",
                "ttl": DNS_TTL_SECONDS,
                "records": [Ref(ELASTIC_IP, "public_ip")],
            },
        ),
        ResourceDescriptor(
            KIND_ROLE,
            SCHEDULER_ROLE,
            {
                "service": "scheduler.amazonaws.com",
                "managed_policies": [],
                "statements": [
                    {
                        "actions": ["ec2:StartInstances", "ec2:StopInstances"],
                        "resources": [Ref(INSTANCE, "arn")],
                    },
                ],
            },
        ),
        _schedule(
            START_SCHEDULE,
            schedule_name="GitLabStartInstanceSchedule",
            expression=START_SCHEDULE_EXPRESSION,
            target=START_INSTANCES_TARGET,
            description="Start GitLab instance at 8:00 AM JST on weekdays (23:00 UTC previous day, SUN-THU)",
        ),
        _schedule(
            STOP_SCHEDULE,
            schedule_name="GitLabStopInstanceSchedule",
            expression=STOP_SCHEDULE_EXPRESSION,
            target=STOP_INSTANCES_TARGET,
            description="Stop GitLab instance at 10:00 PM JST on weekdays (13:00 UTC, MON-FRI)",
        ),
    )

    outputs = {
        "GitLabURL": f"https://{config.domain_name}",
        "GitLabRegistryURL": f"https://{config.domain_name}:{REGISTRY_PORT}",
        "ElasticIP": Ref(ELASTIC_IP, "public_ip"),
        "RootPasswordSecretArn": Ref(SECRET, "arn"),
        "InstanceId": Ref(INSTANCE, "id"),
        "InstanceSchedule": SCHEDULE_DESCRIPTION,
    }

    _logger.debug("Planned %d resources for %s in %s", len(resources), config.domain_name, region)
    return ResourcePlan(resources=resources, outputs=outputs)
