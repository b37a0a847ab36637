import os
from typing import Mapping

from .models import DeploymentConfig
from ..constants import (
    DEFAULT_ARCHITECTURE,
    DEFAULT_DISK_SIZE_GB,
    DEFAULT_DOMAIN_NAME,
    DEFAULT_INSTANCE_TYPE,
    DEFAULT_REGION,
    DEFAULT_TIME_ZONE,
)


def _env(environ: Mapping[str, str], name: str) -> str | None:
    v = environ.get(name, "").strip()
    return v or None


def load_config(environ: Mapping[str, str] | None = None) -> DeploymentConfig:
    """
    Reads the deployment settings from environment variables.

    Blank values count as missing. Nothing is validated here; plan() reports
    missing or malformed values as ValidationError.

    Recognized keys:
      - VPC_ID, SUBNET_ID, GITLAB_AMI_ID, INSTANCE_TYPE, ARCHITECTURE, DISK_SIZE_GB
      - ALLOWED_HTTPS_CIDR, ALLOWED_REGISTRY_CIDR (comma-separated)
      - HOSTED_ZONE_ID, DOMAIN_NAME
      - SMTP_ADDRESS, SMTP_PORT, SMTP_USER_NAME, SMTP_PASSWORD, SMTP_DOMAIN
      - EMAIL_FROM, EMAIL_DISPLAY_NAME, EMAIL_REPLY_TO, LETSENCRYPT_EMAIL
      - GITLAB_TIME_ZONE
    """
    env = os.environ if environ is None else environ

    return DeploymentConfig(
        vpc_id=_env(env, "VPC_ID"),
        ami_id=_env(env, "GITLAB_AMI_ID"),
        hosted_zone_id=_env(env, "HOSTED_ZONE_ID"),
        smtp_address=_env(env, "SMTP_ADDRESS"),
        smtp_port=_env(env, "SMTP_PORT"),
        smtp_user_name=_env(env, "SMTP_USER_NAME"),
        smtp_password=_env(env, "SMTP_PASSWORD"),
        smtp_domain=_env(env, "SMTP_DOMAIN"),
        email_from=_env(env, "EMAIL_FROM"),
        letsencrypt_email=_env(env, "LETSENCRYPT_EMAIL"),
        instance_type=_env(env, "INSTANCE_TYPE") or DEFAULT_INSTANCE_TYPE,
        architecture=_env(env, "ARCHITECTURE") or DEFAULT_ARCHITECTURE,
        disk_size_gb=_env(env, "DISK_SIZE_GB") or DEFAULT_DISK_SIZE_GB,
        domain_name=_env(env, "DOMAIN_NAME") or DEFAULT_DOMAIN_NAME,
        allowed_https_cidr=_env(env, "ALLOWED_HTTPS_CIDR"),
        allowed_registry_cidr=_env(env, "ALLOWED_REGISTRY_CIDR"),
        email_display_name=_env(env, "EMAIL_DISPLAY_NAME"),
        email_reply_to=_env(env, "EMAIL_REPLY_TO"),
        subnet_id=_env(env, "SUBNET_ID"),
        time_zone=_env(env, "GITLAB_TIME_ZONE") or DEFAULT_TIME_ZONE,
    )


def load_region(environ: Mapping[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    return _env(env, "AWS_REGION") or DEFAULT_REGION
