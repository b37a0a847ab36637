from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..constants import (
    DEFAULT_ARCHITECTURE,
    DEFAULT_DISK_SIZE_GB,
    DEFAULT_DOMAIN_NAME,
    DEFAULT_INSTANCE_TYPE,
    DEFAULT_TIME_ZONE,
)


Architecture = Literal["x86_64", "arm64"]


@dataclass(frozen=True)
class DeploymentConfig:
    """
    Raw deployment settings, read once at the boundary by load.py.

    Notes:
      - Values are kept as supplied; the planner validates them before use.
      - Required values that were not supplied are None.
      - disk_size_gb and smtp_port stay strings so that bad input reaches
        validation instead of failing while the record is built.
    """
    vpc_id: str | None
    ami_id: str | None
    hosted_zone_id: str | None

    smtp_address: str | None
    smtp_port: str | None
    smtp_user_name: str | None
    smtp_password: str | None
    smtp_domain: str | None

    email_from: str | None
    letsencrypt_email: str | None

    instance_type: str = DEFAULT_INSTANCE_TYPE
    architecture: str = DEFAULT_ARCHITECTURE
    disk_size_gb: str | int = DEFAULT_DISK_SIZE_GB
    domain_name: str = DEFAULT_DOMAIN_NAME

    allowed_https_cidr: str | None = None
    allowed_registry_cidr: str | None = None

    email_display_name: str | None = None
    email_reply_to: str | None = None

    subnet_id: str | None = None
    time_zone: str = DEFAULT_TIME_ZONE
