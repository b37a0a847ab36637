from __future__ import annotations

import ipaddress
import re

from ..config.models import DeploymentConfig
from ..constants import ARCHITECTURES, MIN_DISK_SIZE_GB
from .errors import InvalidEnum, InvalidFormat, MissingRequiredField, OutOfRange


# config attribute -> environment key, in the order they are reported
REQUIRED_FIELDS = {
    "vpc_id": "VPC_ID",
    "ami_id": "GITLAB_AMI_ID",
    "hosted_zone_id": "HOSTED_ZONE_ID",
    "smtp_address": "SMTP_ADDRESS",
    "smtp_port": "SMTP_PORT",
    "smtp_user_name": "SMTP_USER_NAME",
    "smtp_password": "SMTP_PASSWORD",
    "smtp_domain": "SMTP_DOMAIN",
    "email_from": "EMAIL_FROM",
    "letsencrypt_email": "LETSENCRYPT_EMAIL",
}

_HOST_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_IPV4_CIDR = re.compile(r"^(\d{1,3}\.){3}\d{1,3}/\d{1,2}$")


def parse_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def split_cidrs(raw: str) -> list[str]:
    return [cidr.strip() for cidr in raw.split(",")]


def _is_hostname(name: str) -> bool:
    if len(name) > 253:
        return False
    return all(_HOST_LABEL.match(label) for label in name.split("."))


def _check_cidrs(field: str, raw: str | None) -> None:
    if raw is None:
        return
    for cidr in split_cidrs(raw):
        # dotted quad with an explicit integer prefix; no bare addresses or netmasks
        if not _IPV4_CIDR.match(cidr):
            raise InvalidFormat(field, cidr, "a comma-separated list of IPv4 CIDR blocks")
        try:
            ipaddress.IPv4Network(cidr, strict=False)
        except ValueError:
            raise InvalidFormat(field, cidr, "a comma-separated list of IPv4 CIDR blocks") from None


def validate(config: DeploymentConfig) -> None:
    """
    Check a config before planning.

    Categories are checked in order (missing, enum, range, format) and the
    first failing one is raised. Missing fields are all reported at once.
    """
    missing = [env for attr, env in REQUIRED_FIELDS.items() if not getattr(config, attr)]
    if missing:
        raise MissingRequiredField(missing)

    if config.architecture not in ARCHITECTURES:
        raise InvalidEnum("ARCHITECTURE", config.architecture, ARCHITECTURES)

    disk = parse_int(config.disk_size_gb)
    if disk is None or disk < MIN_DISK_SIZE_GB:
        raise OutOfRange("DISK_SIZE_GB", config.disk_size_gb, f"a number and at least {MIN_DISK_SIZE_GB} GB")

    port = parse_int(config.smtp_port)
    if port is None or not 1 <= port <= 65535:
        raise OutOfRange("SMTP_PORT", config.smtp_port, "a port number between 1 and 65535")

    _check_cidrs("ALLOWED_HTTPS_CIDR", config.allowed_https_cidr)
    _check_cidrs("ALLOWED_REGISTRY_CIDR", config.allowed_registry_cidr)

    if not _is_hostname(config.domain_name):
        raise InvalidFormat("DOMAIN_NAME", config.domain_name, "a valid host name")
