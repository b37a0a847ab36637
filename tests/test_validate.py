import dataclasses

import pytest

from gitlab_ec2.planner.errors import (
    InvalidEnum,
    InvalidFormat,
    MissingRequiredField,
    OutOfRange,
    ValidationError,
)
from gitlab_ec2.planner.plan import plan
from gitlab_ec2.planner.validate import REQUIRED_FIELDS, validate

from gitlab_ec2.constants import DEFAULT_REGION as REGION


@pytest.mark.parametrize("attr", list(REQUIRED_FIELDS))
def test_each_required_field(config, attr):
    broken = dataclasses.replace(config, **{attr: None})
    with pytest.raises(MissingRequiredField) as exc:
        plan(broken, region=REGION)
    assert exc.value.fields == (REQUIRED_FIELDS[attr],)


def test_all_missing_fields_are_reported(config):
    broken = dataclasses.replace(config, vpc_id=None, smtp_password="", letsencrypt_email=None)
    with pytest.raises(MissingRequiredField) as exc:
        validate(broken)
    assert exc.value.fields == ("VPC_ID", "SMTP_PASSWORD", "LETSENCRYPT_EMAIL")
    assert "VPC_ID" in str(exc.value)


@pytest.mark.parametrize("arch", ["amd64", "x86-64", "ARM64", ""])
def test_architecture_enum(config, arch):
    with pytest.raises(InvalidEnum):
        plan(dataclasses.replace(config, architecture=arch), region=REGION)


@pytest.mark.parametrize("disk", ["19", "0", "-5", "abc", "", "20.5"])
def test_disk_size_out_of_range(config, disk):
    with pytest.raises(OutOfRange) as exc:
        plan(dataclasses.replace(config, disk_size_gb=disk), region=REGION)
    assert exc.value.fields == ("DISK_SIZE_GB",)


@pytest.mark.parametrize("disk", ["20", " 64 ", 100])
def test_disk_size_accepted(config, disk):
    validate(dataclasses.replace(config, disk_size_gb=disk))


@pytest.mark.parametrize("port", ["smtp", "0", "70000", "587; rm -rf /"])
def test_smtp_port(config, port):
    with pytest.raises(OutOfRange):
        validate(dataclasses.replace(config, smtp_port=port))


@pytest.mark.parametrize(
    "field, value",
    [
        ("allowed_https_cidr", "10.0.0.0/8,,172.16.0.0/12"),
        ("allowed_https_cidr", "not-a-cidr"),
        ("allowed_registry_cidr", "10.0.0.0/33"),
        ("allowed_registry_cidr", "2001:db8::/32"),
        ("allowed_https_cidr", "10.0.0.1"),
        ("allowed_https_cidr", "10.0.0.0/255.0.0.0"),
        ("allowed_registry_cidr", "10.0.0.0/"),
        ("allowed_registry_cidr", "256.0.0.0/8"),
        ("domain_name", "gitlab example.com"),
        ("domain_name", 'gitlab.example.com"; touch /tmp/x'),
    ],
)
def test_invalid_format(config, field, value):
    with pytest.raises(InvalidFormat):
        validate(dataclasses.replace(config, **{field: value}))


def test_missing_is_reported_before_other_problems(config):
    broken = dataclasses.replace(config, vpc_id=None, architecture="sparc", disk_size_gb="1")
    with pytest.raises(MissingRequiredField):
        validate(broken)


def test_errors_share_a_base(config):
    with pytest.raises(ValidationError):
        validate(dataclasses.replace(config, architecture="sparc"))
    assert issubclass(ValidationError, ValueError)


@pytest.mark.parametrize("cidrs", ["0.0.0.0/0", "10.1.2.3/8", " 10.0.0.0/8 , 192.168.1.0/24"])
def test_cidrs_with_explicit_prefix_are_accepted(config, cidrs):
    validate(dataclasses.replace(config, allowed_https_cidr=cidrs, allowed_registry_cidr=cidrs))
