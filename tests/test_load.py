from gitlab_ec2.config.load import load_config, load_region


def test_defaults_for_optional_values():
    cfg = load_config({})
    assert cfg.instance_type == "t3.medium"
    assert cfg.architecture == "x86_64"
    assert cfg.disk_size_gb == "50"
    assert cfg.domain_name == "gitlab.example.com"
    assert cfg.time_zone == "Asia/Tokyo"
    assert cfg.allowed_https_cidr is None
    assert cfg.vpc_id is None


def test_blank_values_count_as_missing(env):
    env["VPC_ID"] = "   "
    env["EMAIL_REPLY_TO"] = ""
    env["INSTANCE_TYPE"] = ""
    cfg = load_config(env)
    assert cfg.vpc_id is None
    assert cfg.email_reply_to is None
    assert cfg.instance_type == "t3.medium"


def test_values_are_read_as_supplied(env):
    env["DISK_SIZE_GB"] = "not-a-number"
    env["ARCHITECTURE"] = "arm64"
    cfg = load_config(env)
    assert cfg.disk_size_gb == "not-a-number"
    assert cfg.architecture == "arm64"
    assert cfg.allowed_https_cidr == "10.0.0.0/8,172.16.0.0/12"


def test_reads_process_environment_by_default(monkeypatch):
    monkeypatch.setenv("VPC_ID", "vpc-from-env")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    assert load_config().vpc_id == "vpc-from-env"
    assert load_region() == "us-east-1"


def test_region_default():
    assert load_region({}) == "ap-northeast-1"
