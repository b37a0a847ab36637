import dataclasses

import pytest

from gitlab_ec2.components.bootstrap import GitLabSettings, ruby_string
from gitlab_ec2.planner.plan import INSTANCE, plan

from gitlab_ec2.constants import DEFAULT_REGION as REGION

SECRET_ARN = "arn:aws:secretsmanager:ap-northeast-1:123456789012:secret:GitLabRootPassword-abc"


def render(config) -> str:
    script = plan(config, region=REGION).get(INSTANCE).properties["user_data"]
    return script.render(SECRET_ARN)


def test_ruby_string():
    assert ruby_string("plain") == '"plain"'
    assert ruby_string('a"b') == '"a\\"b"'
    assert ruby_string("#{`id`}") == '"\\#{`id`}"'
    assert ruby_string("back\\slash") == '"back\\\\slash"'
    assert ruby_string("two\nlines") == '"two\\nlines"'


def test_script_order(config):
    text = render(config)
    steps = [
        "apt-get install -y jq unzip curl",
        "aws secretsmanager get-secret-value",
        "cat > /etc/gitlab/gitlab.rb <<'GITLAB_RB'",
        "gitlab-ctl reconfigure",
        'gitlab-rake "gitlab:password:reset[root]"',
        "--retry 10 --retry-delay 30",
    ]
    positions = [text.index(s) for s in steps]
    assert positions == sorted(positions)
    assert text.startswith("#!/bin/bash\n")


def test_secret_fetched_by_handle(config):
    text = render(config)
    assert f"--secret-id {SECRET_ARN} --region {REGION}" in text
    assert "ROOT_PASSWORD=$(echo \"$SECRET_VALUE\" | jq -r .password)" in text


def test_gitlab_rb_values(config):
    text = render(config)
    assert 'external_url "https://gitlab.example.com"' in text
    assert 'registry_external_url "https://gitlab.example.com:5050"' in text
    assert "gitlab_rails['smtp_port'] = 587" in text
    assert "gitlab_rails['smtp_password'] = \"test-smtp-password\"" in text
    assert "gitlab_rails['gitlab_email_display_name'] = \"GitLab Test\"" in text
    assert "gitlab_rails['gitlab_email_reply_to'] = \"reply@example.com\"" in text
    assert "letsencrypt['contact_emails'] = [\"admin@example.com\"]" in text
    assert "gitlab_rails['time_zone'] = \"Asia/Tokyo\"" in text


def test_health_check_failure_is_not_fatal(config):
    lines = render(config).splitlines()
    assert lines[-1] == "exit 0"
    assert any(line.strip().startswith('echo "WARNING: GitLab may still be starting') for line in lines)


def test_aws_cli_follows_architecture(config):
    assert "awscli-exe-linux-x86_64.zip" in render(config)
    assert "awscli-exe-linux-aarch64.zip" in render(dataclasses.replace(config, architecture="arm64"))


def test_hostile_values_stay_inside_the_literal(config):
    password = 'p"w$(reboot)#{x}\nGITLAB_RB\nrm -rf /'
    text = render(dataclasses.replace(config, smtp_password=password))
    lines = text.splitlines()
    # heredoc terminator appears once, on its own line
    assert lines.count("GITLAB_RB") == 1
    expected = "gitlab_rails['smtp_password'] = " + ruby_string(password)
    assert expected in lines
    assert "rm -rf /" not in [line.strip() for line in lines]


def test_generated_secret_is_never_rendered(config):
    text = render(config)
    assert "password\":" not in text
    assert "$ROOT_PASSWORD\n$ROOT_PASSWORD\nEOF" in text


def test_settings_require_typed_values():
    with pytest.raises(TypeError):
        GitLabSettings(
            domain_name="gitlab.example.com",
            time_zone="UTC",
            smtp_address="smtp.example.com",
            smtp_port="587",
            smtp_user_name="u",
            smtp_password="p",
            smtp_domain="example.com",
            email_from="a@example.com",
            email_display_name="GitLab",
            email_reply_to="a@example.com",
            letsencrypt_email="a@example.com",
        )
