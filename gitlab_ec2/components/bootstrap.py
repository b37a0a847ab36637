from __future__ import annotations

import shlex
from dataclasses import dataclass

from ..constants import (
    HEALTH_CHECK_DELAY_SECONDS,
    HEALTH_CHECK_RETRIES,
    HEALTH_CHECK_URL,
    REGISTRY_PORT,
)
from ..planner.models import Ref


def ruby_string(value: str) -> str:
    """
    Quote a value as a Ruby double-quoted string literal.

    Escapes backslashes, quotes and '#' (so '#{...}' is never interpolated);
    control characters become escapes so the literal stays on one line.
    """
    out: list[str] = []
    for ch in value:
        if ch in ('\\', '"', '#'):
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\t":
            out.append("\\t")
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


@dataclass(frozen=True)
class GitLabSettings:
    """Validated values that go into /etc/gitlab/gitlab.rb."""
    domain_name: str
    time_zone: str
    smtp_address: str
    smtp_port: int
    smtp_user_name: str
    smtp_password: str
    smtp_domain: str
    email_from: str
    email_display_name: str
    email_reply_to: str
    letsencrypt_email: str

    def __post_init__(self) -> None:
        if isinstance(self.smtp_port, bool) or not isinstance(self.smtp_port, int):
            raise TypeError(f"smtp_port must be an int, got {type(self.smtp_port).__name__}")
        for name in (
            "domain_name", "time_zone", "smtp_address", "smtp_user_name", "smtp_password",
            "smtp_domain", "email_from", "email_display_name", "email_reply_to", "letsencrypt_email",
        ):
            if not isinstance(getattr(self, name), str):
                raise TypeError(f"{name} must be a str")

    def render(self) -> list[str]:
        q = ruby_string
        return [
            "# External URLs",
            f"external_url {q('https://' + self.domain_name)}",
            f"registry_external_url {q(f'https://{self.domain_name}:{REGISTRY_PORT}')}",
            "",
            "# Basic configuration",
            f"gitlab_rails['time_zone'] = {q(self.time_zone)}",
            "",
            "# SMTP configuration",
            "gitlab_rails['smtp_enable'] = true",
            f"gitlab_rails['smtp_address'] = {q(self.smtp_address)}",
            f"gitlab_rails['smtp_port'] = {int(self.smtp_port)}",
            f"gitlab_rails['smtp_user_name'] = {q(self.smtp_user_name)}",
            f"gitlab_rails['smtp_password'] = {q(self.smtp_password)}",
            f"gitlab_rails['smtp_domain'] = {q(self.smtp_domain)}",
            "gitlab_rails['smtp_authentication'] = \"login\"",
            "gitlab_rails['smtp_enable_starttls_auto'] = true",
            f"gitlab_rails['gitlab_email_from'] = {q(self.email_from)}",
            f"gitlab_rails['gitlab_email_display_name'] = {q(self.email_display_name)}",
            f"gitlab_rails['gitlab_email_reply_to'] = {q(self.email_reply_to)}",
            "",
            "# Lets Encrypt configuration",
            "letsencrypt['enable'] = true",
            f"letsencrypt['contact_emails'] = [{q(self.letsencrypt_email)}]",
            "letsencrypt['auto_renew'] = true",
            "",
            "# Disable SSH",
            "gitlab_sshd['enable'] = false",
            "",
            "# Container Registry configuration",
            "registry['enable'] = true",
        ]


@dataclass(frozen=True)
class BootstrapScript:
    """
    First-boot user data for the GitLab instance.

    The root password is never part of the script: it is read from Secrets
    Manager at boot, so render() only needs the secret's ARN.
    """
    settings: GitLabSettings
    secret: Ref
    region: str
    aws_cli_url: str

    @property
    def references(self) -> tuple[Ref, ...]:
        return (self.secret,)

    def render(self, secret_id: str) -> str:
        sh = shlex.quote
        lines = [
            "#!/bin/bash",
            "set -e",
            "",
            "# Update system",
            "apt-get update -y",
            "apt-get install -y jq unzip curl",
            "",
            "# Install AWS CLI v2",
            f"curl {sh(self.aws_cli_url)} -o awscliv2.zip",
            "unzip -q awscliv2.zip",
            "./aws/install",
            "rm -rf awscliv2.zip aws/",
            "",
            "# Get the root password from Secrets Manager before GitLab configuration",
            "SECRET_VALUE=$(aws secretsmanager get-secret-value"
            f" --secret-id {sh(secret_id)} --region {sh(self.region)}"
            " --query SecretString --output text)",
            'ROOT_PASSWORD=$(echo "$SECRET_VALUE" | jq -r .password)',
            "",
            "# Back up existing gitlab.rb",
            "if [ -f /etc/gitlab/gitlab.rb ]; then",
            "  mv /etc/gitlab/gitlab.rb /etc/gitlab/gitlab.rb.backup.$(date +%Y%m%d_%H%M%S)",
            "fi",
            "",
            "mkdir -p /etc/gitlab",
            "cat > /etc/gitlab/gitlab.rb <<'GITLAB_RB'",
            *self.settings.render(),
            "GITLAB_RB",
            "",
            'echo "Starting GitLab reconfiguration..."',
            "gitlab-ctl reconfigure",
            "",
            'echo "Resetting root password using gitlab-rake..."',
            'gitlab-rake "gitlab:password:reset[root]" <<EOF',
            "$ROOT_PASSWORD",
            "$ROOT_PASSWORD",
            "EOF",
            "",
            "# Wait for GitLab; exhausting the retries is not a failure",
            'echo "Waiting for GitLab to be ready..."',
            f"if curl -f --retry {HEALTH_CHECK_RETRIES} --retry-delay {HEALTH_CHECK_DELAY_SECONDS}"
            f" --retry-connrefused --retry-all-errors {HEALTH_CHECK_URL} > /dev/null 2>&1; then",
            '  echo "GitLab is ready!"',
            "else",
            '  echo "WARNING: GitLab may still be starting up after maximum retries"',
            "fi",
            "exit 0",
        ]
        return "\n".join(lines) + "\n"
