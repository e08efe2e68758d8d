"""GitHub source binding for Amplify Hosting."""

import json
import re
from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

_GITHUB_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class GitHubSource:
    """Repository Amplify pulls from, with the OAuth token kept in Secrets Manager.

    The token is resolved through ``token_secret_name``/``token_json_field``
    and only ever handled as a Pulumi secret.
    """

    owner: str
    repository: str
    token_secret_name: str = "github-token"
    token_json_field: str = "token"

    def __post_init__(self) -> None:
        for label, value in (("owner", self.owner), ("repository", self.repository)):
            if not _GITHUB_NAME.match(value):
                raise ValueError(f"Invalid GitHub {label} '{value}'")
        if not self.token_secret_name:
            raise ValueError("GitHub token secret name is required")

    @property
    def repository_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repository}"

    def oauth_token(self) -> pulumi.Output[str]:
        secret = aws.secretsmanager.get_secret_version_output(
            secret_id=self.token_secret_name
        )
        return pulumi.Output.secret(
            secret.secret_string.apply(
                lambda raw: json.loads(raw)[self.token_json_field]
            )
        )
