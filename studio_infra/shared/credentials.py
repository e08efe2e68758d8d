"""
References to credentials stored outside of the Pulumi program.

Only identifiers (secret ARNs, parameter names) ever travel through the
configuration. The values are read at build time by the Amplify service role.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

import pulumi_aws as aws

_SECRET_ARN = re.compile(
    r"^arn:aws[a-z-]*:secretsmanager:[a-z0-9-]+:\d{12}:secret:[\w/+=.@-]+$"
)
_PARAMETER_NAME = re.compile(r"^/?[a-zA-Z0-9_.\-/]+$")
_REGION = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d$")


@dataclass(frozen=True)
class AccountContext:
    """Partition, region and account used to build ARNs."""

    partition: str
    region: str
    account_id: str

    def __post_init__(self) -> None:
        if not _REGION.match(self.region):
            raise ValueError(f"Invalid AWS region '{self.region}'")
        if not re.match(r"^\d{12}$", self.account_id):
            raise ValueError(f"Invalid AWS account id '{self.account_id}'")

    @classmethod
    def current(cls, region: str) -> "AccountContext":
        """Resolve partition and account of the active AWS provider."""
        return cls(
            partition=aws.get_partition().partition,
            region=region,
            account_id=aws.get_caller_identity().account_id,
        )

    def arn(self, service: str, resource: str) -> str:
        return (
            f"arn:{self.partition}:{service}:{self.region}:"
            f"{self.account_id}:{resource}"
        )


@dataclass(frozen=True)
class SecretRef:
    """A Secrets Manager secret, referenced by ARN."""

    arn: str

    read_actions = (
        "secretsmanager:GetSecretValue",
        "secretsmanager:DescribeSecret",
    )

    def __post_init__(self) -> None:
        if not _SECRET_ARN.match(self.arn):
            raise ValueError(f"Invalid Secrets Manager ARN '{self.arn}'")

    @property
    def identifier(self) -> str:
        return self.arn

    def resource_arns(self, account: AccountContext) -> List[str]:
        # pylint: disable=unused-argument
        return [self.arn]


@dataclass(frozen=True)
class ParameterRef:
    """An SSM parameter, referenced by name within a region."""

    name: str
    region: str

    read_actions = (
        "ssm:DescribeParameters",
        "ssm:GetParameters",
        "ssm:GetParameter",
        "ssm:GetParameterHistory",
    )

    def __post_init__(self) -> None:
        if not _PARAMETER_NAME.match(self.name):
            raise ValueError(f"Invalid SSM parameter name '{self.name}'")
        if not _REGION.match(self.region):
            raise ValueError(f"Invalid AWS region '{self.region}'")

    @property
    def identifier(self) -> str:
        return self.name

    def resource_arns(self, account: AccountContext) -> List[str]:
        # Parameter ARNs never repeat the leading slash of hierarchical names
        return [
            f"arn:{account.partition}:ssm:{self.region}:{account.account_id}:"
            f"parameter/{self.name.lstrip('/')}"
        ]
