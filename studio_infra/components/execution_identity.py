"""IAM service role assumed by Amplify Hosting for builds and SSR logging."""

import json
from typing import Dict, List, Optional, Union

import pulumi
import pulumi_aws as aws
from pulumi import ComponentResource, ResourceOptions

from studio_infra.shared.credentials import AccountContext, ParameterRef, SecretRef

AMPLIFY_SERVICE_PRINCIPAL = "amplify.amazonaws.com"
SERVICE_ROLE_PATH = "/service-role/"

CredentialRef = Union[SecretRef, ParameterRef]


class ExecutionIdentity(ComponentResource):
    """Service role trusted only by Amplify.

    Read access to external credentials is granted one credential at a time
    with ``grant_read``; each grant is its own inline policy so the role
    definition itself never changes when a credential is added.
    """

    def __init__(
        self,
        name: str,
        *,
        description: str = (
            "The service role that will be used by AWS Amplify for SSR app logging."
        ),
        tags: Optional[Dict[str, str]] = None,
        opts: Optional[ResourceOptions] = None,
    ) -> None:
        super().__init__("custom:studio:ExecutionIdentity", name, None, opts)

        self.name = name
        self.grants: Dict[str, aws.iam.RolePolicy] = {}

        self.role = aws.iam.Role(
            f"{name}-role",
            description=description,
            path=SERVICE_ROLE_PATH,
            assume_role_policy=json.dumps(assume_role_policy()),
            tags=tags,
            opts=ResourceOptions(parent=self),
        )

        self.role_arn = self.role.arn
        self.role_name = self.role.name

        self.register_outputs(
            {"role_arn": self.role_arn, "role_name": self.role_name}
        )

    def grant_read(
        self, key: str, ref: CredentialRef, account: AccountContext
    ) -> aws.iam.RolePolicy:
        """Allow the role to read ``ref`` and nothing else."""
        if key in self.grants:
            raise ValueError(f"Read access for '{key}' was already granted")

        policy = aws.iam.RolePolicy(
            f"{self.name}-read-{key}",
            role=self.role.id,
            policy=json.dumps(read_policy(ref, account)),
            opts=ResourceOptions(parent=self),
        )
        pulumi.log.info(f"Granted {self.name} read access to {key}")
        self.grants[key] = policy
        return policy


def assume_role_policy() -> dict:
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": AMPLIFY_SERVICE_PRINCIPAL},
                "Action": "sts:AssumeRole",
            }
        ],
    }


def read_policy(ref: CredentialRef, account: AccountContext) -> dict:
    resources: List[str] = ref.resource_arns(account)
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": list(ref.read_actions),
                "Resource": resources,
            }
        ],
    }
