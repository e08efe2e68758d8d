"""Least-privilege CloudWatch Logs policy for Amplify SSR apps."""

import json
import re
from typing import Dict, List, Optional

import pulumi_aws as aws
from pulumi import ComponentResource, ResourceOptions

from studio_infra.components.execution_identity import ExecutionIdentity
from studio_infra.components.hosting_app import HostingApplication
from studio_infra.shared.credentials import AccountContext

AMPLIFY_LOG_PREFIX = "/aws/amplify"

_APP_ID = re.compile(r"^[a-z0-9]+$")


def ssr_logging_statements(account: AccountContext, app_id: str) -> List[Dict]:
    """
    Statements letting Amplify write SSR logs for ``app_id`` only.

    Writing is limited to the app's own log group; creating groups is limited
    to the Amplify prefix. Only ``DescribeLogGroups`` spans the account.
    """
    if not _APP_ID.match(app_id or ""):
        raise ValueError(f"Invalid Amplify app id '{app_id}'")

    return [
        {
            "Sid": "PushLogs",
            "Effect": "Allow",
            "Action": ["logs:CreateLogStream", "logs:PutLogEvents"],
            "Resource": account.arn(
                "logs", f"log-group:{AMPLIFY_LOG_PREFIX}/{app_id}:log-stream:*"
            ),
        },
        {
            "Sid": "CreateLogGroup",
            "Effect": "Allow",
            "Action": ["logs:CreateLogGroup"],
            "Resource": account.arn("logs", f"log-group:{AMPLIFY_LOG_PREFIX}/*"),
        },
        {
            "Sid": "DescribeLogGroups",
            "Effect": "Allow",
            "Action": ["logs:DescribeLogGroups"],
            "Resource": account.arn("logs", "log-group:*"),
        },
    ]


def ssr_logging_policy_name(app_id: str) -> str:
    return f"AmplifySSRLoggingPolicy-{app_id}"


class SsrLoggingPolicy(ComponentResource):
    """Logging permissions attached to the identity once the app id exists."""

    def __init__(
        self,
        name: str,
        *,
        identity: ExecutionIdentity,
        application: HostingApplication,
        account: AccountContext,
        opts: Optional[ResourceOptions] = None,
    ) -> None:
        super().__init__("custom:studio:SsrLoggingPolicy", name, None, opts)

        self.document = application.app_id.apply(
            lambda app_id: json.dumps(
                {
                    "Version": "2012-10-17",
                    "Statement": ssr_logging_statements(account, app_id),
                }
            )
        )
        self.policy_name = application.app_id.apply(ssr_logging_policy_name)

        self.policy = aws.iam.RolePolicy(
            f"{name}-policy",
            name=self.policy_name,
            role=identity.role.id,
            policy=self.document,
            opts=ResourceOptions(parent=self, depends_on=[application.app]),
        )

        self.register_outputs(
            {"policy_name": self.policy_name, "document": self.document}
        )
