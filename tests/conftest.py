"""pytest configuration and fixtures for the Studio hosting program."""

import json
from typing import Any, Dict, List, Tuple

import pulumi
import pytest

from studio_infra.config import StudioConfig
from studio_infra.shared.credentials import AccountContext

ACCOUNT_ID = "123456789012"
REGION = "us-east-1"
APP_ID = "d1examplestudio"
GITHUB_TOKEN = "gho_testtoken"

DB_SECRET_ARN = (
    f"arn:aws:secretsmanager:{REGION}:{ACCOUNT_ID}:secret:studio-db-AbCdEf"
)
ANON_KEY_NAME = "/supabase/anon-key"
SERVICE_KEY_NAME = "/supabase/service-role-key"


class StudioMocks(pulumi.runtime.Mocks):
    """Echo resource inputs back as outputs, with the ids AWS would generate."""

    def __init__(self) -> None:
        self.resources: List[pulumi.runtime.MockResourceArgs] = []
        self.calls: List[pulumi.runtime.MockCallArgs] = []

    def new_resource(
        self, args: pulumi.runtime.MockResourceArgs
    ) -> Tuple[str, Dict[str, Any]]:
        self.resources.append(args)
        outputs = dict(args.inputs)
        resource_id = f"{args.name}_id"

        if args.typ == "aws:amplify/app:App":
            resource_id = APP_ID
            outputs["arn"] = f"arn:aws:amplify:{REGION}:{ACCOUNT_ID}:apps/{APP_ID}"
            outputs["defaultDomain"] = f"{APP_ID}.amplifyapp.com"
        elif args.typ == "aws:iam/role:Role":
            role_name = args.inputs.get("name", args.name)
            outputs["name"] = role_name
            outputs["arn"] = (
                f"arn:aws:iam::{ACCOUNT_ID}:role/service-role/{role_name}"
            )
        elif args.typ == "aws:amplify/branch:Branch":
            outputs["arn"] = (
                f"arn:aws:amplify:{REGION}:{ACCOUNT_ID}:apps/{APP_ID}/branches/"
                f"{args.inputs['branchName']}"
            )

        return resource_id, outputs

    def call(self, args: pulumi.runtime.MockCallArgs) -> Dict[str, Any]:
        self.calls.append(args)
        if args.token == "aws:index/getCallerIdentity:getCallerIdentity":
            return {
                "accountId": ACCOUNT_ID,
                "arn": f"arn:aws:iam::{ACCOUNT_ID}:user/deployer",
                "id": ACCOUNT_ID,
                "userId": "AIDEXAMPLE",
            }
        if args.token == "aws:index/getPartition:getPartition":
            return {
                "id": "aws",
                "partition": "aws",
                "dnsSuffix": "amazonaws.com",
                "reverseDnsPrefix": "com.amazonaws",
            }
        if args.token == "aws:secretsmanager/getSecretVersion:getSecretVersion":
            return {
                "id": args.args.get("secretId"),
                "secretId": args.args.get("secretId"),
                "arn": (
                    f"arn:aws:secretsmanager:{REGION}:{ACCOUNT_ID}:secret:"
                    f"{args.args.get('secretId')}-XyZ123"
                ),
                "secretString": json.dumps({"token": GITHUB_TOKEN}),
                "versionId": "v1",
                "versionStage": "AWSCURRENT",
                "versionStages": ["AWSCURRENT"],
            }
        return {}

    def of_type(self, typ: str) -> List[pulumi.runtime.MockResourceArgs]:
        return [r for r in self.resources if r.typ == typ]


@pytest.fixture
def mocks() -> StudioMocks:
    """Install fresh Pulumi mocks for a single test."""
    studio_mocks = StudioMocks()
    pulumi.runtime.set_mocks(
        studio_mocks, project="supabase-studio", stack="test", preview=False
    )
    return studio_mocks


@pytest.fixture
def account() -> AccountContext:
    return AccountContext(partition="aws", region=REGION, account_id=ACCOUNT_ID)


@pytest.fixture
def make_config():
    """Build a valid StudioConfig, overriding any field."""

    def _make(**overrides: Any) -> StudioConfig:
        values: Dict[str, Any] = {
            "supabase_url": "https://supabase.example.com",
            "db_secret_arn": DB_SECRET_ARN,
            "anon_key_parameter_name": ANON_KEY_NAME,
            "service_role_key_parameter_name": SERVICE_KEY_NAME,
            "region": REGION,
        }
        values.update(overrides)
        return StudioConfig(**values)

    return _make
