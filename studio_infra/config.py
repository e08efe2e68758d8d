"""
Stack configuration for the Studio hosting program.

Values come from the ``studio`` namespace of the Pulumi stack config, e.g.::

    pulumi config set studio:supabaseUrl https://api.example.com
    pulumi config set studio:dbSecretArn arn:aws:secretsmanager:...
"""

import re
from dataclasses import dataclass
from typing import Optional

import pulumi
import pulumi_aws as aws

from studio_infra.shared.buildspecs import validate_app_root

DEFAULT_BUILD_IMAGE = "public.ecr.aws/sam/build-nodejs22.x:1.140.0-20250605234713"
DEFAULT_APP_ROOT = "apps/studio"
DEFAULT_BRANCH = "master"

_URL = re.compile(r"^https?://[^\s/$.?#][^\s]*$")


@dataclass(frozen=True)
class StudioConfig:  # pylint: disable=too-many-instance-attributes
    """Inputs of the Studio hosting stack."""

    supabase_url: str
    db_secret_arn: str
    anon_key_parameter_name: str
    service_role_key_parameter_name: str
    region: str
    supabase_region: Optional[str] = None
    source_branch: str = DEFAULT_BRANCH
    app_root: str = DEFAULT_APP_ROOT
    github_owner: str = "supabase"
    github_repository: str = "supabase"
    github_token_secret_name: str = "github-token"
    github_token_json_field: str = "token"
    build_image: str = DEFAULT_BUILD_IMAGE
    node_max_old_space_size: int = 12000

    def __post_init__(self) -> None:
        if not _URL.match(self.supabase_url):
            raise ValueError(f"Invalid Supabase URL '{self.supabase_url}'")
        if not self.region:
            raise ValueError("No AWS region configured; set aws:region")
        validate_app_root(self.app_root)
        if not self.source_branch or "/" in self.source_branch:
            raise ValueError(f"Invalid source branch '{self.source_branch}'")
        if self.node_max_old_space_size < 512:
            raise ValueError(
                "nodeMaxOldSpaceSize must be at least 512, "
                f"got {self.node_max_old_space_size}"
            )
        if not self.build_image:
            raise ValueError("Build image must not be empty")

    @property
    def supabase_base_url(self) -> str:
        return self.supabase_url.rstrip("/")

    @property
    def credentials_region(self) -> str:
        """Region of the SSM parameters holding the API keys."""
        return self.supabase_region or self.region

    @classmethod
    def from_pulumi(cls, namespace: str = "studio") -> "StudioConfig":
        """Read and validate the stack configuration."""
        config = pulumi.Config(namespace)

        region = aws.config.region
        node_max_old_space_size = config.get_int("nodeMaxOldSpaceSize")
        if node_max_old_space_size is None:
            node_max_old_space_size = 12000
        supabase_region = config.get("supabaseRegion")
        if not supabase_region:
            pulumi.log.warn(
                f"{namespace}:supabaseRegion not set, using provider region {region}"
            )

        return cls(
            supabase_url=config.require("supabaseUrl"),
            db_secret_arn=config.require("dbSecretArn"),
            anon_key_parameter_name=config.require("anonKeyParameterName"),
            service_role_key_parameter_name=config.require(
                "serviceRoleKeyParameterName"
            ),
            region=region,
            supabase_region=supabase_region,
            source_branch=config.get("sourceBranch") or DEFAULT_BRANCH,
            app_root=config.get("appRoot") or DEFAULT_APP_ROOT,
            github_owner=config.get("githubOwner") or "supabase",
            github_repository=config.get("githubRepository") or "supabase",
            github_token_secret_name=(
                config.get("githubTokenSecretName") or "github-token"
            ),
            github_token_json_field=config.get("githubTokenJsonField") or "token",
            build_image=config.get("buildImage") or DEFAULT_BUILD_IMAGE,
            node_max_old_space_size=node_max_old_space_size,
        )
