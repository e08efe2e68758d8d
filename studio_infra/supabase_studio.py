"""Supabase Studio (Next.js SSR) on AWS Amplify Hosting."""

from typing import Dict, Optional

import pulumi
from pulumi import ComponentResource, Output, ResourceOptions

from studio_infra.components.execution_identity import ExecutionIdentity
from studio_infra.components.hosting_app import (
    HostingApplication,
    ProductionBranch,
    app_name_from_path,
    web_compute_overrides,
)
from studio_infra.components.source_binding import GitHubSource
from studio_infra.components.ssr_logging_policy import SsrLoggingPolicy
from studio_infra.config import StudioConfig
from studio_infra.shared.buildspecs import (
    NodeBuildOptions,
    StudioCredentials,
    studio_build_pipeline,
)
from studio_infra.shared.credentials import AccountContext, ParameterRef, SecretRef


class SupabaseStudio(ComponentResource):
    """Studio app, its production branch and the role Amplify runs it with.

    Exposes:
    - app: the HostingApplication (a collection of branches)
    - prod_branch: the auto-building production branch
    - prod_branch_url: public URL of the production branch
    """

    def __init__(
        self,
        name: str,
        *,
        config: StudioConfig,
        account: Optional[AccountContext] = None,
        scope: Optional[str] = None,
        opts: Optional[ResourceOptions] = None,
    ) -> None:
        super().__init__("custom:studio:SupabaseStudio", name, None, opts)

        self.name = name
        self.config = config
        self.path = f"{scope or pulumi.get_stack()}/{name}"
        account = account or AccountContext.current(config.region)

        tags: Dict[str, str] = {
            "Component": "SupabaseStudio",
            "Environment": pulumi.get_stack(),
            "ManagedBy": "Pulumi",
        }

        self.source = GitHubSource(
            owner=config.github_owner,
            repository=config.github_repository,
            token_secret_name=config.github_token_secret_name,
            token_json_field=config.github_token_json_field,
        )

        db_secret = SecretRef(config.db_secret_arn)
        anon_key = ParameterRef(
            config.anon_key_parameter_name, config.credentials_region
        )
        service_role_key = ParameterRef(
            config.service_role_key_parameter_name, config.credentials_region
        )

        self.identity = ExecutionIdentity(
            f"{name}-identity",
            tags=tags,
            opts=ResourceOptions(parent=self),
        )
        self.identity.grant_read("db-secret", db_secret, account)
        self.identity.grant_read("anon-key", anon_key, account)
        self.identity.grant_read("service-role-key", service_role_key, account)

        options = NodeBuildOptions(
            max_old_space_size=config.node_max_old_space_size
        )
        self.pipeline = studio_build_pipeline(
            app_root=config.app_root,
            credentials=StudioCredentials(
                db_secret_arn=db_secret.identifier,
                anon_key_name=anon_key.identifier,
                service_key_name=service_role_key.identifier,
                region=config.credentials_region,
            ),
            options=options,
        )
        self.build_spec = self.pipeline.to_yaml()

        supabase_url = config.supabase_base_url
        environment_variables = {
            # Amplify Hosting build
            "NODE_OPTIONS": options.node_options,
            "AMPLIFY_DIFF_DEPLOY": "false",
            "_CUSTOM_IMAGE": config.build_image,
            # Supabase
            "STUDIO_PG_META_URL": f"{supabase_url}/pg",
            "SUPABASE_URL": supabase_url,
            "SUPABASE_PUBLIC_URL": supabase_url,
            # Credential locations and app root read by the pre-build phase
            **self.pipeline.environment(),
        }

        self.app = HostingApplication(
            f"{name}-hosting",
            app_name=app_name_from_path(self.path),
            role_arn=self.identity.role_arn,
            source=self.source,
            build_spec=self.build_spec,
            environment_variables=environment_variables,
            overrides=web_compute_overrides(),
            tags=tags,
            opts=ResourceOptions(parent=self),
        )

        self.prod_branch = ProductionBranch(
            f"{name}-prod",
            application=self.app,
            branch_name=config.source_branch,
            app_root=config.app_root,
            tags=tags,
            opts=ResourceOptions(parent=self),
        )
        pulumi.log.info(
            f"Production branch '{config.source_branch}' builds {config.app_root}"
        )

        self.logging_policy = SsrLoggingPolicy(
            f"{name}-ssr-logging",
            identity=self.identity,
            application=self.app,
            account=account,
            opts=ResourceOptions(parent=self),
        )

        self.prod_branch_url: Output[str] = self.prod_branch.url

        self.register_outputs(
            {
                "app_id": self.app.app_id,
                "default_domain": self.app.default_domain,
                "prod_branch_url": self.prod_branch_url,
                "role_arn": self.identity.role_arn,
            }
        )
