"""
Amplify Hosting application and its production branch.

Both resources are created in two steps: base arguments go to the resource
constructor, and settings the Amplify console treats as platform behavior go
through a ``PropertyOverrides`` map applied when the resource registers.
"""

from typing import Dict, Mapping, Optional

import pulumi
import pulumi_aws as aws
from pulumi import ComponentResource, Output, ResourceOptions

from studio_infra.components.source_binding import GitHubSource
from studio_infra.shared.buildspecs import APP_ROOT_VARIABLE
from studio_infra.shared.overrides import PropertyOverrides

APP_TYPE = "aws:amplify/app:App"
BRANCH_TYPE = "aws:amplify/branch:Branch"

AMPLIFY_DOMAIN = "amplifyapp.com"
WEB_COMPUTE = "WEB_COMPUTE"
NEXTJS_SSR = "Next.js - SSR"


def app_name_from_path(path: str) -> str:
    """Amplify app name for a composition path, slashes stripped."""
    name = path.replace("/", "")
    if not name:
        raise ValueError(f"Cannot derive an app name from path '{path}'")
    return name


def catch_all_rewrite() -> aws.amplify.AppCustomRuleArgs:
    """Serve the index document for any unmatched path (client-side routing)."""
    return aws.amplify.AppCustomRuleArgs(
        source="/<*>",
        target="/index.html",
        status="404-200",
    )


def web_compute_overrides() -> PropertyOverrides:
    """Overrides every server-rendered Studio app needs."""
    return (
        PropertyOverrides(APP_TYPE)
        .add_property_override("platform", WEB_COMPUTE)
        .add_property_override("custom_rules", [catch_all_rewrite()])
    )


class HostingApplication(ComponentResource):
    """Amplify app bound to a GitHub source, a service role and a buildspec."""

    def __init__(
        self,
        name: str,
        *,
        app_name: str,
        role_arn: pulumi.Input[str],
        source: GitHubSource,
        build_spec: str,
        environment_variables: Mapping[str, pulumi.Input[str]],
        overrides: PropertyOverrides,
        tags: Optional[Dict[str, str]] = None,
        opts: Optional[ResourceOptions] = None,
    ) -> None:
        super().__init__("custom:studio:HostingApplication", name, None, opts)

        if overrides.resource_type != APP_TYPE:
            raise ValueError(
                f"App overrides must target {APP_TYPE}, "
                f"got {overrides.resource_type}"
            )

        self.name = name
        self.app_name = app_name
        self.overrides = overrides

        pulumi.log.info(
            f"Creating Amplify app '{app_name}' from {source.repository_url}"
        )

        self.app = aws.amplify.App(
            f"{name}-app",
            name=app_name,
            iam_service_role_arn=role_arn,
            repository=source.repository_url,
            oauth_token=source.oauth_token(),
            build_spec=build_spec,
            environment_variables=dict(environment_variables),
            tags=tags,
            opts=overrides.resource_options(ResourceOptions(parent=self)),
        )

        self.app_id = self.app.id
        self.default_domain = self.app.default_domain

        self.register_outputs(
            {
                "app_id": self.app_id,
                "app_name": self.app_name,
                "default_domain": self.default_domain,
            }
        )


class ProductionBranch(ComponentResource):
    """Auto-building ``PRODUCTION`` branch of a hosting application."""

    def __init__(
        self,
        name: str,
        *,
        application: HostingApplication,
        branch_name: str,
        app_root: str,
        framework: str = NEXTJS_SSR,
        tags: Optional[Dict[str, str]] = None,
        opts: Optional[ResourceOptions] = None,
    ) -> None:
        super().__init__("custom:studio:ProductionBranch", name, None, opts)

        if not branch_name or "/" in branch_name:
            raise ValueError(f"Invalid production branch name '{branch_name}'")

        self.name = name
        self.branch_name = branch_name
        self.overrides = (
            PropertyOverrides(BRANCH_TYPE)
            .add_property_override("framework", framework)
            .add_environment(APP_ROOT_VARIABLE, app_root)
        )

        site_url = application.app_id.apply(
            lambda app_id: site_url_for(branch_name, app_id)
        )

        self.branch = aws.amplify.Branch(
            f"{name}-branch",
            app_id=application.app_id,
            branch_name=branch_name,
            stage="PRODUCTION",
            enable_auto_build=True,
            environment_variables={
                "NEXT_PUBLIC_SITE_URL": site_url,
                APP_ROOT_VARIABLE: app_root,
            },
            tags=tags,
            opts=self.overrides.resource_options(
                ResourceOptions(parent=self, depends_on=[application.app])
            ),
        )

        self.url: Output[str] = Output.concat(
            "https://", self.branch.branch_name, ".", application.default_domain
        )

        self.register_outputs({"branch_name": self.branch_name, "url": self.url})


def site_url_for(branch_name: str, app_id: str) -> str:
    return f"https://{branch_name}.{app_id}.{AMPLIFY_DOMAIN}"
