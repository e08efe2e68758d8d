"""Pulumi components composed by the Studio hosting program."""

from studio_infra.components.execution_identity import ExecutionIdentity
from studio_infra.components.hosting_app import HostingApplication, ProductionBranch
from studio_infra.components.source_binding import GitHubSource
from studio_infra.components.ssr_logging_policy import SsrLoggingPolicy

__all__ = [
    "ExecutionIdentity",
    "GitHubSource",
    "HostingApplication",
    "ProductionBranch",
    "SsrLoggingPolicy",
]
