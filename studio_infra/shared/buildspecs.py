#!/usr/bin/env python3
"""
Buildspec generator for the Amplify Hosting build of Supabase Studio.

The pre-build and build phases are ordered lists of typed steps. Each step
validates its own inputs and renders its own shell commands, and reports the
environment variables it reads so the same values can be handed to the
Amplify variable store.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

import yaml

ENV_FILE = ".env.production"
APP_ROOT_VARIABLE = "AMPLIFY_MONOREPO_APP_ROOT"

_VARIABLE = re.compile(r"^[A-Z_][A-Z0-9_]*$")
_JSON_FIELD = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SAFE_TOKEN = re.compile(r"^[A-Za-z0-9_.@/=+:*-]+$")


def _check_variable(name: str) -> None:
    if not _VARIABLE.match(name):
        raise ValueError(f"Invalid environment variable name '{name}'")


def _check_token(kind: str, value: str) -> None:
    if not _SAFE_TOKEN.match(value):
        raise ValueError(f"Invalid {kind} '{value}'")


class BuildStep:
    """Base class for one entry of a buildspec phase."""

    def commands(self) -> List[str]:
        raise NotImplementedError

    def environment(self) -> Dict[str, str]:
        """Variables this step expects in the build environment."""
        return {}


@dataclass(frozen=True)
class FetchSecretField(BuildStep):
    """Append one JSON field of a Secrets Manager secret to the env file."""

    variable: str
    secret_id_variable: str
    secret_id: str
    json_field: str
    env_file: str = ENV_FILE

    def __post_init__(self) -> None:
        _check_variable(self.variable)
        _check_variable(self.secret_id_variable)
        _check_token("secret id", self.secret_id)
        if not _JSON_FIELD.match(self.json_field):
            raise ValueError(f"Invalid JSON field '{self.json_field}'")

    def commands(self) -> List[str]:
        return [
            f"echo {self.variable}=$(aws secretsmanager get-secret-value "
            f"--secret-id ${self.secret_id_variable} --query SecretString "
            f"| jq -r . | jq -r .{self.json_field}) >> {self.env_file}"
        ]

    def environment(self) -> Dict[str, str]:
        return {self.secret_id_variable: self.secret_id}


@dataclass(frozen=True)
class FetchParameter(BuildStep):
    """Append the value of an SSM parameter to the env file."""

    variable: str
    name_variable: str
    parameter_name: str
    region_variable: str
    region: str
    env_file: str = ENV_FILE

    def __post_init__(self) -> None:
        _check_variable(self.variable)
        _check_variable(self.name_variable)
        _check_variable(self.region_variable)
        _check_token("parameter name", self.parameter_name)
        _check_token("region", self.region)

    def commands(self) -> List[str]:
        return [
            f"echo {self.variable}=$(aws ssm get-parameter "
            f"--region ${self.region_variable} --name ${self.name_variable} "
            f"--query Parameter.Value) >> {self.env_file}"
        ]

    def environment(self) -> Dict[str, str]:
        return {
            self.name_variable: self.parameter_name,
            self.region_variable: self.region,
        }


@dataclass(frozen=True)
class CopyEnvPrefix(BuildStep):
    """Copy process variables whose name contains ``pattern`` into the env file."""

    pattern: str
    env_file: str = ENV_FILE

    def __post_init__(self) -> None:
        _check_variable(self.pattern)

    def commands(self) -> List[str]:
        return [f"env | grep -e {self.pattern} >> {self.env_file}"]


@dataclass(frozen=True)
class ChangeDirectory(BuildStep):
    path: str

    def __post_init__(self) -> None:
        _check_token("path", self.path)

    def commands(self) -> List[str]:
        return [f"cd {self.path}"]


@dataclass(frozen=True)
class SetOption(BuildStep):
    """Export an option for the remaining commands of the phase."""

    name: str
    value: str

    def __post_init__(self) -> None:
        _check_variable(self.name)
        if "'" in self.value:
            raise ValueError(f"Option value for {self.name} must not contain quotes")

    def commands(self) -> List[str]:
        return [f"export {self.name}='{self.value}'"]


@dataclass(frozen=True)
class ActivatePackageManager(BuildStep):
    tool: str = "pnpm"
    version: str = "latest"

    def __post_init__(self) -> None:
        _check_token("package manager", self.tool)
        _check_token("package manager version", self.version)

    def commands(self) -> List[str]:
        return [
            "corepack enable",
            f"corepack prepare {self.tool}@{self.version} --activate",
        ]


@dataclass(frozen=True)
class Install(BuildStep):
    """Install workspace dependencies.

    ``production`` prunes dev-only packages to shrink the deployed artifact.
    """

    production: bool = False
    ignore_engines: bool = False
    tool: str = "pnpm"

    def commands(self) -> List[str]:
        command = f"{self.tool} install"
        if self.production:
            command += " --prod"
        if self.ignore_engines:
            command += " --config.ignore-engines=true"
        return [command]


@dataclass(frozen=True)
class TurboBuild(BuildStep):
    """Build ``target`` and the workspace packages it depends on."""

    target: str
    tool: str = "pnpm"

    def __post_init__(self) -> None:
        _check_token("build target", self.target)

    def commands(self) -> List[str]:
        return [f"{self.tool} exec turbo run build --filter={self.target}..."]


@dataclass(frozen=True)
class BuildPipelineDefinition:
    """Amplify buildspec for a single monorepo application."""

    app_root: str
    pre_build: Tuple[BuildStep, ...]
    build: Tuple[BuildStep, ...]
    artifact_base_directory: str = ".next/standalone"
    artifact_files: Tuple[str, ...] = ("**/*",)
    cache_paths: Tuple[str, ...] = ("node_modules/**/*",)
    version: int = 1

    def __post_init__(self) -> None:
        validate_app_root(self.app_root)
        if not self.build:
            raise ValueError("Build phase must contain at least one step")

    @staticmethod
    def _render(steps: Sequence[BuildStep]) -> List[str]:
        return [command for step in steps for command in step.commands()]

    @property
    def pre_build_commands(self) -> List[str]:
        return self._render(self.pre_build)

    @property
    def build_commands(self) -> List[str]:
        return self._render(self.build)

    def environment(self) -> Dict[str, str]:
        """Every variable the phases read, including the app root."""
        env: Dict[str, str] = {}
        for step in (*self.pre_build, *self.build):
            for name, value in step.environment().items():
                if env.get(name, value) != value:
                    raise ValueError(
                        f"Conflicting values for build variable {name}: "
                        f"'{env[name]}' and '{value}'"
                    )
                env[name] = value
        env[APP_ROOT_VARIABLE] = self.app_root
        return env

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "applications": [
                {
                    "appRoot": self.app_root,
                    "frontend": {
                        "phases": {
                            "preBuild": {"commands": self.pre_build_commands},
                            "build": {"commands": self.build_commands},
                        },
                        "artifacts": {
                            "baseDirectory": self.artifact_base_directory,
                            "files": list(self.artifact_files),
                        },
                        "cache": {"paths": list(self.cache_paths)},
                    },
                }
            ],
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(
            self.to_dict(), sort_keys=False, default_flow_style=False, width=1000
        )


def validate_app_root(app_root: str) -> str:
    """Return ``app_root`` normalized, rejecting absolute or escaping paths."""
    normalized = posixpath.normpath(app_root) if app_root else ""
    if (
        not normalized
        or normalized == "."
        or normalized.startswith("/")
        or normalized.startswith("..")
    ):
        raise ValueError(
            f"App root must be a path inside the monorepo, got '{app_root}'"
        )
    if normalized != app_root.rstrip("/"):
        raise ValueError(f"App root '{app_root}' is not normalized")
    return normalized


def monorepo_root_from(app_root: str) -> str:
    """Relative path from ``app_root`` back to the repository root."""
    depth = len(validate_app_root(app_root).split("/"))
    return "../" * depth


@dataclass(frozen=True)
class StudioCredentials:
    """Identifiers the Studio build reads its credentials from."""

    db_secret_arn: str
    anon_key_name: str
    service_key_name: str
    region: str


@dataclass(frozen=True)
class NodeBuildOptions:
    max_old_space_size: int = 12000
    package_manager: str = "pnpm"
    package_manager_version: str = "latest"
    env_prefixes: Tuple[str, ...] = field(
        default=("STUDIO_PG_META_URL", "SUPABASE_", "NEXT_PUBLIC_")
    )

    @property
    def node_options(self) -> str:
        return f"--max-old-space-size={self.max_old_space_size}"


def studio_build_pipeline(
    *,
    app_root: str,
    credentials: StudioCredentials,
    options: NodeBuildOptions = NodeBuildOptions(),
) -> BuildPipelineDefinition:
    """
    Buildspec for Supabase Studio (Next.js standalone output, pnpm + turbo).

    Pre-build writes the database password and both API keys to
    ``.env.production``, copies the Studio-related process variables through,
    then prepares pnpm at the monorepo root. Build runs turbo for the Studio
    package only and reinstalls production dependencies.
    """
    target = posixpath.basename(validate_app_root(app_root))

    pre_build: List[BuildStep] = [
        FetchSecretField(
            variable="POSTGRES_PASSWORD",
            secret_id_variable="DB_SECRET_ARN",
            secret_id=credentials.db_secret_arn,
            json_field="password",
        ),
        FetchParameter(
            variable="SUPABASE_ANON_KEY",
            name_variable="ANON_KEY_NAME",
            parameter_name=credentials.anon_key_name,
            region_variable="SUPABASE_REGION",
            region=credentials.region,
        ),
        FetchParameter(
            variable="SUPABASE_SERVICE_KEY",
            name_variable="SERVICE_KEY_NAME",
            parameter_name=credentials.service_key_name,
            region_variable="SUPABASE_REGION",
            region=credentials.region,
        ),
    ]
    pre_build.extend(CopyEnvPrefix(prefix) for prefix in options.env_prefixes)
    pre_build.extend(
        [
            ChangeDirectory(monorepo_root_from(app_root)),
            SetOption("NODE_OPTIONS", options.node_options),
            ActivatePackageManager(
                options.package_manager, options.package_manager_version
            ),
            Install(ignore_engines=True, tool=options.package_manager),
        ]
    )

    build: List[BuildStep] = [
        TurboBuild(target, tool=options.package_manager),
        Install(production=True, tool=options.package_manager),
    ]

    return BuildPipelineDefinition(
        app_root=app_root,
        pre_build=tuple(pre_build),
        build=tuple(build),
    )
