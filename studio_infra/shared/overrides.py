"""
Property overrides applied to resources through Pulumi transformations.

Some Amplify settings are layered on top of a resource's base arguments
rather than passed to its constructor (compute platform, framework, extra
branch variables). ``PropertyOverrides`` collects them per resource type and
patches the resource inputs when the resource is registered.
"""

from __future__ import annotations

from typing import Any, Dict, MutableMapping, Optional

import pulumi


def _props_of(props: Any) -> MutableMapping[str, Any]:
    # Generated resources pass their ``*Args`` object; raw resources a dict
    return props if isinstance(props, dict) else vars(props)


class PropertyOverrides:
    """Override map for one resource type, usable as a transformation."""

    def __init__(self, resource_type: str) -> None:
        self.resource_type = resource_type
        self._properties: Dict[str, Any] = {}
        self._environment: Dict[str, pulumi.Input[str]] = {}
        self._applied = False

    def add_property_override(self, key: str, value: Any) -> "PropertyOverrides":
        self._check_open()
        self._properties[key] = value
        return self

    def add_environment(
        self, name: str, value: pulumi.Input[str]
    ) -> "PropertyOverrides":
        """Merge a variable into the resource's ``environment_variables``."""
        self._check_open()
        self._environment[name] = value
        return self

    @property
    def properties(self) -> Dict[str, Any]:
        return dict(self._properties)

    @property
    def environment(self) -> Dict[str, pulumi.Input[str]]:
        return dict(self._environment)

    def _check_open(self) -> None:
        if self._applied:
            raise RuntimeError(
                f"Overrides for {self.resource_type} were already applied"
            )

    def __call__(
        self, args: pulumi.ResourceTransformationArgs
    ) -> Optional[pulumi.ResourceTransformationResult]:
        if args.type_ != self.resource_type:
            return None

        props = _props_of(args.props)
        props.update(self._properties)
        if self._environment:
            props["environment_variables"] = {
                **(props.get("environment_variables") or {}),
                **self._environment,
            }
        self._applied = True
        return pulumi.ResourceTransformationResult(args.props, args.opts)

    def resource_options(
        self, opts: Optional[pulumi.ResourceOptions] = None
    ) -> pulumi.ResourceOptions:
        """``opts`` extended with this override map as a transformation."""
        return pulumi.ResourceOptions.merge(
            opts, pulumi.ResourceOptions(transformations=[self])
        )
