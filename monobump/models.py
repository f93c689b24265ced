"""Data models for monobump.

These Pydantic models represent the workspace packages, the version updates
fed to the rewriter, and the validated release configuration.
"""

from __future__ import annotations

from typing import Any, Literal, Union

import semver
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Manifest blocks that can declare a dependency on another package.
DEPENDENCY_TYPES = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)


class Package(BaseModel):
    """A single package in the monorepo workspace.

    Attributes:
        name: Package name from package.json.
        version: Current version string from package.json.
        dir: Path to the package directory.
        manifest: The full parsed package.json. Dependency declarations live
                  under the keys listed in DEPENDENCY_TYPES.
    """

    name: str
    version: str
    dir: str
    manifest: dict[str, Any] = Field(default_factory=dict)


class PackageGraph(BaseModel):
    """All packages of a workspace, plus its root package.

    Attributes:
        root: The workspace root package.
        packages: Workspace packages in discovery order.
        tool: Identifier of the monorepo tooling ("npm", "yarn" or "root").
    """

    root: Package
    packages: list[Package]
    tool: str = "root"

    @property
    def names(self) -> list[str]:
        return [pkg.name for pkg in self.packages]


class VersionUpdate(BaseModel):
    """A package that has been assigned a new version.

    Attributes:
        name: Package name, matched exactly against dependency keys.
        version: The new bare semver version (e.g. "1.2.3").
    """

    name: str
    version: str

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        if not semver.Version.is_valid(value):
            raise ValueError(f"{value!r} is not a valid semver version")
        return value


class ExperimentalOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    only_update_peer_dependents_when_out_of_range: bool = False
    use_calculated_version_for_snapshots: bool = False


class Config(BaseModel):
    """Validated, normalized release configuration.

    Built by monobump.config.parse_config and immutable afterwards. Every
    name in ``linked`` and ``ignore`` is a real package name; glob patterns
    have already been resolved.
    """

    model_config = ConfigDict(frozen=True)

    changelog: Union[Literal[False], tuple[str, Any]]
    access: Literal["public", "restricted"]
    commit: bool
    linked: tuple[tuple[str, ...], ...]
    base_branch: str
    update_internal_dependencies: Literal["patch", "minor"]
    ignore: tuple[str, ...]
    bump_versions_with_workspace_protocol_only: bool = False
    experimental: ExperimentalOptions = Field(default_factory=ExperimentalOptions)
