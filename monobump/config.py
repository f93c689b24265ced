"""Release config validation.

Reads ``.monobump/config.json`` from the workspace root and turns it into a
validated, immutable :class:`~monobump.models.Config`.

Validation never stops at the first problem. Every check appends to one
list of messages, and a single ConfigValidationError carrying all of them
is raised at the end, so authors can fix everything in one go.

Supported keys in ``.monobump/config.json``::

    {
      "changelog": "@monobump/changelog",       // false, a module, or [module, options]
      "access": "restricted",                   // "public" or "restricted"
      "commit": false,
      "linked": [["pkg-a", "pkg-b"], ["@scope/*"]],
      "baseBranch": "master",
      "updateInternalDependencies": "patch",    // "patch" or "minor"
      "ignore": ["pkg-docs"],
      "bumpVersionsWithWorkspaceProtocolOnly": false,
      "___experimentalUnsafeOptions_WILL_CHANGE_IN_PATCH": {
        "onlyUpdatePeerDependentsWhenOutOfRange": false,
        "useCalculatedVersionForSnapshots": false
      }
    }
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import ConfigValidationError
from .globs import normalize_package_names
from .graph import get_dependents_graph
from .models import Config, ExperimentalOptions, Package, PackageGraph
from .shell import warn

CONFIG_PATH = Path(".monobump") / "config.json"

DEFAULT_CHANGELOG = "@monobump/changelog"

EXPERIMENTAL_KEY = "___experimentalUnsafeOptions_WILL_CHANGE_IN_PATCH"

DEFAULT_WRITTEN_CONFIG: dict[str, Any] = {
    "changelog": DEFAULT_CHANGELOG,
    "commit": False,
    "linked": [],
    "access": "restricted",
    "baseBranch": "master",
    "updateInternalDependencies": "patch",
    "ignore": [],
}

_GLOB_HINT = (
    "You may have misspelled the package name or provided an invalid glob "
    "expression. Glob expressions support *, **, ?, [...] and {a,b}."
)


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2)


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _normalize_changelog(value: Any) -> Any:
    if value is False:
        return False
    if isinstance(value, str):
        return (value, None)
    return tuple(value)


def _check_changelog(raw: Mapping[str, Any], messages: list[str]) -> None:
    if "changelog" not in raw:
        return
    value = raw["changelog"]
    if value is False or isinstance(value, str):
        return
    if isinstance(value, list) and len(value) == 2 and isinstance(value[0], str):
        return
    messages.append(
        f"The `changelog` option is set as {_dump(value)} when the only valid "
        "values are undefined, false, a module path (e.g. "
        f'"{DEFAULT_CHANGELOG}" or "./some-module") or a tuple with a module '
        "path and config for the changelog generator (e.g. "
        f'["{DEFAULT_CHANGELOG}", {{ "someOption": true }}])'
    )


def _normalize_access(raw: Mapping[str, Any]) -> Any:
    access = raw.get("access")
    if access == "private":
        warn(
            'The `access` option is set as "private", but this is actually '
            'not a valid value - the correct form is "restricted".'
        )
        return "restricted"
    return access


def _check_linked(
    raw: Mapping[str, Any], pkg_names: list[str], messages: list[str]
) -> None:
    if "linked" not in raw:
        return
    linked = raw["linked"]
    if not (isinstance(linked, list) and all(_is_string_list(g) for g in linked)):
        messages.append(
            f"The `linked` option is set as {_dump(linked)} when the only valid "
            "values are undefined or an array of arrays of package names"
        )
        return

    found: set[str] = set()
    duplicated: dict[str, None] = {}
    for group in linked:
        matched, unmatched = normalize_package_names(group, pkg_names)
        for name in matched:
            if name in found:
                duplicated[name] = None
            found.add(name)
        for pattern in unmatched:
            messages.append(
                f'The package or glob expression "{pattern}" specified in the '
                "`linked` option does not match any package in the project. "
                + _GLOB_HINT
            )
    for name in duplicated:
        messages.append(
            f'The package "{name}" is defined in multiple sets of linked '
            "packages. Packages can only be defined in a single set of linked "
            "packages. If you are using glob expressions, make sure that they "
            "are valid."
        )


def _check_ignore(
    raw: Mapping[str, Any],
    packages: PackageGraph,
    pkg_names: list[str],
    messages: list[str],
) -> None:
    if "ignore" not in raw:
        return
    ignore = raw["ignore"]
    if not _is_string_list(ignore):
        messages.append(
            f"The `ignore` option is set as {_dump(ignore)} when the only valid "
            "values are undefined or an array of package names"
        )
        return

    ignored, unmatched = normalize_package_names(ignore, pkg_names)
    for pattern in unmatched:
        messages.append(
            f'The package or glob expression "{pattern}" is specified in the '
            "`ignore` option but it is not found in the project. " + _GLOB_HINT
        )

    # Membership is checked against the list as written, not the resolved one.
    dependents_graph = get_dependents_graph(packages)
    for ignored_name in ignored:
        for dependent in dependents_graph.get(ignored_name, []):
            if dependent not in ignore:
                messages.append(
                    f'The package "{dependent}" depends on the ignored package '
                    f'"{ignored_name}", but "{dependent}" is not being ignored. '
                    f'Please add "{dependent}" to the `ignore` option.'
                )


def _check_experimental(raw: Mapping[str, Any], messages: list[str]) -> None:
    if EXPERIMENTAL_KEY not in raw:
        return
    options = raw[EXPERIMENTAL_KEY]
    if not isinstance(options, Mapping):
        messages.append(
            f"The `{EXPERIMENTAL_KEY}` option is set as {_dump(options)} when "
            "the only valid values are undefined or an object"
        )
        return
    for flag in (
        "onlyUpdatePeerDependentsWhenOutOfRange",
        "useCalculatedVersionForSnapshots",
    ):
        if flag in options and not isinstance(options[flag], bool):
            messages.append(
                f"The `{flag}` option is set as {_dump(options[flag])} when the "
                "only valid values are undefined or a boolean"
            )


def parse_config(raw: Mapping[str, Any], packages: PackageGraph) -> Config:
    """Validate a written config and normalize it into a Config.

    Args:
        raw: The config as decoded from JSON. Untrusted.
        packages: The workspace packages, used to resolve package names and
            glob expressions and to check the ignore list.

    Returns:
        The validated config with defaults applied and every glob
        expression in ``linked`` and ``ignore`` resolved to package names.

    Raises:
        ConfigValidationError: With every problem found, if any.
    """
    messages: list[str] = []
    pkg_names = packages.names

    _check_changelog(raw, messages)

    access = _normalize_access(raw)
    if "access" in raw and access not in ("public", "restricted"):
        messages.append(
            f"The `access` option is set as {_dump(access)} when the only valid "
            'values are undefined, "public" or "restricted"'
        )

    if "commit" in raw and not isinstance(raw["commit"], bool):
        messages.append(
            f"The `commit` option is set as {_dump(raw['commit'])} when the only "
            "valid values are undefined or a boolean"
        )

    if "baseBranch" in raw and not isinstance(raw["baseBranch"], str):
        messages.append(
            f"The `baseBranch` option is set as {_dump(raw['baseBranch'])} but "
            "the `baseBranch` option can only be set as a string"
        )

    _check_linked(raw, pkg_names, messages)

    update_internal = raw.get("updateInternalDependencies")
    if "updateInternalDependencies" in raw and update_internal not in (
        "patch",
        "minor",
    ):
        messages.append(
            "The `updateInternalDependencies` option is set as "
            f"{_dump(update_internal)} but can only be 'patch' or 'minor'"
        )

    _check_ignore(raw, packages, pkg_names, messages)
    _check_experimental(raw, messages)

    if messages:
        raise ConfigValidationError(messages)

    defaults = DEFAULT_WRITTEN_CONFIG
    experimental = raw.get(EXPERIMENTAL_KEY) or {}
    return Config(
        changelog=_normalize_changelog(raw.get("changelog", defaults["changelog"])),
        access=defaults["access"] if "access" not in raw else access,
        commit=raw.get("commit", defaults["commit"]),
        linked=tuple(
            tuple(normalize_package_names(group, pkg_names)[0])
            for group in raw.get("linked", defaults["linked"])
        ),
        base_branch=raw.get("baseBranch", defaults["baseBranch"]),
        update_internal_dependencies=raw.get(
            "updateInternalDependencies", defaults["updateInternalDependencies"]
        ),
        ignore=tuple(
            normalize_package_names(raw.get("ignore", defaults["ignore"]), pkg_names)[0]
        ),
        bump_versions_with_workspace_protocol_only=(
            raw.get("bumpVersionsWithWorkspaceProtocolOnly") is True
        ),
        experimental=ExperimentalOptions(
            only_update_peer_dependents_when_out_of_range=experimental.get(
                "onlyUpdatePeerDependentsWhenOutOfRange", False
            ),
            use_calculated_version_for_snapshots=experimental.get(
                "useCalculatedVersionForSnapshots", False
            ),
        ),
    )


def read_config(cwd: Path, packages: PackageGraph) -> Config:
    """Load ``.monobump/config.json`` under ``cwd`` and validate it.

    Raises:
        FileNotFoundError: If the config file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ConfigValidationError: If the config is invalid.
    """
    raw = json.loads((cwd / CONFIG_PATH).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            [f"The config must be a JSON object, got {_dump(raw)}"]
        )
    return parse_config(raw, packages)


def _default_config() -> Config:
    fake_package = Package(name="", version="", dir="")
    return parse_config(
        DEFAULT_WRITTEN_CONFIG,
        PackageGraph(root=fake_package, packages=[fake_package], tool="root"),
    )


# Fallback used when a workspace has no config file.
DEFAULT_CONFIG = _default_config()
