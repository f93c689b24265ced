"""Tests for monobump.config."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from conftest import make_graph, make_package
from monobump.config import (
    CONFIG_PATH,
    DEFAULT_CONFIG,
    DEFAULT_WRITTEN_CONFIG,
    parse_config,
    read_config,
)
from monobump.errors import ConfigValidationError
from monobump.models import PackageGraph


def _messages(raw: dict[str, Any], graph: PackageGraph) -> list[str]:
    with pytest.raises(ConfigValidationError) as exc_info:
        parse_config(raw, graph)
    return exc_info.value.messages


@pytest.fixture
def graph() -> PackageGraph:
    return make_graph(
        make_package("pkg-1"),
        make_package("pkg-2"),
        make_package("pkg-3"),
        make_package("@scope/a"),
        make_package("@scope/b"),
    )


class TestDefaults:
    def test_empty_config_gets_defaults(self, graph: PackageGraph) -> None:
        config = parse_config({}, graph)
        assert config.changelog == ("@monobump/changelog", None)
        assert config.access == "restricted"
        assert config.commit is False
        assert config.linked == ()
        assert config.base_branch == "master"
        assert config.update_internal_dependencies == "patch"
        assert config.ignore == ()
        assert config.bump_versions_with_workspace_protocol_only is False
        assert config.experimental.only_update_peer_dependents_when_out_of_range is False
        assert config.experimental.use_calculated_version_for_snapshots is False

    def test_default_config_matches_empty_config(self, graph: PackageGraph) -> None:
        assert DEFAULT_CONFIG == parse_config({}, graph)

    def test_default_written_config_is_valid(self, graph: PackageGraph) -> None:
        assert parse_config(DEFAULT_WRITTEN_CONFIG, graph) == DEFAULT_CONFIG

    def test_unknown_keys_ignored(self, graph: PackageGraph) -> None:
        config = parse_config({"$schema": "https://example.com/schema.json"}, graph)
        assert config == DEFAULT_CONFIG


class TestNormalization:
    def test_full_config(self, graph: PackageGraph) -> None:
        config = parse_config(
            {
                "changelog": ["./changelog.js", {"repo": "org/repo"}],
                "access": "public",
                "commit": True,
                "linked": [["pkg-1", "pkg-2"], ["@scope/*"]],
                "baseBranch": "main",
                "updateInternalDependencies": "minor",
                "ignore": ["pkg-3"],
                "bumpVersionsWithWorkspaceProtocolOnly": True,
                "___experimentalUnsafeOptions_WILL_CHANGE_IN_PATCH": {
                    "onlyUpdatePeerDependentsWhenOutOfRange": True,
                    "useCalculatedVersionForSnapshots": True,
                },
            },
            graph,
        )
        assert config.changelog == ("./changelog.js", {"repo": "org/repo"})
        assert config.access == "public"
        assert config.commit is True
        assert config.linked == (("pkg-1", "pkg-2"), ("@scope/a", "@scope/b"))
        assert config.base_branch == "main"
        assert config.update_internal_dependencies == "minor"
        assert config.ignore == ("pkg-3",)
        assert config.bump_versions_with_workspace_protocol_only is True
        assert config.experimental.only_update_peer_dependents_when_out_of_range
        assert config.experimental.use_calculated_version_for_snapshots

    def test_changelog_false(self, graph: PackageGraph) -> None:
        assert parse_config({"changelog": False}, graph).changelog is False

    def test_changelog_string(self, graph: PackageGraph) -> None:
        assert parse_config({"changelog": "./cl"}, graph).changelog == ("./cl", None)

    def test_ignore_globs_resolved(self, graph: PackageGraph) -> None:
        config = parse_config({"ignore": ["@scope/*"]}, graph)
        assert config.ignore == ("@scope/a", "@scope/b")

    def test_workspace_only_flag_requires_true(self, graph: PackageGraph) -> None:
        config = parse_config({"bumpVersionsWithWorkspaceProtocolOnly": "yes"}, graph)
        assert config.bump_versions_with_workspace_protocol_only is False

    def test_private_access_coerced_with_warning(
        self, graph: PackageGraph, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = parse_config({"access": "private"}, graph)
        assert config.access == "restricted"
        assert '"private"' in capsys.readouterr().err


class TestShapeErrors:
    @pytest.mark.parametrize(
        ("raw", "fragment"),
        [
            ({"changelog": True}, "`changelog` option is set as true"),
            ({"changelog": ["a"]}, "`changelog` option"),
            ({"changelog": [1, {}]}, "`changelog` option"),
            ({"access": "secret"}, '`access` option is set as "secret"'),
            ({"access": None}, "`access` option is set as null"),
            ({"commit": "yes"}, '`commit` option is set as "yes"'),
            ({"commit": 1}, "`commit` option is set as 1"),
            ({"baseBranch": 42}, "`baseBranch` option is set as 42"),
            ({"linked": "pkg-1"}, "`linked` option is set as"),
            ({"linked": ["pkg-1"]}, "`linked` option is set as"),
            ({"linked": [["pkg-1", 2]]}, "`linked` option is set as"),
            ({"updateInternalDependencies": "major"}, "can only be 'patch' or 'minor'"),
            ({"ignore": "pkg-1"}, "`ignore` option is set as"),
            ({"ignore": [None]}, "`ignore` option is set as"),
            (
                {
                    "___experimentalUnsafeOptions_WILL_CHANGE_IN_PATCH": {
                        "onlyUpdatePeerDependentsWhenOutOfRange": "true"
                    }
                },
                "`onlyUpdatePeerDependentsWhenOutOfRange` option",
            ),
            (
                {
                    "___experimentalUnsafeOptions_WILL_CHANGE_IN_PATCH": {
                        "useCalculatedVersionForSnapshots": 0
                    }
                },
                "`useCalculatedVersionForSnapshots` option",
            ),
            (
                {"___experimentalUnsafeOptions_WILL_CHANGE_IN_PATCH": []},
                "only valid values are undefined or an object",
            ),
        ],
    )
    def test_reports_invalid_value(
        self, graph: PackageGraph, raw: dict[str, Any], fragment: str
    ) -> None:
        messages = _messages(raw, graph)
        assert len(messages) == 1
        assert fragment in messages[0]

    def test_values_dumped_as_indented_json(self, graph: PackageGraph) -> None:
        (message,) = _messages({"changelog": {"a": 1}}, graph)
        assert '{\n  "a": 1\n}' in message

    def test_collects_every_error_in_order(self, graph: PackageGraph) -> None:
        messages = _messages(
            {
                "changelog": 1,
                "access": "nope",
                "commit": "no",
                "baseBranch": False,
                "linked": [["missing"]],
                "updateInternalDependencies": 3,
                "ignore": ["gone"],
            },
            graph,
        )
        assert len(messages) == 7
        for message, option in zip(
            messages,
            [
                "`changelog`",
                "`access`",
                "`commit`",
                "`baseBranch`",
                "`linked`",
                "`updateInternalDependencies`",
                "`ignore`",
            ],
        ):
            assert option in message

    def test_error_string_lists_all_messages(self, graph: PackageGraph) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_config({"commit": "x", "baseBranch": 1}, graph)
        text = str(exc_info.value)
        assert text.startswith("Some errors occurred")
        assert "`commit`" in text and "`baseBranch`" in text


class TestLinked:
    def test_duplicate_package_reported_once(self, graph: PackageGraph) -> None:
        messages = _messages({"linked": [["pkg-1", "pkg-2"], ["pkg-2", "pkg-3"]]}, graph)
        assert messages == [
            'The package "pkg-2" is defined in multiple sets of linked packages. '
            "Packages can only be defined in a single set of linked packages. "
            "If you are using glob expressions, make sure that they are valid."
        ]

    def test_duplicate_in_three_groups_reported_once(self, graph: PackageGraph) -> None:
        messages = _messages({"linked": [["pkg-1"], ["pkg-1"], ["pkg-*"]]}, graph)
        assert len(messages) == 1
        assert '"pkg-1"' in messages[0]

    def test_duplicate_through_glob(self, graph: PackageGraph) -> None:
        messages = _messages({"linked": [["@scope/a"], ["@scope/*"]]}, graph)
        assert len(messages) == 1
        assert '"@scope/a"' in messages[0]

    def test_unmatched_patterns_reported(self, graph: PackageGraph) -> None:
        messages = _messages({"linked": [["pkg-1", "pkg-9"], ["@nope/*"]]}, graph)
        assert len(messages) == 2
        assert '"pkg-9" specified in the `linked` option' in messages[0]
        assert '"@nope/*" specified in the `linked` option' in messages[1]

    def test_unmatched_reported_before_duplicates(self, graph: PackageGraph) -> None:
        messages = _messages({"linked": [["pkg-1"], ["pkg-1", "pkg-x"]]}, graph)
        assert "pkg-x" in messages[0]
        assert "multiple sets" in messages[1]

    def test_resolved_groups_disjoint(self, graph: PackageGraph) -> None:
        config = parse_config({"linked": [["pkg-*"], ["@scope/*"]]}, graph)
        names = [name for group in config.linked for name in group]
        assert len(names) == len(set(names))


class TestIgnore:
    @pytest.fixture
    def dep_graph(self) -> PackageGraph:
        return make_graph(
            make_package("pkg-x"),
            make_package("pkg-y", dependencies={"pkg-x": "^1.0.0"}),
            make_package("pkg-z", dependencies={"pkg-y": "^1.0.0"}),
        )

    def test_dependent_of_ignored_package_must_be_ignored(
        self, dep_graph: PackageGraph
    ) -> None:
        messages = _messages({"ignore": ["pkg-x"]}, dep_graph)
        assert messages == [
            'The package "pkg-y" depends on the ignored package "pkg-x", but '
            '"pkg-y" is not being ignored. Please add "pkg-y" to the `ignore` option.'
        ]

    def test_closed_ignore_set_is_valid(self, dep_graph: PackageGraph) -> None:
        config = parse_config({"ignore": ["pkg-x", "pkg-y", "pkg-z"]}, dep_graph)
        assert config.ignore == ("pkg-x", "pkg-y", "pkg-z")

    def test_only_direct_dependents_checked(self, dep_graph: PackageGraph) -> None:
        # pkg-z depends on pkg-x only through pkg-y, so it is not reported.
        messages = _messages({"ignore": ["pkg-x"]}, dep_graph)
        assert not any('"pkg-z"' in m for m in messages)

    def test_membership_checked_against_written_list(
        self, dep_graph: PackageGraph
    ) -> None:
        # pkg-y is covered by the glob, but not listed by name.
        messages = _messages({"ignore": ["pkg-*"]}, dep_graph)
        assert len(messages) == 2
        assert '"pkg-y" depends on the ignored package "pkg-x"' in messages[0]
        assert '"pkg-z" depends on the ignored package "pkg-y"' in messages[1]

    def test_unmatched_ignore_pattern(self, dep_graph: PackageGraph) -> None:
        messages = _messages({"ignore": ["pkg-z", "pkg-typo"]}, dep_graph)
        assert messages == [
            'The package or glob expression "pkg-typo" is specified in the '
            "`ignore` option but it is not found in the project. You may have "
            "misspelled the package name or provided an invalid glob expression. "
            "Glob expressions support *, **, ?, [...] and {a,b}."
        ]

    def test_malformed_class_reported_as_unmatched(
        self, dep_graph: PackageGraph
    ) -> None:
        messages = _messages(
            {"ignore": ["pkg-[z-a]"], "linked": [["pkg-[z-a]"]]}, dep_graph
        )
        assert len(messages) == 2
        assert '"pkg-[z-a]" specified in the `linked` option' in messages[0]
        assert '"pkg-[z-a]" is specified in the `ignore` option' in messages[1]

    def test_closed_under_dependents_after_validation(
        self, dep_graph: PackageGraph
    ) -> None:
        from monobump.graph import get_dependents_graph

        config = parse_config({"ignore": ["pkg-y", "pkg-z"]}, dep_graph)
        dependents = get_dependents_graph(dep_graph)
        for name in config.ignore:
            assert set(dependents[name]) <= set(config.ignore)


class TestReadConfig:
    def test_reads_config_file(self, tmp_path: Path, graph: PackageGraph) -> None:
        (tmp_path / CONFIG_PATH).parent.mkdir()
        (tmp_path / CONFIG_PATH).write_text(json.dumps({"baseBranch": "main"}))
        assert read_config(tmp_path, graph).base_branch == "main"

    def test_rejects_non_object(self, tmp_path: Path, graph: PackageGraph) -> None:
        (tmp_path / CONFIG_PATH).parent.mkdir()
        (tmp_path / CONFIG_PATH).write_text("[]")
        with pytest.raises(ConfigValidationError):
            read_config(tmp_path, graph)

    def test_missing_file(self, tmp_path: Path, graph: PackageGraph) -> None:
        with pytest.raises(FileNotFoundError):
            read_config(tmp_path, graph)
