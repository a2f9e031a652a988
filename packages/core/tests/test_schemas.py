"""Tests for validation of externally supplied inputs."""

import json

import pytest

from pubgate_core.errors import InputValidationError, InvalidVersionError
from pubgate_core.schemas import (
    parse_relevant_files,
    parse_version_metadata,
    validate_increment_type,
    validate_registry_version,
)

FILES = {"all": ["package.json"], "added": [], "modified": ["package.json"], "removed": [], "renamed": []}

CHANGED = {
    "changed": True,
    "oldVersion": "1.0.4",
    "newVersion": "1.0.5",
    "type": "patch",
    "commitResponsible": "b" * 40,
    "commitBase": "a" * 40,
    "commitHead": "b" * 40,
    "changedFiles": FILES,
    "changes": [{"oldVersion": "1.0.4", "newVersion": "1.0.5", "type": "patch", "commit": "b" * 40}],
}

UNCHANGED = {
    "changed": False,
    "oldVersion": "1.0.4",
    "newVersion": "1.0.4",
    "commitBase": "a" * 40,
    "commitHead": "b" * 40,
    "changedFiles": FILES,
    "changes": [],
}


class TestParseVersionMetadata:
    def test_changed(self):
        result = parse_version_metadata(json.dumps(CHANGED))
        assert result.changed is True
        assert result.new_version == "1.0.5"
        assert result.type == "patch"
        assert result.changes[0].commit == "b" * 40
        assert result.changed_files.modified == ["package.json"]

    def test_to_dict_round_trips(self):
        assert parse_version_metadata(json.dumps(CHANGED)).to_dict() == CHANGED
        assert parse_version_metadata(json.dumps(UNCHANGED)).to_dict() == UNCHANGED

    def test_unchanged_without_new_version(self):
        data = {k: v for k, v in UNCHANGED.items() if k != "newVersion"}
        result = parse_version_metadata(json.dumps(data))
        assert result.changed is False
        assert result.new_version == "1.0.4"

    def test_unchanged_with_changes_rejected(self):
        data = {**UNCHANGED, "changes": CHANGED["changes"]}
        with pytest.raises(InputValidationError):
            parse_version_metadata(json.dumps(data))

    def test_changed_missing_type_rejected(self):
        data = {k: v for k, v in CHANGED.items() if k != "type"}
        with pytest.raises(InputValidationError):
            parse_version_metadata(json.dumps(data))

    def test_bad_version_rejected(self):
        with pytest.raises(InputValidationError) as exc:
            parse_version_metadata(json.dumps({**CHANGED, "newVersion": "v1.0.5"}))
        assert exc.value.field == "version-metadata-json"

    def test_invalid_json(self):
        with pytest.raises(InputValidationError, match="invalid JSON"):
            parse_version_metadata("{")


class TestParseRelevantFiles:
    def test_json_array(self):
        assert parse_relevant_files('["lib/**", "!lib/**/*.test.ts"]') == ["lib/**", "!lib/**/*.test.ts"]

    def test_list(self):
        assert parse_relevant_files(["src/**"]) == ["src/**"]

    @pytest.mark.parametrize("raw", ['{"a": 1}', "[1, 2]", '"lib/**"', "lib/**"])
    def test_rejected(self, raw):
        with pytest.raises(InputValidationError) as exc:
            parse_relevant_files(raw)
        assert exc.value.field == "relevant-files"


class TestScalars:
    def test_pre_release_accepted(self):
        assert validate_increment_type("pre-release") == "pre-release"

    def test_known_but_unsupported_type(self):
        with pytest.raises(InputValidationError, match="not supported yet"):
            validate_increment_type("patch")

    def test_unknown_type(self):
        with pytest.raises(InputValidationError, match="known types are"):
            validate_increment_type("huge")

    def test_registry_version(self):
        assert validate_registry_version("0.0.40") == "0.0.40"

    def test_bad_registry_version(self):
        with pytest.raises(InvalidVersionError) as exc:
            validate_registry_version("latest")
        assert exc.value.field == "latest-registry-version"
