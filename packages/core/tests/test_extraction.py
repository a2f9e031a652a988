"""Tests for version extraction strategies."""

import shutil
import subprocess

import pytest

from pubgate_core.errors import ExtractionError, InputValidationError
from pubgate_core.extraction import (
    CommandExtraction,
    JsonExtraction,
    RegexExtraction,
    extract_version,
    parse_extraction_override,
    run_shell_command,
)

SHA = "f" * 40


def _runner(stdout="", returncode=0, stderr=""):
    calls = []

    def run(command, stdin):
        calls.append((command, stdin))
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr=stderr)

    run.calls = calls
    return run


# ---------------------------------------------------------------------------
# parse_extraction_override
# ---------------------------------------------------------------------------


class TestParseExtractionOverride:
    @pytest.mark.parametrize("value", [None, "", "  ", "json"])
    def test_json_is_default(self, value):
        assert parse_extraction_override(value) == JsonExtraction()

    def test_regex(self):
        assert parse_extraction_override('regex:version = "(.*)"') == RegexExtraction('version = "(.*)"')

    def test_regex_keeps_colons_in_pattern(self):
        assert parse_extraction_override("regex:v:(\\d+)") == RegexExtraction("v:(\\d+)")

    def test_invalid_regex_rejected(self):
        with pytest.raises(InputValidationError, match="invalid regular expression"):
            parse_extraction_override("regex:([0-9]")

    def test_command(self):
        assert parse_extraction_override("command: jq -r .version ") == CommandExtraction("jq -r .version")

    @pytest.mark.parametrize("value", ["toml", "regex:", "command:   ", "yaml:version"])
    def test_unknown_rejected(self, value):
        with pytest.raises(InputValidationError) as exc:
            parse_extraction_override(value)
        assert exc.value.field == "version-extraction"

    def test_describe_round_trips(self):
        for extraction in (JsonExtraction(), RegexExtraction("v(.*)"), CommandExtraction("cat")):
            assert parse_extraction_override(extraction.describe()) == extraction


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


class TestJsonExtraction:
    def test_reads_version_field(self):
        assert extract_version('{"name": "a", "version": "1.0.4"}', SHA, JsonExtraction()) == "1.0.4"

    def test_invalid_json(self):
        with pytest.raises(ExtractionError, match="Failed to parse JSON") as exc:
            extract_version("{", SHA, JsonExtraction())
        assert SHA in str(exc.value)

    @pytest.mark.parametrize("content", ['{"name": "a"}', '{"version": ""}', "[1, 2]", "null"])
    def test_missing_version(self, content):
        with pytest.raises(ExtractionError, match="version is undefined"):
            extract_version(content, SHA, JsonExtraction())

    def test_version_outside_grammar(self):
        with pytest.raises(ExtractionError, match="not a valid version"):
            extract_version('{"version": "1.0.0-beta.1"}', SHA, JsonExtraction())


# ---------------------------------------------------------------------------
# Regex
# ---------------------------------------------------------------------------


class TestRegexExtraction:
    PYPROJECT = '[project]\nname = "slim"\nversion = "0.2.1"\n'

    def test_first_capture_group(self):
        assert extract_version(self.PYPROJECT, SHA, RegexExtraction(r'version = "(.*)"')) == "0.2.1"

    def test_capture_is_stripped(self):
        assert extract_version("VERSION:  3.1.4-2 \n", SHA, RegexExtraction(r"VERSION:(.*)")) == "3.1.4-2"

    def test_no_match(self):
        with pytest.raises(ExtractionError, match="Failed to extract version"):
            extract_version(self.PYPROJECT, SHA, RegexExtraction(r"__version__ = '(.*)'"))

    def test_capture_outside_grammar(self):
        with pytest.raises(ExtractionError, match="Provided regex failed"):
            extract_version(self.PYPROJECT, SHA, RegexExtraction(r'name = "(.*)"'))

    def test_pattern_without_group(self):
        with pytest.raises(ExtractionError, match="Provided regex failed"):
            extract_version(self.PYPROJECT, SHA, RegexExtraction(r"version"))


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


class TestCommandExtraction:
    def test_content_is_piped_to_command(self):
        run = _runner(stdout="2.0.0\n")
        assert extract_version("content", SHA, CommandExtraction("my-tool"), run_command=run) == "2.0.0"
        assert run.calls == [("my-tool", "content")]

    def test_non_zero_exit(self):
        run = _runner(returncode=3, stderr="bad input\n")
        with pytest.raises(ExtractionError, match="non-zero status code") as exc:
            extract_version("content", SHA, CommandExtraction("my-tool"), run_command=run)
        assert "status: 3" in str(exc.value)
        assert "bad input" in str(exc.value)

    def test_output_outside_grammar(self):
        run = _runner(stdout="v2\n")
        with pytest.raises(ExtractionError, match="Provided command failed"):
            extract_version("content", SHA, CommandExtraction("my-tool"), run_command=run)

    def test_os_error(self):
        def run(command, stdin):
            raise OSError("no shell")

        with pytest.raises(ExtractionError, match="Failed to execute command"):
            extract_version("content", SHA, CommandExtraction("my-tool"), run_command=run)

    @pytest.mark.skipif(shutil.which("sh") is None or shutil.which("cat") is None, reason="needs a POSIX shell")
    def test_real_shell(self):
        result = run_shell_command("cat", "1.2.3")
        assert result.returncode == 0
        assert extract_version("1.2.3\n", SHA, CommandExtraction("cat")) == "1.2.3"
