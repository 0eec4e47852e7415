"""Tests for the hexsolve command line entry point."""

import json
import logging

import pytest

from args import parse_args
from cli_config import apply_registry_overrides
from constants import Constants, ExitCodes
import hexsolve

REGISTRY_YAML = """
packages:
  gleam_stdlib:
    releases:
      - version: 0.1.0
      - version: 0.2.0
      - version: 0.3.0
  gleam_otp:
    releases:
      - version: 0.1.0
        requirements:
          gleam_stdlib: ">= 0.1.0"
      - version: 0.2.0
        requirements:
          gleam_stdlib: ">= 0.1.0"
"""


@pytest.fixture(autouse=True)
def restore_logging_and_constants(monkeypatch):
    """main() reconfigures the root logger and may override Constants."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    monkeypatch.setattr(Constants, "REGISTRY_URL_HEX", Constants.REGISTRY_URL_HEX)
    monkeypatch.setattr(Constants, "REQUEST_TIMEOUT", Constants.REQUEST_TIMEOUT)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def registry_file(tmp_path):
    path = tmp_path / "registry.yml"
    path.write_text(REGISTRY_YAML, encoding="utf-8")
    return str(path)


def run(argv):
    with pytest.raises(SystemExit) as excinfo:
        hexsolve.main(argv)
    return excinfo.value.code


class TestArgs:
    """Test argument parsing."""

    def test_defaults(self):
        ns = parse_args([])
        assert ns.PACKAGES == []
        assert ns.LOCKS == []
        assert ns.OUTPUT_FORMAT == "text"
        assert ns.LOG_LEVEL is None
        assert not ns.QUIET

    def test_repeatable_packages_and_locks(self):
        ns = parse_args(["-p", "gleam_otp:~> 0.1", "-p", "argv", "-l", "gleam_stdlib:0.1.0"])
        assert ns.PACKAGES == ["gleam_otp:~> 0.1", "argv"]
        assert ns.LOCKS == ["gleam_stdlib:0.1.0"]

    def test_format_is_case_insensitive(self):
        assert parse_args(["-f", "JSON"]).OUTPUT_FORMAT == "json"

    def test_registry_sources_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["--registry-file", "r.yml", "--registry-url", "https://x/"])


class TestRegistryOverrides:
    """Test command line overrides of runtime settings."""

    def test_url_and_timeout(self):
        apply_registry_overrides(parse_args(["--registry-url", "https://mirror.test/api", "--timeout", "5"]))
        assert Constants.REGISTRY_URL_HEX == "https://mirror.test/api/"
        assert Constants.REQUEST_TIMEOUT == 5.0

    def test_non_positive_timeout_ignored(self):
        before = Constants.REQUEST_TIMEOUT
        apply_registry_overrides(parse_args(["--timeout", "0"]))
        assert Constants.REQUEST_TIMEOUT == before


class TestMain:
    """Test end-to-end runs against a registry file."""

    def test_text_output(self, registry_file, capsys):
        code = run(["--registry-file", registry_file, "-p", "gleam_otp:~> 0.1"])
        assert code == ExitCodes.SUCCESS.value
        assert capsys.readouterr().out.splitlines() == ["gleam_otp 0.2.0", "gleam_stdlib 0.3.0"]

    def test_lock_is_respected(self, registry_file, capsys):
        code = run([
            "--registry-file", registry_file,
            "-p", "gleam_otp:~> 0.1",
            "-l", "gleam_stdlib:0.2.0",
        ])
        assert code == ExitCodes.SUCCESS.value
        assert "gleam_stdlib 0.2.0" in capsys.readouterr().out

    def test_json_output_file(self, registry_file, tmp_path, capsys):
        out = tmp_path / "resolution.json"
        code = run([
            "--registry-file", registry_file,
            "-p", "gleam_stdlib:0.1.0",
            "--root", "my_app",
            "-f", "json",
            "-o", str(out),
            "-q",
        ])
        assert code == ExitCodes.SUCCESS.value
        assert capsys.readouterr().out == ""
        assert json.loads(out.read_text(encoding="utf-8")) == {
            "root": "my_app",
            "packages": {"gleam_stdlib": "0.1.0"},
        }

    def test_invalid_token(self, registry_file):
        assert run(["--registry-file", registry_file, "-p", "gleam_otp:~> nope"]) == ExitCodes.FILE_ERROR.value

    def test_invalid_lock(self, registry_file):
        assert run(["--registry-file", registry_file, "-l", "gleam_otp"]) == ExitCodes.FILE_ERROR.value

    def test_missing_registry_file(self, tmp_path):
        assert run(["--registry-file", str(tmp_path / "missing.yml")]) == ExitCodes.FILE_ERROR.value

    def test_unsatisfiable(self, registry_file, capsys):
        code = run(["--registry-file", registry_file, "-p", "gleam_stdlib:~> 9.0"])
        assert code == ExitCodes.RESOLUTION_FAILED.value
        assert "version solving failed" in capsys.readouterr().err

    def test_lock_conflict(self, registry_file, capsys):
        code = run([
            "--registry-file", registry_file,
            "-p", "gleam_stdlib:~> 0.1.0",
            "-l", "gleam_stdlib:0.2.0",
        ])
        assert code == ExitCodes.RESOLUTION_FAILED.value
        assert "locked to 0.2.0" in capsys.readouterr().err

    def test_log_level_from_environment(self, registry_file, monkeypatch):
        monkeypatch.setenv("HEXSOLVE_LOG_LEVEL", "ERROR")
        assert run(["--registry-file", registry_file, "-p", "gleam_stdlib"]) == ExitCodes.SUCCESS.value
        assert logging.getLogger().level == logging.ERROR

    def test_loglevel_flag_beats_environment(self, registry_file, monkeypatch):
        monkeypatch.setenv("HEXSOLVE_LOG_LEVEL", "ERROR")
        assert run(["--registry-file", registry_file, "-p", "gleam_stdlib", "--loglevel", "DEBUG"]) == ExitCodes.SUCCESS.value
        assert logging.getLogger().level == logging.DEBUG

    def test_registry_failure(self, monkeypatch):
        class DownFetcher:
            def fetch(self, name):
                raise hexsolve.FetchError("connection refused")

        monkeypatch.setattr(hexsolve, "build_fetcher", lambda args: DownFetcher())
        assert run(["-p", "gleam_stdlib"]) == ExitCodes.CONNECTION_ERROR.value


class TestRender:
    """Test output rendering."""

    def test_text_is_sorted(self):
        versions = {"b": "2.0.0", "a": "1.0.0"}
        assert hexsolve.render("app", versions, "text") == "a 1.0.0\nb 2.0.0"

    def test_empty_resolution(self):
        assert hexsolve.render("app", {}, "text") == ""
        assert json.loads(hexsolve.render("app", {}, "json")) == {"root": "app", "packages": {}}
