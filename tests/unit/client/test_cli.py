"""Tests for the build machine command line."""

import json

import pytest

from buildsync.client.artifact import read_runtime_artifact
from buildsync.client.cli import main


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    monkeypatch.delenv("BUILDSYNC_CLIENT_API_BASE_URL", raising=False)
    monkeypatch.delenv("CI", raising=False)
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    path = tmp_path / "project_settings.json"
    path.write_text(
        json.dumps({"application_identifier": "com.x", "android.bundle_version_code": 4, "bundle_version": "1.0"}),
        encoding="utf-8",
    )
    return path


def read_settings(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestAssignCommand:
    """Tests for the assign command."""

    def test_local_assign(self, settings_file, tmp_path, capsys):
        """Test local assignment with bundle id from settings and an artifact."""
        code = main(["--settings", str(settings_file), "--local", "assign", "--platform", "Android", "--artifact", str(tmp_path)])

        assert code == 0
        assert capsys.readouterr().out.strip() == "5"
        assert read_settings(settings_file)["android.bundle_version_code"] == 5
        assert read_runtime_artifact(tmp_path) == 5

    def test_fatal_exit_code(self, settings_file):
        """Test that a build number that cannot be assigned exits with 1."""
        code = main(["--settings", str(settings_file), "--local", "assign", "--platform", "webgl"])
        assert code == 1
        assert read_settings(settings_file)["bundle_version"] == "1.0"

    def test_allow_stale_outside_ci(self, settings_file):
        """Test that --allow-stale keeps current settings and succeeds on a workstation."""
        code = main(["--settings", str(settings_file), "--local", "assign", "--platform", "webgl", "--allow-stale"])
        assert code == 0

    def test_allow_stale_ignored_in_ci(self, settings_file, monkeypatch):
        """Test that CI builds always fail hard."""
        monkeypatch.setenv("CI", "true")
        code = main(["--settings", str(settings_file), "--local", "assign", "--platform", "webgl", "--allow-stale"])
        assert code == 1


    def test_no_registry_url_falls_back(self, settings_file, capsys):
        """Test that remote mode without a URL falls back to the project value."""
        assert main(["--settings", str(settings_file), "assign", "--platform", "android"]) == 0
        assert capsys.readouterr().out.strip() == "5"

    def test_no_registry_url_without_fallback(self, settings_file, monkeypatch):
        """Test that remote mode without a URL and with fallback disabled fails the build."""
        monkeypatch.setenv("CI", "true")

        code = main(["--settings", str(settings_file), "--no-fallback", "assign", "--platform", "android"])

        assert code == 1
        assert read_settings(settings_file)["android.bundle_version_code"] == 4

    def test_malformed_settings_file(self, settings_file):
        """Test that an unreadable settings file exits with 1."""
        settings_file.write_text("{not json", encoding="utf-8")
        assert main(["--settings", str(settings_file), "--local", "assign", "--platform", "android"]) == 1


class TestOtherCommands:
    """Tests for argument handling and the remaining commands."""

    def test_unsupported_platform(self, settings_file):
        """Test that an unknown platform exits with 2."""
        assert main(["--settings", str(settings_file), "--local", "assign", "--platform", "switch"]) == 2

    def test_ping_without_url(self, settings_file, capsys):
        """Test that ping reports an unconfigured registry as unreachable."""
        assert main(["ping"]) == 1
        assert capsys.readouterr().out.strip() == "unreachable"

    def test_push_with_unreadable_value(self, settings_file):
        """Test that push fails when the current value cannot be read."""
        assert main(["--settings", str(settings_file), "push", "--platform", "ios"]) == 1

    def test_command_required(self):
        """Test that argparse rejects a missing command."""
        with pytest.raises(SystemExit):
            main([])
