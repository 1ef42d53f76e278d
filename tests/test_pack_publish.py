"""Tests for the pack and publish tasks."""

import logging
import os
import stat
import sys
from unittest.mock import patch

import pytest

from constants import FailurePolicy
from common.process import ToolOutcome, ToolResult
from tasks.pack import build_package, pack_arguments
from tasks.publish import package_path, publish_package, push_arguments

NUSPEC = """<?xml version="1.0"?>
<package xmlns="http://schemas.microsoft.com/packaging/2010/07/nuspec.xsd">
  <metadata>
    <id>MyLib</id>
    <version>1.2.3</version>
  </metadata>
</package>
"""


@pytest.fixture
def nuspec(tmp_path):
    path = tmp_path / "MyLib.nuspec"
    path.write_text(NUSPEC, encoding="utf-8")
    return str(path)


def _fake_nuget(directory, body):
    """Write an executable stand-in for nuget.exe that runs ``body`` as Python."""
    script = directory / "fake-nuget"
    script.write_text(f"#!{sys.executable}\nimport sys, time\n{body}\n", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(script)


class TestPackArguments:
    """Command line built for nuget pack."""

    def test_fixed_flags(self):
        assert pack_arguments("a.nuspec", "out", "base") == [
            "pack", "a.nuspec", "-OutputDirectory", "out", "-BasePath", "base",
            "-NoPackageAnalysis", "-NonInteractive", "-Verbosity", "Detailed",
        ]


class TestBuildPackage:
    """build_package result handling."""

    @patch("tasks.pack.run_tool")
    def test_invokes_nuget_in_output_dir(self, mock_run, nuspec, tmp_path):
        mock_run.return_value = ToolResult(ToolOutcome.CLEAN, 0, stdout="Successfully created package")

        assert build_package(nuspec, str(tmp_path), tool_path="nuget.exe") is True

        command = mock_run.call_args[0][0]
        assert command[0] == "nuget.exe"
        assert command[command.index("-BasePath") + 1] == str(tmp_path)
        assert mock_run.call_args[1]["cwd"] == str(tmp_path)
        assert mock_run.call_args[1]["timeout"] == 30

    @patch("tasks.pack.run_tool")
    def test_timeout_fails(self, mock_run, nuspec, tmp_path, caplog):
        mock_run.return_value = ToolResult(ToolOutcome.TIMED_OUT)

        assert build_package(nuspec, str(tmp_path)) is False
        assert "Timeout, creating the NuGet package took longer than 30 seconds." in caplog.text

    @patch("tasks.pack.run_tool")
    def test_stderr_on_success_exit_fails(self, mock_run, nuspec, tmp_path, caplog):
        mock_run.return_value = ToolResult(ToolOutcome.STDERR_OUTPUT, 0, stderr="The element 'metadata' has invalid child")

        assert build_package(nuspec, str(tmp_path)) is False
        assert "The element 'metadata' has invalid child" in caplog.text

    @patch("tasks.pack.run_tool")
    def test_non_zero_exit_under_default_policy_succeeds(self, mock_run, nuspec, tmp_path):
        mock_run.return_value = ToolResult(ToolOutcome.NON_ZERO_EXIT, 1)
        assert build_package(nuspec, str(tmp_path)) is True
        assert build_package(nuspec, str(tmp_path), policy=FailurePolicy.EXIT_CODE) is False

    @pytest.mark.skipif(sys.platform == "win32", reason="shebang scripts")
    def test_real_process_timeout(self, nuspec, tmp_path, caplog):
        tool = _fake_nuget(tmp_path, "time.sleep(30)")
        assert build_package(nuspec, str(tmp_path), tool_path=tool, timeout=0.5) is False
        assert "Timeout, creating the NuGet package took longer than 0.5 seconds." in caplog.text

    @pytest.mark.skipif(sys.platform == "win32", reason="shebang scripts")
    def test_real_process_stderr(self, nuspec, tmp_path, caplog):
        tool = _fake_nuget(tmp_path, "print('Attempting to build package'); sys.stderr.write('Cannot create a package that has no dependencies nor content.')")
        with caplog.at_level(logging.INFO):
            assert build_package(nuspec, str(tmp_path), tool_path=tool) is False
        assert "Cannot create a package that has no dependencies nor content." in caplog.text
        assert "Attempting to build package" in caplog.text

    @pytest.mark.skipif(sys.platform == "win32", reason="shebang scripts")
    def test_real_process_success(self, nuspec, tmp_path):
        tool = _fake_nuget(tmp_path, "assert sys.argv[1] == 'pack'; print('Successfully created package')")
        assert build_package(nuspec, str(tmp_path), tool_path=tool) is True


class TestPackagePath:
    """Package file name derived from the manifest."""

    def test_name_and_version(self, nuspec, tmp_path):
        assert package_path(nuspec, str(tmp_path / "out")) == os.path.join(str(tmp_path / "out"), "MyLib.1.2.3.nupkg")


class TestPushArguments:
    """Command line built for nuget push."""

    def test_minimal(self):
        assert push_arguments("p.nupkg") == ["push", "p.nupkg", "-NonInteractive"]

    def test_with_key_and_source(self):
        assert push_arguments("p.nupkg", server="https://feed", api_key="k") == [
            "push", "p.nupkg", "-ApiKey", "k", "-Source", "https://feed", "-NonInteractive",
        ]

    def test_blank_values_are_omitted(self):
        assert push_arguments("p.nupkg", server="  ", api_key="") == ["push", "p.nupkg", "-NonInteractive"]


class TestPublishPackage:
    """publish_package result handling."""

    @patch("tasks.publish.run_tool")
    def test_pushes_expected_package(self, mock_run, nuspec, tmp_path, monkeypatch):
        monkeypatch.delenv("NUGET_API_KEY", raising=False)
        mock_run.return_value = ToolResult(ToolOutcome.CLEAN, 0)

        assert publish_package(nuspec, str(tmp_path), server="https://feed") is True

        command = mock_run.call_args[0][0]
        assert command[1:3] == ["push", os.path.join(str(tmp_path), "MyLib.1.2.3.nupkg")]
        assert "-ApiKey" not in command

    @patch("tasks.publish.run_tool")
    def test_api_key_from_environment_is_masked(self, mock_run, nuspec, tmp_path, monkeypatch, caplog):
        monkeypatch.setenv("NUGET_API_KEY", "secret-key")
        mock_run.return_value = ToolResult(ToolOutcome.CLEAN, 0)

        with caplog.at_level(logging.DEBUG):
            assert publish_package(nuspec, str(tmp_path)) is True

        command = mock_run.call_args[0][0]
        assert command[command.index("-ApiKey") + 1] == "secret-key"
        assert mock_run.call_args[1]["secrets"] == ["secret-key"]
        assert "secret-key" not in caplog.text

    @patch("tasks.publish.run_tool")
    def test_timeout_fails(self, mock_run, nuspec, tmp_path, caplog):
        mock_run.return_value = ToolResult(ToolOutcome.TIMED_OUT)
        assert publish_package(nuspec, str(tmp_path)) is False
        assert "Timeout, publishing the NuGet package took longer than 30 seconds." in caplog.text

    @patch("tasks.publish.run_tool")
    def test_stderr_fails(self, mock_run, nuspec, tmp_path, caplog):
        mock_run.return_value = ToolResult(ToolOutcome.STDERR_OUTPUT, 0, stderr="Response status code does not indicate success: 409")
        assert publish_package(nuspec, str(tmp_path)) is False
        assert "409" in caplog.text

    @patch("tasks.publish.run_tool")
    def test_invalid_manifest_fails_without_running(self, mock_run, tmp_path):
        bad = tmp_path / "Bad.nuspec"
        bad.write_text("<package><files /></package>", encoding="utf-8")
        assert publish_package(str(bad), str(tmp_path)) is False
        mock_run.assert_not_called()

    @patch("tasks.publish.run_tool")
    def test_missing_version_fails(self, mock_run, tmp_path):
        spec = tmp_path / "NoVersion.nuspec"
        spec.write_text("<package><metadata><id>X</id></metadata></package>", encoding="utf-8")
        assert publish_package(str(spec), str(tmp_path)) is False
        mock_run.assert_not_called()
