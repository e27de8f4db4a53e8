"""Tests for the npm pack fetcher."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from animus_plugins.errors import FetchError
from animus_plugins.plugins.fetch import NpmPackFetcher


def _completed(returncode=0, stdout="", stderr=""):
    proc = MagicMock()
    proc.returncode = returncode
    proc.stdout = stdout
    proc.stderr = stderr
    return proc


class TestNpmPackFetcher:
    def test_returns_packed_archive(self, tmp_path):
        (tmp_path / "animus-voice-call-1.0.0.tgz").write_bytes(b"tar")
        fetcher = NpmPackFetcher()

        with patch(
            "animus_plugins.plugins.fetch.subprocess.run",
            return_value=_completed(stdout="\nanimus-voice-call-1.0.0.tgz\n"),
        ) as mock_run:
            archive = fetcher.fetch("@animus/voice-call", tmp_path)

        assert archive == tmp_path / "animus-voice-call-1.0.0.tgz"
        cmd = mock_run.call_args[0][0]
        assert cmd == [
            "npm",
            "pack",
            "@animus/voice-call",
            "--pack-destination",
            str(tmp_path),
            "--silent",
        ]
        assert mock_run.call_args[1]["timeout"] == 120

    def test_custom_executable_and_timeout(self, tmp_path):
        (tmp_path / "x.tgz").write_bytes(b"tar")
        fetcher = NpmPackFetcher("/opt/npm", timeout=5)

        with patch(
            "animus_plugins.plugins.fetch.subprocess.run", return_value=_completed(stdout="x.tgz")
        ) as mock_run:
            fetcher.fetch("x", tmp_path)

        assert mock_run.call_args[0][0][0] == "/opt/npm"
        assert mock_run.call_args[1]["timeout"] == 5

    def test_nonzero_exit(self, tmp_path):
        with patch(
            "animus_plugins.plugins.fetch.subprocess.run",
            return_value=_completed(returncode=1, stderr="npm ERR! 404 Not Found"),
        ):
            with pytest.raises(FetchError) as exc_info:
                NpmPackFetcher().fetch("nope", tmp_path)

        assert "404 Not Found" in exc_info.value.message
        assert exc_info.value.spec == "nope"

    def test_missing_executable(self, tmp_path):
        with patch(
            "animus_plugins.plugins.fetch.subprocess.run", side_effect=FileNotFoundError("npm")
        ):
            with pytest.raises(FetchError) as exc_info:
                NpmPackFetcher().fetch("x", tmp_path)
        assert "not found" in exc_info.value.message

    def test_timeout(self, tmp_path):
        with patch(
            "animus_plugins.plugins.fetch.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="npm", timeout=1),
        ):
            with pytest.raises(FetchError) as exc_info:
                NpmPackFetcher(timeout=1).fetch("x", tmp_path)
        assert "timed out" in exc_info.value.message

    def test_empty_output(self, tmp_path):
        with patch(
            "animus_plugins.plugins.fetch.subprocess.run", return_value=_completed(stdout="  \n")
        ):
            with pytest.raises(FetchError):
                NpmPackFetcher().fetch("x", tmp_path)

    def test_archive_not_written(self, tmp_path):
        with patch(
            "animus_plugins.plugins.fetch.subprocess.run",
            return_value=_completed(stdout="ghost.tgz"),
        ):
            with pytest.raises(FetchError) as exc_info:
                NpmPackFetcher().fetch("x", tmp_path)
        assert "missing" in exc_info.value.message
