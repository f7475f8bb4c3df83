"""Tests for the clickhouse-local adapter."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch
from urllib.error import URLError

import pytest

from chbp.domain.exceptions import EngineUnavailableError
from chbp.infrastructure.clickhouse import ClickHouseLocalEngine

RELEASE_URL = "https://github.com/ClickHouse/ClickHouse/releases/download"


@pytest.fixture
def make_engine(tmp_path):
    def _make(system: str = "Linux") -> ClickHouseLocalEngine:
        return ClickHouseLocalEngine(
            bin_dir=tmp_path / "bin",
            version="24.1.8.22",
            release_url=RELEASE_URL,
            system=system,
        )
    return _make


def completed(stderr: str = "", stdout: str = "", returncode: int = 0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestAcquisition:
    """Tests for download URL selection and ensure_available."""

    def test_linux_url(self, make_engine):
        assert make_engine("Linux").download_url() == f"{RELEASE_URL}/v24.1.8.22/clickhouse"

    def test_macos_url(self, make_engine):
        assert make_engine("Darwin").download_url() == f"{RELEASE_URL}/v24.1.8.22/clickhouse-macos"

    def test_unsupported_platform(self, make_engine):
        engine = make_engine("Windows")
        assert engine.download_url() is None
        with pytest.raises(EngineUnavailableError, match="Unsupported platform"):
            engine.ensure_available()

    def test_existing_binary_is_reused(self, make_engine):
        engine = make_engine()
        engine.bin_dir.mkdir()
        engine.binary_path.write_text("#!/bin/sh\n")

        with patch("chbp.infrastructure.clickhouse.urlopen") as mock_urlopen:
            engine.ensure_available()
            engine.ensure_available()

        mock_urlopen.assert_not_called()

    def test_download_failure_raises_unavailable(self, make_engine):
        engine = make_engine()

        with patch("chbp.infrastructure.clickhouse.urlopen", side_effect=URLError("offline")):
            with pytest.raises(EngineUnavailableError, match="Failed to download"):
                engine.ensure_available()

        assert not engine.binary_path.exists()
        assert not (engine.bin_dir / "clickhouse.part").exists()

    def test_download_writes_executable(self, make_engine):
        engine = make_engine()
        response = MagicMock()
        response.read.side_effect = [b"binary-bytes", b""]
        response.__enter__.return_value = response

        with patch("chbp.infrastructure.clickhouse.urlopen", return_value=response) as mock_urlopen:
            engine.ensure_available()
            engine.ensure_available()

        mock_urlopen.assert_called_once()
        assert engine.binary_path.read_bytes() == b"binary-bytes"
        assert engine.binary_path.stat().st_mode & 0o111


class TestSandboxedExecution:
    """Tests for validate() and the restricted command line."""

    def test_command_is_restricted(self, make_engine):
        engine = make_engine()
        command = engine.command(Path("/tmp/q.sql"))

        assert command[:2] == [str(engine.binary_path), "local"]
        for flag in (
            "--readonly=2",
            "--allow_introspection_functions=0",
            "--allow_ddl=0",
            "--max_execution_time=10",
            "--max_memory_usage=100000000",
            "--max_rows_to_read=1000000",
            "--user_files_path=/nonexistent/chbp-sandbox",
            "--format_schema_path=/nonexistent/chbp-sandbox",
        ):
            assert flag in command

    def test_clean_run_returns_none(self, make_engine):
        with patch("chbp.infrastructure.clickhouse.subprocess.run", return_value=completed()):
            assert make_engine().validate("SELECT 1") is None

    def test_exception_text_is_returned(self, make_engine):
        stderr = "Code: 164. DB::Exception: Cannot execute query in readonly mode. (READONLY)\n"
        with patch("chbp.infrastructure.clickhouse.subprocess.run", return_value=completed(stderr=stderr, returncode=164)):
            result = make_engine().validate("ALTER TABLE foo UPDATE x=1 WHERE 1")

        assert result == stderr.strip()

    def test_sql_is_passed_through_temp_file(self, make_engine):
        seen = {}

        def fake_run(command, **kwargs):
            query_file = Path(command[command.index("--query-file") + 1])
            seen["path"] = query_file
            seen["sql"] = query_file.read_text(encoding="utf-8")
            return completed()

        with patch("chbp.infrastructure.clickhouse.subprocess.run", side_effect=fake_run):
            make_engine().validate("SELECT 42")

        assert seen["sql"] == "SELECT 42"
        assert not seen["path"].exists()

    def test_temp_file_removed_on_unexpected_error(self, make_engine):
        seen = {}

        def fake_run(command, **kwargs):
            seen["path"] = Path(command[command.index("--query-file") + 1])
            raise RuntimeError("boom")

        with patch("chbp.infrastructure.clickhouse.subprocess.run", side_effect=fake_run):
            with pytest.raises(RuntimeError):
                make_engine().validate("SELECT 1")

        assert not seen["path"].exists()

    def test_missing_binary_reported_as_error(self, make_engine):
        with patch("chbp.infrastructure.clickhouse.subprocess.run", side_effect=FileNotFoundError("no clickhouse")):
            result = make_engine().validate("SELECT 1")

        assert result.startswith("Failed to run clickhouse")
