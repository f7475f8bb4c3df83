"""
clickhouse-local adapter.

Implements the SQLEngine protocol by running the pinned clickhouse binary in
its most restricted local mode, one snippet per invocation.
"""

import os
import platform
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional
from urllib.error import URLError
from urllib.request import urlopen

from ..domain.exceptions import EngineUnavailableError
from ..protocols import ProgressReporter
from ..ui import NullProgressReporter

DOWNLOAD_TIMEOUT_SECONDS = 300
ERROR_MARKERS = ("Exception", "Error")


class ClickHouseLocalEngine:
    """
    Sandboxed clickhouse-local runner.

    The binary is acquired lazily on the first call to ensure_available()
    and reused for every snippet afterwards.
    """

    BINARY_NAME = "clickhouse"

    def __init__(
        self,
        bin_dir: Path,
        version: str,
        release_url: str,
        max_execution_time: int = 10,
        max_memory_usage: int = 100_000_000,
        max_rows_to_read: int = 1_000_000,
        sandbox_path: Path = Path("/nonexistent/chbp-sandbox"),
        progress: ProgressReporter | None = None,
        system: Optional[str] = None,
    ):
        self.bin_dir = bin_dir
        self.version = version
        self.release_url = release_url.rstrip("/")
        self.max_execution_time = max_execution_time
        self.max_memory_usage = max_memory_usage
        self.max_rows_to_read = max_rows_to_read
        self.sandbox_path = sandbox_path
        self.progress = progress or NullProgressReporter()
        self.system = system or platform.system()
        self._available = False

    @property
    def binary_path(self) -> Path:
        return self.bin_dir / self.BINARY_NAME

    def download_url(self) -> Optional[str]:
        """Release URL for this platform, None when unsupported."""
        base = f"{self.release_url}/v{self.version}"
        if self.system == "Darwin":
            return f"{base}/clickhouse-macos"
        if self.system == "Linux":
            return f"{base}/clickhouse"
        return None

    def ensure_available(self) -> None:
        """
        Locate or download the clickhouse binary.

        Raises:
            EngineUnavailableError: On unsupported platforms or failed downloads
        """
        if self._available:
            return

        if self.binary_path.is_file():
            self.progress.success("✓ ClickHouse binary found")
            self._available = True
            return

        url = self.download_url()
        if not url:
            raise EngineUnavailableError(
                f"Unsupported platform '{self.system}'. SQL validation requires macOS or Linux."
            )

        self.progress.info(f"Downloading ClickHouse {self.version} binary...")
        self._download(url)
        self.progress.success("✓ ClickHouse binary downloaded")
        self._available = True

    def _download(self, url: str) -> None:
        partial = self.binary_path.with_name(self.BINARY_NAME + ".part")
        try:
            self.bin_dir.mkdir(parents=True, exist_ok=True)
            with urlopen(url, timeout=DOWNLOAD_TIMEOUT_SECONDS) as response, open(partial, "wb") as out:
                shutil.copyfileobj(response, out)
            os.chmod(partial, 0o755)
            partial.replace(self.binary_path)
        except (URLError, OSError) as e:
            partial.unlink(missing_ok=True)
            raise EngineUnavailableError(f"Failed to download ClickHouse binary from {url}: {e}") from e

    def command(self, query_file: Path) -> List[str]:
        """
        Build the restricted clickhouse-local invocation.

        readonly=2 and allow_ddl=0 reject writes and DDL, the max_* settings
        cap resources, and the file/schema roots point at a missing directory.
        """
        return [
            str(self.binary_path),
            "local",
            "--query-file", str(query_file),
            "--output-format", "Null",
            "--readonly=2",
            "--allow_introspection_functions=0",
            "--allow_ddl=0",
            f"--max_execution_time={self.max_execution_time}",
            f"--max_memory_usage={self.max_memory_usage}",
            f"--max_rows_to_read={self.max_rows_to_read}",
            f"--user_files_path={self.sandbox_path}",
            f"--format_schema_path={self.sandbox_path}",
        ]

    def validate(self, sql: str) -> Optional[str]:
        """
        Run one snippet and return the engine's error text, if any.
        """
        fd, name = tempfile.mkstemp(prefix="clickhouse-validate-", suffix=".sql")
        query_file = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(sql)

            result = subprocess.run(
                self.command(query_file),
                capture_output=True,
                text=True,
                check=False,
            )
            output = "\n".join(part for part in (result.stderr, result.stdout) if part).strip()
            if any(marker in output for marker in ERROR_MARKERS):
                return output
            return None
        except OSError as e:
            return f"Failed to run clickhouse: {e}"
        finally:
            query_file.unlink(missing_ok=True)
