"""
Port interfaces (protocols) for external dependencies.

These define the contracts that adapters must implement.
"""

from typing import Any, Optional, Protocol

from ..domain.models import ProbeResponse


class SQLEngine(Protocol):
    def ensure_available(self) -> None:
        """
        Make sure the engine can be invoked.

        Raises:
            EngineUnavailableError: When the engine cannot be acquired
        """
        ...

    def validate(self, sql: str) -> Optional[str]:
        """
        Run one SQL snippet in the sandbox.

        Returns:
            The engine's error text, or None when the snippet ran cleanly
        """
        ...


class HttpProber(Protocol):
    async def request(self, method: str, url: str, timeout: float) -> ProbeResponse:
        """
        Issue one HTTP request and return its final status.

        Non-2xx responses are returned, not raised.

        Raises:
            ProbeTimeoutError, DnsLookupError, ConnectionRefusedProbeError,
            LinkProbeError: When no response was received
        """
        ...


class ProgressReporter(Protocol):
    def banner(self, name: str, version: str) -> None:
        ...

    def info(self, message: str) -> None:
        ...

    def warning(self, message: str) -> None:
        ...

    def success(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def start_progress(self, description: str, total: int) -> Any:
        ...

    def advance_progress(self, task: Any, steps: int = 1) -> None:
        ...

    def stop_progress(self) -> None:
        ...

    def table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        ...
