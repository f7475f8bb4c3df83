"""
urllib-based HTTP prober.

Implements the HttpProber protocol. urllib is blocking, so each request runs
in a worker thread; the caller bounds the attempt with its own timeout.
"""

import asyncio
import socket
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..domain.exceptions import (
    ConnectionRefusedProbeError,
    DnsLookupError,
    LinkProbeError,
    ProbeTimeoutError,
)
from ..domain.models import ProbeResponse

USER_AGENT = "chbp-link-checker/1.0 (+https://github.com/ClickHouse/agent-skills)"


class UrllibProber:
    """HTTP HEAD/GET prober that follows redirects."""

    def __init__(self, user_agent: str = USER_AGENT):
        self.user_agent = user_agent

    async def request(self, method: str, url: str, timeout: float) -> ProbeResponse:
        return await asyncio.to_thread(self._request, method, url, timeout)

    def _request(self, method: str, url: str, timeout: float) -> ProbeResponse:
        req = Request(url, method=method, headers={"User-Agent": self.user_agent})
        try:
            with urlopen(req, timeout=timeout) as response:
                return ProbeResponse(status=response.status, reason=response.reason or "")
        except HTTPError as e:
            return ProbeResponse(status=e.code, reason=str(e.reason or ""))
        except URLError as e:
            raise self._classify(e.reason) from e
        except (TimeoutError, socket.timeout) as e:
            raise ProbeTimeoutError("Request timeout") from e
        except (ConnectionRefusedError, OSError) as e:
            raise self._classify(e) from e

    @staticmethod
    def _classify(reason) -> LinkProbeError:
        if isinstance(reason, (TimeoutError, socket.timeout)):
            return ProbeTimeoutError("Request timeout")
        if isinstance(reason, socket.gaierror):
            return DnsLookupError("DNS lookup failed")
        if isinstance(reason, ConnectionRefusedError):
            return ConnectionRefusedProbeError("Connection refused")
        return LinkProbeError(str(reason) or "Unknown error")
