"""
External link checking for skill documentation.

Collects absolute HTTP(S) URLs from Markdown and JSON files, deduplicates
them, and probes each one with retries in fixed-size concurrent batches.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from ..domain.exceptions import (
    ConnectionRefusedProbeError,
    DnsLookupError,
    LinkProbeError,
    ProbeTimeoutError,
)
from ..domain.models import LinkCheckResult, LinkInfo, LinkSource
from ..protocols import HttpProber, ProgressReporter
from ..ui import NullProgressReporter
from .links import extract_markdown_links

MAX_JSON_DEPTH = 64
SCANNED_EXTENSIONS = (".md", ".json")


def is_external_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def extract_json_urls(data: Any, depth: int = 0) -> List[str]:
    """
    Collect every string value that looks like an HTTP(S) URL.

    Nesting deeper than MAX_JSON_DEPTH is not walked.
    """
    if depth > MAX_JSON_DEPTH:
        return []
    if isinstance(data, str):
        return [data] if is_external_url(data) else []
    if isinstance(data, list):
        values: Iterable[Any] = data
    elif isinstance(data, dict):
        values = data.values()
    else:
        return []

    urls: List[str] = []
    for value in values:
        urls.extend(extract_json_urls(value, depth + 1))
    return urls


def find_skill_files(skill_dir: Path) -> List[Path]:
    """Markdown and JSON files under skill_dir, skipping names starting with '_'."""
    return sorted(
        path for path in skill_dir.rglob("*")
        if path.is_file()
        and path.suffix in SCANNED_EXTENSIONS
        and not path.name.startswith("_")
    )


def collect_external_links(
    skill_dir: Path,
    skill_name: str,
    progress: ProgressReporter | None = None,
) -> List[LinkInfo]:
    """
    Gather unique external URLs with the first file they appear in.

    Unparseable JSON files are reported as warnings and skipped.
    """
    progress = progress or NullProgressReporter()
    links: Dict[str, LinkInfo] = {}

    for path in find_skill_files(skill_dir):
        relative = path.relative_to(skill_dir).as_posix()
        content = path.read_text(encoding="utf-8")

        if path.suffix == ".md":
            urls = [url for url in extract_markdown_links(content) if is_external_url(url)]
        else:
            try:
                urls = extract_json_urls(json.loads(content))
            except json.JSONDecodeError:
                progress.warning(f"Warning: Could not parse JSON file {relative}")
                continue

        for url in urls:
            if url not in links:
                links[url] = LinkInfo(url=url, source=LinkSource(skill=skill_name, file=relative))

    return list(links.values())


def sort_results(results: Iterable[LinkCheckResult]) -> List[LinkCheckResult]:
    """Failures first, then by URL."""
    return sorted(results, key=lambda result: (result.success, result.url))


class ExternalLinkChecker:
    """
    Probes external URLs with HEAD-then-GET, timeouts and exponential backoff.
    """

    def __init__(
        self,
        prober: HttpProber,
        timeout: float = 10.0,
        max_retries: int = 2,
        concurrency: int = 5,
        retry_delays: Sequence[float] = (0.1, 0.2, 0.4),
        progress: ProgressReporter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if not retry_delays:
            raise ValueError("retry_delays must not be empty")
        self.prober = prober
        self.timeout = timeout
        self.max_retries = max_retries
        self.concurrency = concurrency
        self.retry_delays = tuple(retry_delays)
        self.progress = progress or NullProgressReporter()
        self._sleep = sleep

    def backoff_delay(self, retry: int) -> float:
        """Delay before the given retry (1-based); the last step repeats."""
        return self.retry_delays[min(retry - 1, len(self.retry_delays) - 1)]

    async def _attempt(self, url: str):
        response = await self.prober.request("HEAD", url, self.timeout)
        if response.ok:
            return response
        return await self.prober.request("GET", url, self.timeout)

    async def check_url(self, link: LinkInfo) -> LinkCheckResult:
        """
        Probe one URL, retrying up to max_retries times.

        HEAD and the GET fallback share one timeout per attempt.
        """
        last_error: Optional[str] = None
        last_status: Optional[int] = None
        retries_used = 0

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                await self._sleep(self.backoff_delay(attempt))
                retries_used += 1

            try:
                response = await asyncio.wait_for(self._attempt(link.url), timeout=self.timeout)
            except (asyncio.TimeoutError, ProbeTimeoutError):
                last_error = "Request timeout"
                continue
            except DnsLookupError:
                last_error = "DNS lookup failed"
                continue
            except ConnectionRefusedProbeError:
                last_error = "Connection refused"
                continue
            except LinkProbeError as e:
                last_error = str(e) or "Unknown error"
                continue

            if response.ok:
                return LinkCheckResult(
                    url=link.url,
                    success=True,
                    status_code=response.status,
                    source=link.source,
                    retries_used=retries_used,
                )
            last_status = response.status
            last_error = f"{response.status} {response.reason}".strip()

        return LinkCheckResult(
            url=link.url,
            success=False,
            status_code=last_status,
            error=last_error,
            source=link.source,
            retries_used=retries_used,
        )

    async def check_all(self, links: Sequence[LinkInfo]) -> List[LinkCheckResult]:
        """
        Check links in batches of `concurrency`; batches run in order.
        """
        results: List[LinkCheckResult] = []
        task = self.progress.start_progress("Checking external links", len(links))
        try:
            for start in range(0, len(links), self.concurrency):
                batch = links[start:start + self.concurrency]
                outcomes = await asyncio.gather(
                    *(self.check_url(link) for link in batch),
                    return_exceptions=True,
                )
                for link, outcome in zip(batch, outcomes):
                    if isinstance(outcome, BaseException):
                        if not isinstance(outcome, Exception):
                            raise outcome
                        outcome = LinkCheckResult(
                            url=link.url,
                            success=False,
                            error=str(outcome) or type(outcome).__name__,
                            source=link.source,
                        )
                    results.append(outcome)
                self.progress.advance_progress(task, len(batch))
        finally:
            self.progress.stop_progress()
        return results

    def run(self, links: Sequence[LinkInfo]) -> List[LinkCheckResult]:
        """Synchronous entry point for check_all()."""
        return asyncio.run(self.check_all(links))
