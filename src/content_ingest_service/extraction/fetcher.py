"""HTML acquisition with direct fetch and ordered proxy fallback."""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from urllib.parse import quote, urlparse

import httpx

from content_ingest_service.config import BROWSER_ACCEPT, BROWSER_USER_AGENT, DEFAULT_FETCH_PROXIES
from content_ingest_service.logging_config import get_logger

from .exceptions import ContentTooLargeError, FetchError, FetchTimeoutError, ValidationError
from .utils import is_valid_url

logger = get_logger(__name__)

FETCH_FAILED_MESSAGE = "All direct and proxy fetch attempts failed or timed out"


class FetchCause(str, Enum):
    """Why a single fetch attempt failed."""

    HTTP_STATUS = "http_status"
    NETWORK = "network"
    TIMEOUT = "timeout"
    EMPTY = "empty"


@dataclass(frozen=True)
class FetchOutcome:
    """Tagged result of one attempt: success(html) or failure(cause)."""

    html: str | None = None
    cause: FetchCause | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.cause is None

    @classmethod
    def success(cls, html: str) -> "FetchOutcome":
        return cls(html=html)

    @classmethod
    def failure(cls, cause: FetchCause, detail: str = "") -> "FetchOutcome":
        return cls(cause=cause, detail=detail)


@dataclass
class FetchAttempt:
    """One try during HTML acquisition."""

    strategy_label: str
    started_at: datetime
    timed_out_after_ms: int
    outcome: FetchOutcome | None = None


@dataclass(frozen=True)
class FetchStrategy:
    """A named way of turning the target URL into the URL actually requested."""

    label: str
    build_url: Callable[[str], str]


def direct_strategy() -> FetchStrategy:
    """Request the target URL itself."""
    return FetchStrategy(label="direct", build_url=lambda url: url)


def proxy_strategy(template: str) -> FetchStrategy:
    """Wrap the target URL in a proxy template containing ``{url}``."""

    def build(url: str) -> str:
        return template.replace("{url}", quote(url, safe=""))

    return FetchStrategy(label=f"proxy:{urlparse(template).netloc}", build_url=build)


def build_strategies(proxies: Sequence[str]) -> list[FetchStrategy]:
    """Direct attempt first, then one strategy per proxy in declaration order."""
    return [direct_strategy(), *(proxy_strategy(template) for template in proxies)]


class HtmlFetcher:
    """Resolve a URL to HTML via direct fetch and an ordered proxy list.

    Design Decision: Fallback chain as data
    - Strategies are a list tried strictly in order; the first success wins
    - Each proxy is tried exactly once (no retries, no backoff)
    - Every attempt has its own timeout so one slow proxy cannot stall the chain

    Trade-offs:
    - ✅ Failure attribution is unambiguous (one attempt in flight at a time)
    - ✅ Adding/reordering proxies is a configuration change
    - ❌ Worst-case latency is len(strategies) * timeout
    """

    def __init__(
        self,
        timeout_seconds: float = 15.0,
        proxies: Sequence[str] | None = None,
        user_agent: str = BROWSER_USER_AGENT,
        accept: str = BROWSER_ACCEPT,
        max_content_size_bytes: int = 20 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize fetcher.

        Args:
            timeout_seconds: Per-attempt timeout
            proxies: Proxy URL templates (defaults to the built-in list)
            user_agent: User-Agent header for requests
            accept: Accept header for requests
            max_content_size_bytes: Maximum response size
            transport: Optional httpx transport (used by tests)
        """
        self.timeout_seconds = timeout_seconds
        self.strategies = build_strategies(
            DEFAULT_FETCH_PROXIES if proxies is None else proxies
        )
        self.max_content_size_bytes = max_content_size_bytes
        self._headers = {"User-Agent": user_agent, "Accept": accept}
        self._transport = transport

    async def fetch_html(self, url: str) -> str:
        """Fetch HTML for an absolute http(s) URL.

        Args:
            url: URL to fetch

        Returns:
            Response body of the first successful attempt

        Raises:
            ValidationError: If the URL is not absolute http/https
            ContentTooLargeError: If a response exceeds the size limit
            FetchTimeoutError: If every attempt failed and the last one timed out
            FetchError: If every attempt failed
        """
        if not is_valid_url(url):
            raise ValidationError("Invalid URL provided")

        attempts: list[FetchAttempt] = []

        async with httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=True,
            headers=self._headers,
            timeout=self.timeout_seconds,
        ) as client:
            for strategy in self.strategies:
                attempt = FetchAttempt(
                    strategy_label=strategy.label,
                    started_at=datetime.now(UTC),
                    timed_out_after_ms=int(self.timeout_seconds * 1000),
                )
                attempt.outcome = await self._attempt(client, strategy.build_url(url))
                attempts.append(attempt)

                if attempt.outcome.ok and attempt.outcome.html is not None:
                    logger.info("fetch_attempt_succeeded", strategy=strategy.label, url=url)
                    return attempt.outcome.html

                logger.warning(
                    "fetch_attempt_failed",
                    strategy=strategy.label,
                    cause=attempt.outcome.cause,
                    detail=attempt.outcome.detail,
                )

        terminal = attempts[-1].outcome if attempts else None
        cause = terminal.cause if terminal else None
        logger.error("fetch_chain_exhausted", url=url, attempts=len(attempts), cause=cause)

        if cause == FetchCause.TIMEOUT:
            raise FetchTimeoutError(FETCH_FAILED_MESSAGE, attempts=attempts, cause=cause.value)
        raise FetchError(
            FETCH_FAILED_MESSAGE,
            attempts=attempts,
            cause=cause.value if cause else None,
        )

    async def _attempt(self, client: httpx.AsyncClient, target: str) -> FetchOutcome:
        """Run one bounded GET and classify the result."""
        try:
            async with asyncio.timeout(self.timeout_seconds):
                response = await client.get(target)
        except (TimeoutError, httpx.TimeoutException) as e:
            return FetchOutcome.failure(
                FetchCause.TIMEOUT, str(e) or f"timed out after {self.timeout_seconds}s"
            )
        except httpx.HTTPError as e:
            return FetchOutcome.failure(FetchCause.NETWORK, str(e) or type(e).__name__)

        if not response.is_success:
            return FetchOutcome.failure(FetchCause.HTTP_STATUS, f"HTTP {response.status_code}")

        content_length = len(response.content)
        if content_length > self.max_content_size_bytes:
            raise ContentTooLargeError(
                f"Content size {content_length} exceeds limit {self.max_content_size_bytes}"
            )

        html = response.text
        if not html.strip():
            return FetchOutcome.failure(FetchCause.EMPTY, "empty response body")
        return FetchOutcome.success(html)
