"""Link validation pool.

Checks candidate URLs in sequential batches of ``concurrency`` parallel
probes. Each check tries a HEAD probe, falls back to a streamed GET, retries
extension-less URLs once with a trailing slash, and applies leniency for
allowlisted platforms that block automated requests.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional
from urllib.parse import urlparse, urlunparse

import httpx

from .models import AuditConfig, LinkCandidate, ValidationOutcome
from .patterns import (
    BROWSER_HEADERS,
    LENIENT_DOMAINS,
    LENIENT_STATUSES,
    has_file_extension,
    is_lenient_domain,
)

log = logging.getLogger(__name__)

# Errors that mean "no HTTP status was obtained".
_TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)

# HEAD answers that say nothing about the resource itself.
_HEAD_UNSUPPORTED = frozenset([405, 501])


def with_trailing_slash(url: str) -> str:
    parsed = urlparse(url)
    return urlunparse(parsed._replace(path=parsed.path + '/'))


class LinkChecker:
    """Checks one URL at a time; safe to share across worker threads."""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = 5.0,
        headers: Optional[dict] = None,
        lenient_domains: Iterable[str] = LENIENT_DOMAINS,
        max_redirects: int = 10,
    ):
        self._owns_client = client is None
        self.client = client or httpx.Client(
            headers=headers or BROWSER_HEADERS,
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            max_redirects=max_redirects,
        )
        self.lenient_domains = frozenset(d.lower() for d in lenient_domains)

    @classmethod
    def from_config(cls, config: AuditConfig, client: Optional[httpx.Client] = None) -> 'LinkChecker':
        return cls(
            client=client,
            timeout=config.request_timeout_s,
            lenient_domains=config.lenient_domains,
            max_redirects=config.max_redirects,
        )

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> 'LinkChecker':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    def _get(self, url: str) -> tuple[int, str]:
        # Streamed so only the status line and headers are read.
        with self.client.stream('GET', url) as response:
            return response.status_code, response.reason_phrase

    def probe(self, url: str) -> tuple[int, str]:
        """Return (status, reason) for ``url``; raises on transport failure."""
        if is_lenient_domain(url, self.lenient_domains):
            # These platforms commonly refuse HEAD outright.
            return self._get(url)

        try:
            response = self.client.head(url)
        except _TRANSPORT_ERRORS as exc:
            log.debug('HEAD failed for %s, falling back to GET: %s', url, exc)
            return self._get(url)

        if response.status_code in _HEAD_UNSUPPORTED:
            return self._get(url)
        return response.status_code, response.reason_phrase

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def check(self, url: str) -> ValidationOutcome:
        """Classify ``url`` as broken or not."""
        lenient = is_lenient_domain(url, self.lenient_domains)

        try:
            status, reason = self.probe(url)
        except _TRANSPORT_ERRORS as exc:
            message = str(exc) or exc.__class__.__name__
            if lenient:
                return ValidationOutcome(
                    url=url,
                    status=0,
                    status_text='Error',
                    is_broken=False,
                    warning=f'Platform link failed automated check ({message}), but should work in a browser',
                )
            return ValidationOutcome(url=url, status=0, status_text='Error', is_broken=True, error=message)

        if status < 400:
            return ValidationOutcome(url=url, status=status, status_text=reason, is_broken=False)

        retried = False
        retry_note = None
        path = urlparse(url).path
        if path and not path.endswith('/') and not has_file_extension(url):
            retried = True
            slash_url = with_trailing_slash(url)
            try:
                retry_status, retry_reason = self.probe(slash_url)
            except _TRANSPORT_ERRORS as exc:
                log.debug('Trailing-slash retry failed for %s: %s', slash_url, exc)
                retry_status, retry_reason = 0, 'Error'

            if 0 < retry_status < 400:
                return ValidationOutcome(
                    url=url,
                    status=retry_status,
                    status_text=retry_reason,
                    is_broken=False,
                    retry_note=f'Works with trailing slash: {slash_url}',
                    retried=True,
                )
            retry_note = f'Retried with trailing slash: {slash_url} ({retry_status or "error"})'

        if lenient and status in LENIENT_STATUSES:
            return ValidationOutcome(
                url=url,
                status=status,
                status_text=reason,
                is_broken=False,
                warning=(f'Platform may block automated requests ({status} {reason}), '
                         f'but should work in a browser'),
                retry_note=retry_note,
                retried=retried,
            )

        return ValidationOutcome(
            url=url,
            status=status,
            status_text=reason,
            is_broken=True,
            error=f'HTTP {status} {reason}'.strip(),
            retry_note=retry_note,
            retried=retried,
        )


def iter_batches(items: list, size: int):
    """Yield consecutive slices of ``items`` holding at most ``size`` entries."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _safe_check(checker, url: str) -> ValidationOutcome:
    try:
        return checker.check(url)
    except Exception as exc:
        log.warning('Unexpected error checking %s: %s', url, exc)
        return ValidationOutcome(url=url, status=0, status_text='Error', is_broken=True, error=str(exc))


def validate_links(
    candidates: Iterable,
    concurrency: int = 10,
    checker=None,
    config: Optional[AuditConfig] = None,
    progress_callback=None,
) -> list[ValidationOutcome]:
    """Check every candidate's URL and return one outcome per unique URL.

    Args:
        candidates: ``LinkCandidate`` objects or plain URL strings.
        concurrency: Batch size, and the ceiling on in-flight probes.
        checker: Object with a ``check(url) -> ValidationOutcome`` method.
            Defaults to a :class:`LinkChecker` built from ``config``.
        config: Used only when ``checker`` is not supplied.
        progress_callback: Optional callable(str) for live status.
    """
    if concurrency < 1:
        raise ValueError('concurrency must be at least 1')
    _progress = progress_callback or (lambda msg: None)

    urls = list(dict.fromkeys(
        c.normalized_url if isinstance(c, LinkCandidate) else c for c in candidates
    ))
    if not urls:
        return []

    owns_checker = checker is None
    if owns_checker:
        checker = LinkChecker.from_config(config or AuditConfig())

    total_batches = (len(urls) + concurrency - 1) // concurrency
    log.info('Checking %d link(s) in %d batch(es) of up to %d', len(urls), total_batches, concurrency)

    outcomes: list[ValidationOutcome] = []
    try:
        with ThreadPoolExecutor(max_workers=concurrency) as executor:
            for number, batch in enumerate(iter_batches(urls, concurrency), start=1):
                _progress(f'CHECKING LINKS: BATCH {number}/{total_batches}')
                futures = [executor.submit(_safe_check, checker, url) for url in batch]
                # The next batch starts only after every probe in this one settled.
                outcomes.extend(future.result() for future in futures)
    finally:
        if owns_checker:
            checker.close()

    needs_slash = [o for o in outcomes if (o.retry_note or '').startswith('Works with trailing slash')]
    if needs_slash:
        log.warning('%d link(s) work but need a trailing slash:', len(needs_slash))
        for outcome in needs_slash:
            log.warning('  %s -> %s', outcome.url, outcome.retry_note)

    broken = sum(1 for o in outcomes if o.is_broken)
    log.info('Link check complete: %d broken of %d', broken, len(outcomes))
    return outcomes
