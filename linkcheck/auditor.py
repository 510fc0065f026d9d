"""Audit orchestrator: drives the browser through discovery and validation."""

import logging
from typing import Iterable, Union

from playwright.sync_api import Error as PlaywrightError, sync_playwright

from .errors import PageLoadError
from .extractor import extract_links
from .models import AuditConfig, PageAudit
from .page import PageLike
from .page_helpers import dismiss_overlays
from .validation import LinkChecker, validate_links

log = logging.getLogger(__name__)


def _normalise_start_url(url: str) -> str:
    url = url.strip()
    if not url:
        raise ValueError('Empty URL')
    if not url.startswith('http'):
        url = 'https://' + url
    return url


def audit_page(
    page: PageLike,
    url: str,
    config: AuditConfig,
    checker=None,
    progress_callback=None,
) -> PageAudit:
    """Navigate to ``url``, discover its links and validate them.

    Raises:
        PageLoadError: navigation failed or DOMContentLoaded was never
            reached. Nothing else escapes; every other problem degrades to
            a partial result.
    """
    _progress = progress_callback or (lambda msg: None)
    audit = PageAudit(url=url)

    _progress(f'NAVIGATING TO {url}')
    try:
        page.goto(url, wait_until='domcontentloaded', timeout=config.navigation_timeout_ms)
    except PlaywrightError as exc:
        raise PageLoadError(url, str(exc)) from exc

    audit.final_url = page.url
    if audit.final_url != url:
        log.info('Redirected from %s to %s', url, audit.final_url)

    if config.dismiss_overlays:
        dismiss_overlays(page, config.blocking_overlay_selectors)

    _progress('DISCOVERING LINKS...')
    audit.candidates = extract_links(page, audit.final_url or url, config)

    _progress(f'FOUND {len(audit.candidates)} LINKS, VALIDATING')
    outcomes = validate_links(
        audit.candidates,
        concurrency=config.concurrency,
        checker=checker,
        config=config,
        progress_callback=_progress,
    )
    audit.outcomes = {o.url: o for o in outcomes}

    log.info('%s: %d link(s), %d broken', url, len(audit.candidates), len(audit.broken))
    return audit


def run_audit(
    urls: Union[str, Iterable[str]],
    config: AuditConfig,
    progress_callback=None,
) -> list[PageAudit]:
    """Audit each URL in turn with one browser and one shared HTTP client.

    A page that fails to load, or whose audit fails part way, is recorded
    with ``error`` set and the run moves on to the next URL.

    Args:
        urls: A URL or an iterable of URLs.
        config: Audit configuration.
        progress_callback: Optional callable(str). Called with human-readable
            progress messages so a UI or worker can display live status.
    """
    _progress = progress_callback or (lambda msg: None)
    if isinstance(urls, str):
        urls = [urls]
    targets = [_normalise_start_url(u) for u in urls]

    audits: list[PageAudit] = []
    with sync_playwright() as p, LinkChecker.from_config(config) as checker:
        _progress('LAUNCHING BROWSER...')
        browser = p.chromium.launch(headless=config.headless, slow_mo=config.browser_slow_mo_ms)
        context = browser.new_context(viewport={'width': config.viewport_width, 'height': config.viewport_height})
        page = context.new_page()

        for idx, url in enumerate(targets, start=1):
            if page.is_closed():
                page = context.new_page()
            _progress(f'AUDITING PAGE {idx}/{len(targets)}: {url}')
            log.info('Auditing page %d/%d: %s', idx, len(targets), url)
            try:
                audits.append(audit_page(page, url, config, checker=checker, progress_callback=_progress))
            except PageLoadError as exc:
                log.warning('Skipping %s: %s', url, exc)
                _progress(f'FAILED: {url} ({exc.reason})')
                audits.append(PageAudit(url=url, error=str(exc)))
            except Exception as exc:
                log.warning('Failed to audit %s: %s', url, exc)
                _progress(f'FAILED: {url} ({exc})')
                audits.append(PageAudit(url=url, error=str(exc) or exc.__class__.__name__))

        browser.close()

    _progress('AUDIT COMPLETE')
    return audits
