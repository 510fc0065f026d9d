"""URL helpers: href resolution, normalization and candidate de-duplication."""

import logging
from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse, urlunparse

from .models import LinkCandidate
from .patterns import NON_NAVIGATIONAL_PREFIXES

log = logging.getLogger(__name__)


def is_navigational(href: str) -> bool:
    """Return False for empty hrefs, script/mail/phone schemes and in-page anchors."""
    if not href:
        return False
    value = href.strip().lower()
    if not value or value.startswith('#'):
        return False
    return not value.startswith(NON_NAVIGATIONAL_PREFIXES)


def normalize_url(href: str, base_url: str) -> Optional[str]:
    """Resolve ``href`` against ``base_url`` and normalize it.

    The fragment is dropped and a single trailing slash removed so that
    ``/about``, ``/about/`` and ``/about#team`` share one identity.
    Returns None for anything that is not an http(s) navigation target.
    """
    if not is_navigational(href):
        return None

    try:
        parsed = urlparse(urljoin(base_url, href.strip()))
    except ValueError:
        log.debug('Invalid URL skipped: %s', href)
        return None

    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        return None

    normalized = urlunparse(parsed._replace(fragment=''))
    if normalized.endswith('/'):
        normalized = normalized[:-1]
    return normalized


def dedupe_candidates(candidates: Iterable[LinkCandidate]) -> list[LinkCandidate]:
    """Collapse candidates sharing a ``normalized_url``; the first one seen wins."""
    unique: dict[str, LinkCandidate] = {}
    for candidate in candidates:
        if candidate.normalized_url not in unique:
            unique[candidate.normalized_url] = candidate
    return list(unique.values())
