"""Pattern tables for link discovery and validation.

Overlay trigger/container/close selectors, blocking-banner selectors, the
lenient-domain allowlist, request headers and the URL classification
regexes used by the extractor and the validation pool.
"""

import re
from urllib.parse import urlparse


# ---------------------------------------------------------------------------
# Overlay (modal / popover) selectors
# ---------------------------------------------------------------------------

# Elements that are likely to open an overlay when clicked.
MODAL_TRIGGER_SELECTORS = (
    '[data-modal]',
    '[data-toggle="modal"]',
    'button[aria-haspopup="dialog"]',
    '[role="button"][aria-expanded]',
    'button[data-bs-toggle="modal"]',
    'a[data-toggle="modal"]',
)

# Generic container an opened overlay renders into.
OVERLAY_CONTAINER_SELECTOR = '.modal, [role="dialog"], [data-modal-content], .modal-dialog'

# Ranked dismiss controls looked up inside an open overlay.
MODAL_CLOSE_SELECTORS = (
    '.modal-close',
    '[aria-label="Close"]',
    'button[data-dismiss="modal"]',
    'button[data-bs-dismiss="modal"]',
    '.close',
    '[data-close]',
)

# Title lookup inside an open overlay, first match wins.
MODAL_TITLE_SELECTORS = ('.modal-title', 'h1', 'h2', 'h3')

# Banners that can intercept clicks on overlay triggers.
BLOCKING_OVERLAY_SELECTORS = (
    '.announcement-bar',
    '.cookie-banner',
    '.cookie-consent',
    '#onetrust-banner-sdk',
    '#CybotCookiebotDialog',
    '[aria-label*="cookie" i]',
)

# Buttons inside a blocking banner that dismiss it.
BLOCKING_OVERLAY_DISMISS_SELECTORS = (
    'button[aria-label*="close" i]',
    'button[aria-label*="dismiss" i]',
    '.close',
    '[data-dismiss]',
    '[data-close]',
    'button:has-text("Accept")',
    'button:has-text("Accept All")',
    'button:has-text("Got it")',
    'button:has-text("OK")',
    'button:has-text("Close")',
)


# ---------------------------------------------------------------------------
# Link classification
# ---------------------------------------------------------------------------

# href prefixes that never navigate anywhere worth probing.
NON_NAVIGATIONAL_PREFIXES = ('javascript:', 'mailto:', 'tel:', 'sms:', 'data:')

# Nearest structural ancestor (tag or landmark role) -> location label.
LOCATION_LABELS = {
    'nav': 'Navigation',
    'navigation': 'Navigation',
    'header': 'Header',
    'banner': 'Header',
    'footer': 'Footer',
    'contentinfo': 'Footer',
    'aside': 'Sidebar',
    'complementary': 'Sidebar',
}
DEFAULT_LOCATION_LABEL = 'Content'

# A trailing path segment that looks like a file (".html", ".pdf", ".php" ...).
_FILE_EXTENSION_RE = re.compile(r'\.\w{1,5}$')


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

# Platforms that commonly reject unauthenticated automated probes while
# working normally for real users.
LENIENT_DOMAINS = frozenset([
    'facebook.com', 'fb.com',
    'twitter.com', 'x.com',
    'instagram.com',
    'linkedin.com',
    'youtube.com', 'youtu.be',
    'tiktok.com',
    'pinterest.com',
    'reddit.com',
    'snapchat.com',
])

# Statuses on a lenient domain that are treated as "blocked, not broken".
LENIENT_STATUSES = frozenset([400, 403])

BROWSER_HEADERS = {
    'User-Agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    ),
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'DNT': '1',
    'Upgrade-Insecure-Requests': '1',
}


# ---------------------------------------------------------------------------
# Checkers
# ---------------------------------------------------------------------------

def has_file_extension(url: str) -> bool:
    """Return True if the URL path ends in something that looks like a file extension."""
    try:
        path = urlparse(url).path
    except ValueError:
        return False
    return bool(_FILE_EXTENSION_RE.search(path))


def is_lenient_domain(url: str, domains=LENIENT_DOMAINS) -> bool:
    """Check whether the URL's host is (a subdomain of) an allowlisted domain."""
    try:
        hostname = (urlparse(url).hostname or '').lower()
    except ValueError:
        return False
    if not hostname:
        return False
    for domain in domains:
        domain = domain.lower()
        if hostname == domain or hostname.endswith('.' + domain):
            return True
    return False


def location_label_for(landmark: str) -> str:
    """Map a structural ancestor name to a human-readable location label."""
    return LOCATION_LABELS.get((landmark or '').lower(), DEFAULT_LOCATION_LABEL)
