"""Page interaction helpers: lazy-load scrolling and blocking-banner dismissal."""

import logging

from .models import AuditConfig
from .page import PageLike
from .patterns import BLOCKING_OVERLAY_DISMISS_SELECTORS

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# JS snippets
# ---------------------------------------------------------------------------

_SCROLL_HEIGHT_JS = '() => document.body ? document.body.scrollHeight : 0'

_SCROLL_PASS_JS = '''
async ([distance, delay]) => {
    const scrollHeight = document.body.scrollHeight;
    let totalHeight = 0;
    while (totalHeight < scrollHeight) {
        window.scrollBy(0, distance);
        totalHeight += distance;
        await new Promise(resolve => setTimeout(resolve, delay));
    }
}
'''

_SCROLL_TOP_JS = '() => window.scrollTo(0, 0)'


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def scroll_to_bottom(page: PageLike, config: AuditConfig) -> int:
    """Scroll through the whole page in small steps to trigger lazy loading.

    Repeats full passes while the scroll height keeps growing, up to
    ``config.scroll_max_passes``, then returns to the top. Returns the number
    of passes made.
    """
    passes = 0
    try:
        previous_height = 0
        current_height = page.evaluate(_SCROLL_HEIGHT_JS)

        while current_height > previous_height and passes < config.scroll_max_passes:
            previous_height = current_height
            page.evaluate(_SCROLL_PASS_JS, [config.scroll_step_px, config.scroll_step_delay_ms])
            page.wait_for_timeout(config.scroll_settle_ms)

            current_height = page.evaluate(_SCROLL_HEIGHT_JS)
            passes += 1
            if passes % 5 == 0:
                log.info('Scrolling through page (pass %d, height: %spx)', passes, current_height)

            # Grown: give the new section time to finish rendering.
            if current_height > previous_height:
                page.wait_for_timeout(1000)
                current_height = page.evaluate(_SCROLL_HEIGHT_JS)

        page.evaluate(_SCROLL_TOP_JS)
        page.wait_for_timeout(200)
    except Exception as exc:
        log.warning('Scroll failed after %d passes, continuing: %s', passes, exc)
        return passes

    log.info('Page scroll complete (%d passes, final height: %spx)', passes, current_height)
    return passes


def dismiss_overlays(page: PageLike, selectors) -> int:
    """Dismiss cookie/consent/announcement banners that can intercept clicks.

    Returns the number of banners that were found visible.
    """
    found = 0
    for selector in selectors:
        try:
            if page.is_closed():
                break
            overlay = page.locator(selector).first
            if not overlay.is_visible():
                continue
            found += 1

            closed = False
            for close_selector in BLOCKING_OVERLAY_DISMISS_SELECTORS:
                button = overlay.locator(close_selector).first
                if button.is_visible():
                    button.click(force=True, timeout=1000)
                    page.wait_for_timeout(200)
                    closed = True
                    break

            if not closed:
                page.keyboard.press('Escape')
                page.wait_for_timeout(200)
        except Exception as exc:
            log.debug('Overlay dismissal failed for %s: %s', selector, exc)
    return found
