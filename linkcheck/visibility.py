"""Decide whether an element is visible to a real user."""

import logging

from .page import LocatorLike

log = logging.getLogger(__name__)


_VISIBILITY_JS = '''
(el) => {
    const style = window.getComputedStyle(el);
    const rect = el.getBoundingClientRect();
    return {
        display: style.display,
        visibility: style.visibility,
        opacity: style.opacity,
        width: rect.width,
        height: rect.height,
        ariaHidden: el.getAttribute('aria-hidden')
    };
}
'''


def _opacity(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 1.0


def check_visibility(info: dict) -> bool:
    """Apply the visibility rules to a computed style/geometry snapshot.

    Order: display, visibility, opacity, box size, aria-hidden. Position
    relative to the viewport is ignored; content reachable by scrolling
    counts as visible.
    """
    if info.get('display') == 'none':
        return False
    if info.get('visibility') in ('hidden', 'collapse'):
        return False
    if _opacity(info.get('opacity')) == 0:
        return False
    if not info.get('width') or not info.get('height'):
        return False
    if info.get('ariaHidden') == 'true':
        return False
    return True


def is_visible(element: LocatorLike) -> bool:
    """Return True if ``element`` is visible; never raises."""
    try:
        if not element.is_visible():
            return False
        info = element.evaluate(_VISIBILITY_JS)
    except Exception as exc:
        log.debug('Visibility check failed: %s', exc)
        return False
    if not isinstance(info, dict):
        return False
    return check_visibility(info)
