"""Durable selector synthesis for discovered elements.

A selector is built by walking an ordered chain of strategies; each takes
the element description produced by :func:`describe_element` and returns a
selector string or None. The first strategy that answers wins, and the bare
tag name terminates the chain, so :func:`synthesize` never fails.

Priority order:
  1. ``#id``                                      -> element id
  2. ``#parent a:has-text("Contact us")``         -> parent-scoped text
  3. ``a[href*="pricing"]``                       -> last href path segment
  4. ``a.btn.btn-primary``                        -> classes
  5. ``a``                                        -> tag
"""

import logging
import re
from typing import Callable, Optional
from urllib.parse import urlparse

from .page import LocatorLike

log = logging.getLogger(__name__)


# Single browser round-trip: everything the extractor, the modal engine and
# the selector chain need to know about one element.
_DESCRIBE_JS = '''
(el) => {
    const landmarkTags = ['nav', 'header', 'footer', 'aside'];
    const landmarkRoles = ['navigation', 'banner', 'contentinfo', 'complementary'];
    let landmark = '';
    for (let node = el.parentElement; node; node = node.parentElement) {
        const tag = node.tagName.toLowerCase();
        const role = (node.getAttribute('role') || '').toLowerCase();
        if (landmarkTags.includes(tag)) { landmark = tag; break; }
        if (landmarkRoles.includes(role)) { landmark = role; break; }
    }
    const parent = el.parentElement;
    const parentClass = parent && typeof parent.className === 'string'
        ? parent.className.trim().split(/\\s+/)[0] || ''
        : '';
    return {
        tag: el.tagName.toLowerCase(),
        id: el.id || '',
        text: (el.innerText || el.textContent || '').trim().replace(/\\s+/g, ' '),
        ariaLabel: el.getAttribute('aria-label') || '',
        title: el.getAttribute('title') || '',
        classes: typeof el.className === 'string' ? el.className : '',
        href: el.getAttribute('href') || '',
        parentId: parent ? parent.id || '' : '',
        parentClass,
        landmark,
        modalRef: el.getAttribute('data-modal') || el.getAttribute('data-target')
            || el.getAttribute('data-bs-target') || el.getAttribute('aria-controls') || ''
    };
}
'''

MAX_TEXT_LENGTH = 30

# Identifiers usable verbatim in #id / .class selectors.
_CSS_IDENT_RE = re.compile(r'^-?[_a-zA-Z][_a-zA-Z0-9-]*$')


def _quote(value: str) -> str:
    return value.replace('\\', '\\\\').replace('"', '\\"')


def _id_selector(identifier: str) -> str:
    if _CSS_IDENT_RE.match(identifier):
        return f'#{identifier}'
    return f'[id="{_quote(identifier)}"]'


# ---------------------------------------------------------------------------
# Strategies (element description -> selector or None)
# ---------------------------------------------------------------------------

def by_id(data: dict) -> Optional[str]:
    element_id = (data.get('id') or '').strip()
    return _id_selector(element_id) if element_id else None


def by_parent_text(data: dict) -> Optional[str]:
    text = (data.get('text') or '').strip()[:MAX_TEXT_LENGTH].strip()
    if not text:
        return None

    parent_id = (data.get('parentId') or '').strip()
    parent_class = (data.get('parentClass') or '').strip()
    if parent_id:
        qualifier = _id_selector(parent_id)
    elif parent_class and _CSS_IDENT_RE.match(parent_class):
        qualifier = f'.{parent_class}'
    else:
        return None

    return f'{qualifier} {data.get("tag") or "a"}:has-text("{_quote(text)}")'


def by_href_segment(data: dict) -> Optional[str]:
    href = (data.get('href') or '').strip()
    if not href:
        return None
    segments = [s for s in urlparse(href).path.split('/') if s]
    if not segments:
        return None
    return f'{data.get("tag") or "a"}[href*="{_quote(segments[-1])}"]'


def by_classes(data: dict) -> Optional[str]:
    classes = [c for c in (data.get('classes') or '').split() if _CSS_IDENT_RE.match(c)]
    if not classes:
        return None
    return (data.get('tag') or 'a') + ''.join(f'.{c}' for c in classes)


SelectorStrategy = Callable[[dict], Optional[str]]

DEFAULT_STRATEGIES: tuple[SelectorStrategy, ...] = (
    by_id,
    by_parent_text,
    by_href_segment,
    by_classes,
)


def synthesize(data: dict, strategies=DEFAULT_STRATEGIES) -> str:
    """Return the best selector for an element description; never raises."""
    for strategy in strategies:
        try:
            selector = strategy(data)
        except Exception as exc:
            log.debug('Selector strategy %s failed: %s', getattr(strategy, '__name__', strategy), exc)
            continue
        if selector:
            return selector

    tag = data.get('tag') if isinstance(data, dict) else None
    return tag or 'a'


def describe_element(element: LocatorLike) -> dict:
    """Read the element description used by the selector chain.

    Returns an empty dict when the element cannot be evaluated (detached
    node, closed page).
    """
    try:
        data = element.evaluate(_DESCRIBE_JS)
    except Exception as exc:
        log.debug('Element description failed: %s', exc)
        return {}
    return data if isinstance(data, dict) else {}
