"""Link discovery: walks the rendered page (and its overlays) for candidates."""

import logging
from typing import Optional

from .models import AuditConfig, LinkCandidate, ModalContext
from .modals import ModalTraversal
from .page import PageLike
from .page_helpers import scroll_to_bottom
from .patterns import location_label_for
from .selector_chain import describe_element, synthesize
from .stability import wait_for_dom_ready, wait_for_lazy_content
from .url_utils import dedupe_candidates, normalize_url
from .visibility import is_visible

log = logging.getLogger(__name__)

LINK_SELECTOR = 'a[href]'
MAX_DISPLAY_TEXT = 100


def collect_scope_links(
    scope,
    base_url: str,
    location_label: Optional[str] = None,
    modal: Optional[ModalContext] = None,
) -> list[LinkCandidate]:
    """Collect visible link candidates inside ``scope``.

    ``scope`` is the page itself or a locator for an overlay container.
    When ``location_label`` is given it overrides the structural location
    of every link; ``modal`` tags candidates with the trigger that revealed
    them.
    """
    try:
        elements = scope.locator(LINK_SELECTOR).all()
    except Exception as exc:
        log.warning('Could not query links: %s', exc)
        return []

    candidates = []
    for element in elements:
        if not is_visible(element):
            continue

        data = describe_element(element)
        if not data:
            continue

        href = data.get('href', '')
        normalized = normalize_url(href, base_url)
        if not normalized:
            continue

        text = data.get('text') or data.get('ariaLabel') or data.get('title') or ''
        candidates.append(LinkCandidate(
            normalized_url=normalized,
            display_text=text[:MAX_DISPLAY_TEXT],
            selector=synthesize(data),
            location_label=location_label or location_label_for(data.get('landmark', '')),
            href=href,
            modal_trigger_selector=modal.trigger_selector if modal else None,
            modal_trigger_text=modal.trigger_text if modal else None,
        ))
    return candidates


def extract_links(page: PageLike, base_url: str, config: Optional[AuditConfig] = None) -> list[LinkCandidate]:
    """Discover every user-reachable link on the page.

    Waits for DOM stability, scrolls to trigger lazy sections, waits for
    lazy content to settle, collects links from the main document and from
    every overlay the modal engine can open, and de-duplicates the lot by
    normalized URL (first occurrence wins).

    Raises:
        PageLoadError: the page never reached DOMContentLoaded.
    """
    config = config or AuditConfig()

    wait_for_dom_ready(page, config, base_url)

    if config.scroll_pages:
        scroll_to_bottom(page, config)
        wait_for_lazy_content(page, config)

    candidates = collect_scope_links(page, base_url)
    log.info('Found %d visible link(s) in the main document', len(candidates))

    if config.scan_modals:
        traversal = ModalTraversal(
            page,
            config,
            scan_scope=lambda container, label, modal: collect_scope_links(container, base_url, label, modal),
        )
        candidates.extend(traversal.run())

    unique = dedupe_candidates(candidates)
    log.info('Extracted %d unique link candidate(s) from %s', len(unique), base_url)
    return unique
