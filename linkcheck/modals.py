"""Overlay traversal: open every modal/popover trigger once, scan it, close it.

Each trigger walks ``Closed -> Opening -> Open -> Scanned -> Closing ->
Closed``. Triggers are processed strictly one at a time, and a failure at
any step of one trigger is logged and the next trigger is attempted.
"""

import logging
from typing import Callable

from .models import AuditConfig, LinkCandidate, ModalContext, ModalState
from .page import LocatorLike, PageLike
from .page_helpers import dismiss_overlays
from .patterns import MODAL_TITLE_SELECTORS
from .selector_chain import describe_element, synthesize
from .visibility import is_visible

log = logging.getLogger(__name__)


_MODAL_TITLE_JS = '''
(el, selectors) => {
    for (const selector of selectors) {
        const node = el.querySelector(selector);
        const text = node ? (node.textContent || '').trim() : '';
        if (text) return text.replace(/\\s+/g, ' ');
    }
    return '';
}
'''

DEFAULT_MODAL_TITLE = 'Modal'
MAX_TRIGGER_TEXT = 50

# (container locator, location label, modal context) -> candidates
ScopeScanner = Callable[[LocatorLike, str, ModalContext], list]


def trigger_key(info: dict) -> str:
    """Composite identity of a trigger: trimmed text plus an identifying attribute."""
    text = (info.get('text') or info.get('ariaLabel') or '').strip()
    ident = info.get('id') or info.get('modalRef') or ''
    return f'{text}-{ident}'


def trigger_text(info: dict) -> str:
    return (info.get('text') or info.get('ariaLabel') or '').strip()[:MAX_TRIGGER_TEXT]


class ModalTraversal:
    """One traversal pass over every overlay trigger on a page."""

    def __init__(self, page: PageLike, config: AuditConfig, scan_scope: ScopeScanner):
        self.page = page
        self.config = config
        self.scan_scope = scan_scope
        self.opened = 0

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover_triggers(self) -> list[tuple[LocatorLike, dict]]:
        """Collect trigger candidates, de-duplicated by :func:`trigger_key`."""
        triggers = []
        seen: set[str] = set()

        for selector in self.config.modal_trigger_selectors:
            try:
                matches = self.page.locator(selector).all()
            except Exception as exc:
                log.debug('Trigger query failed for %s: %s', selector, exc)
                continue

            for trigger in matches:
                info = describe_element(trigger)
                if not info:
                    # Unidentifiable triggers are still attempted.
                    triggers.append((trigger, info))
                    continue
                key = trigger_key(info)
                if key in seen:
                    continue
                seen.add(key)
                triggers.append((trigger, info))

        return triggers

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def run(self) -> list[LinkCandidate]:
        """Open, scan and close each trigger in turn; return all modal candidates."""
        triggers = self.discover_triggers()
        if not triggers:
            return []
        log.info('Found %d modal trigger(s), checking for links...', len(triggers))

        candidates: list[LinkCandidate] = []
        for index, (trigger, info) in enumerate(triggers, start=1):
            if self._page_closed():
                break
            try:
                candidates.extend(self.traverse(trigger, info))
            except Exception as exc:
                log.warning('Modal trigger %d (%s) failed: %s', index, trigger_text(info) or '?', exc)

        if not self._page_closed():
            try:
                self.page.wait_for_timeout(500)
            except Exception as exc:
                log.debug('Post-modal pause interrupted: %s', exc)
        if self.opened:
            log.info('Modal check complete (%d modal(s) checked)', self.opened)
        return candidates

    def traverse(self, trigger: LocatorLike, info: dict) -> list[LinkCandidate]:
        """Run one trigger through the open -> scan -> close cycle."""
        modal = ModalContext(trigger_selector=synthesize(info), trigger_text=trigger_text(info))

        if self.config.dismiss_overlays:
            dismiss_overlays(self.page, self.config.blocking_overlay_selectors)

        if not is_visible(trigger):
            log.debug('Skipping hidden modal trigger %s', modal.trigger_selector)
            return []

        modal.advance(ModalState.OPENING)
        trigger.click(timeout=self.config.modal_click_timeout_ms)

        container = self.page.locator(f'{self.config.overlay_container_selector} >> visible=true').first
        try:
            container.wait_for(state='visible', timeout=self.config.modal_open_timeout_ms)
        except Exception as exc:
            modal.advance(ModalState.CLOSED)
            log.info('Trigger %s did not open an overlay: %s', modal.trigger_selector, exc)
            return []

        modal.container_locator = container
        modal.advance(ModalState.OPEN)
        self.opened += 1
        try:
            title = self.resolve_title(modal)
            log.info('Checking modal: %s', title)
            found = self.scan_scope(container, f'Modal: {title}', modal)
            modal.advance(ModalState.SCANNED)
            log.info("Modal '%s' checked, found %d link(s)", title, len(found))
        finally:
            modal.advance(ModalState.CLOSING)
            if not self.close(modal):
                log.warning('Could not close modal opened by %s, continuing', modal.trigger_selector)
            modal.advance(ModalState.CLOSED)
        return found

    def resolve_title(self, modal: ModalContext) -> str:
        """Heading inside the overlay, else the trigger text, else a generic label."""
        try:
            title = modal.container_locator.evaluate(_MODAL_TITLE_JS, list(MODAL_TITLE_SELECTORS))
        except Exception as exc:
            log.debug('Modal title lookup failed: %s', exc)
            title = ''
        return (title or '').strip() or modal.trigger_text or DEFAULT_MODAL_TITLE

    # ------------------------------------------------------------------
    # Closing
    # ------------------------------------------------------------------

    def close(self, modal: ModalContext) -> bool:
        """Try each dismiss control, then Escape. Returns True once the overlay is hidden."""
        container = modal.container_locator

        for selector in self.config.modal_close_selectors:
            if self._page_closed():
                return False
            try:
                button = container.locator(selector).first
                if not button.is_visible():
                    continue
            except Exception as exc:
                log.debug('Close control lookup failed for %s: %s', selector, exc)
                continue

            for force in (False, True):
                try:
                    button.click(timeout=self.config.modal_close_timeout_ms, force=force)
                except Exception as exc:
                    log.debug('Close click on %s failed (force=%s): %s', selector, force, exc)
                    continue
                if self._wait_hidden(container):
                    return True
                break

        if self._page_closed():
            return False
        try:
            self.page.keyboard.press('Escape')
            self.page.wait_for_timeout(200)
        except Exception as exc:
            log.debug('Escape fallback failed: %s', exc)
            return False
        return self._wait_hidden(container)

    def _wait_hidden(self, container: LocatorLike) -> bool:
        try:
            container.wait_for(state='hidden', timeout=self.config.modal_close_timeout_ms)
        except Exception:
            return False
        return True

    def _page_closed(self) -> bool:
        try:
            return self.page.is_closed()
        except Exception:
            return True
