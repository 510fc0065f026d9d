"""Data classes used throughout the link auditor.

Candidates, modal traversal state, stability samples, validation outcomes
and the run configuration all live here so every other module can import
them without circular dependencies.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .patterns import (
    BLOCKING_OVERLAY_SELECTORS,
    LENIENT_DOMAINS,
    MODAL_CLOSE_SELECTORS,
    MODAL_TRIGGER_SELECTORS,
    OVERLAY_CONTAINER_SELECTOR,
)


@dataclass(frozen=True)
class LinkCandidate:
    """A discovered, not-yet-validated link. Identity is ``normalized_url``."""
    normalized_url: str
    display_text: str
    selector: str
    location_label: str          # Navigation, Header, Footer, Sidebar, Content, Modal: <title>
    href: str = ''               # Raw href attribute as found in the document
    modal_trigger_selector: Optional[str] = None
    modal_trigger_text: Optional[str] = None

    @property
    def in_modal(self) -> bool:
        return self.modal_trigger_selector is not None


class ModalState(Enum):
    CLOSED = 'closed'
    OPENING = 'opening'
    OPEN = 'open'
    SCANNED = 'scanned'
    CLOSING = 'closing'


# Allowed edges of the per-trigger state machine. OPENING -> CLOSED is the
# abort edge taken when a trigger never produces a visible overlay.
_MODAL_TRANSITIONS = {
    ModalState.CLOSED: {ModalState.OPENING},
    ModalState.OPENING: {ModalState.OPEN, ModalState.CLOSED},
    ModalState.OPEN: {ModalState.SCANNED, ModalState.CLOSING},
    ModalState.SCANNED: {ModalState.CLOSING},
    ModalState.CLOSING: {ModalState.CLOSED},
}


@dataclass
class ModalContext:
    """One overlay's open -> scan -> close cycle."""
    trigger_selector: str
    trigger_text: str
    container_locator: Any = None
    state: ModalState = ModalState.CLOSED

    def advance(self, new_state: ModalState) -> None:
        """Move to ``new_state``, rejecting edges the state machine forbids."""
        if new_state not in _MODAL_TRANSITIONS[self.state]:
            raise ValueError(f'Illegal modal transition {self.state.value} -> {new_state.value}')
        self.state = new_state


@dataclass(frozen=True)
class StabilitySample:
    """Ephemeral measurement used to compute the DOM mutation trend."""
    element_count: int
    media_plus_link_count: int
    timestamp: float


class StabilityStatus(Enum):
    PENDING = 'pending'
    STABLE = 'stable'
    TIMED_OUT = 'timed-out'


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of checking a single candidate URL."""
    url: str
    status: int
    status_text: str
    is_broken: bool
    error: Optional[str] = None
    retry_note: Optional[str] = None
    warning: Optional[str] = None
    retried: bool = False


@dataclass
class AuditConfig:
    """Config for running an audit."""
    # Browser
    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    browser_slow_mo_ms: int = 0
    navigation_timeout_ms: int = 60000
    dismiss_overlays: bool = True

    # DOM stability
    dom_ready_timeout_ms: int = 60000
    sub_wait_timeout_ms: int = 30000
    wait_for_network_idle: bool = True
    dom_poll_interval_ms: int = 100
    dom_stable_polls: int = 3
    dom_max_polls: int = 50
    lazy_poll_interval_ms: int = 500
    lazy_stable_polls: int = 10
    lazy_timeout_ms: int = 30000

    # Scrolling
    scroll_pages: bool = True
    scroll_step_px: int = 100
    scroll_step_delay_ms: int = 50
    scroll_settle_ms: int = 500
    scroll_max_passes: int = 100

    # Modal traversal
    scan_modals: bool = True
    modal_trigger_selectors: list = field(default_factory=lambda: list(MODAL_TRIGGER_SELECTORS))
    overlay_container_selector: str = OVERLAY_CONTAINER_SELECTOR
    modal_close_selectors: list = field(default_factory=lambda: list(MODAL_CLOSE_SELECTORS))
    blocking_overlay_selectors: list = field(default_factory=lambda: list(BLOCKING_OVERLAY_SELECTORS))
    modal_click_timeout_ms: int = 5000
    modal_open_timeout_ms: int = 2000
    modal_close_timeout_ms: int = 2000

    # Validation
    concurrency: int = 10
    request_timeout_s: float = 5.0
    max_redirects: int = 10
    lenient_domains: list = field(default_factory=lambda: sorted(LENIENT_DOMAINS))


@dataclass
class PageAudit:
    """Results for one audited URL."""
    url: str
    final_url: str = ''
    candidates: list = field(default_factory=list)   # List[LinkCandidate]
    outcomes: dict = field(default_factory=dict)     # normalized_url -> ValidationOutcome
    error: str = ''                                  # Set only when the page failed to load

    def pairs(self) -> list[tuple[LinkCandidate, Optional[ValidationOutcome]]]:
        """Candidates paired with their outcomes, in discovery order."""
        return [(c, self.outcomes.get(c.normalized_url)) for c in self.candidates]

    @property
    def broken(self) -> list[tuple[LinkCandidate, ValidationOutcome]]:
        return [(c, o) for c, o in self.pairs() if o is not None and o.is_broken]
