"""DOM stability detection.

Decides when a dynamically rendered document has finished its initial render
burst and when scroll-triggered lazy content has stopped arriving. Every wait
is bounded. Only the DOMContentLoaded signal is required; every other
timeout is logged and the audit proceeds with whatever the page holds.
"""

import logging
import time
from typing import Optional

from .errors import PageLoadError
from .models import AuditConfig, StabilitySample, StabilityStatus
from .page import PageLike

log = logging.getLogger(__name__)


_READY_STATE_JS = "() => document.readyState === 'complete'"

_SAMPLE_JS = '''
() => ({
    elements: document.querySelectorAll('*').length,
    mediaAndLinks: document.querySelectorAll('img, video').length
        + document.querySelectorAll('a[href]').length
})
'''


class StabilityTracker:
    """Pure trend detector over a stream of counts.

    Reports ``STABLE`` once ``required`` consecutive samples repeat the value
    before them, so the quiet window spans ``required`` whole intervals.
    Reports ``TIMED_OUT`` once ``max_samples`` have been observed without
    reaching that, and ``PENDING`` otherwise.
    """

    def __init__(self, required: int, max_samples: Optional[int] = None):
        if required < 1:
            raise ValueError('required must be at least 1')
        self.required = required
        self.max_samples = max_samples
        self.samples = 0
        self.run_length = 0
        self.last_value: Optional[int] = None
        self.status = StabilityStatus.PENDING

    def observe(self, value: int) -> StabilityStatus:
        if self.status is not StabilityStatus.PENDING:
            return self.status

        self.samples += 1
        if value == self.last_value:
            self.run_length += 1
        else:
            self.last_value = value
            self.run_length = 0

        if self.run_length >= self.required:
            self.status = StabilityStatus.STABLE
        elif self.max_samples is not None and self.samples >= self.max_samples:
            self.status = StabilityStatus.TIMED_OUT
        return self.status

    def expire(self) -> StabilityStatus:
        """Wall-clock ceiling reached before a verdict."""
        if self.status is StabilityStatus.PENDING:
            self.status = StabilityStatus.TIMED_OUT
        return self.status


def take_sample(page: PageLike) -> StabilitySample:
    counts = page.evaluate(_SAMPLE_JS)
    return StabilitySample(
        element_count=int(counts.get('elements', 0)),
        media_plus_link_count=int(counts.get('mediaAndLinks', 0)),
        timestamp=time.monotonic(),
    )


def _remaining_ms(deadline: float) -> float:
    return max(0.0, (deadline - time.monotonic()) * 1000)


def _poll(page: PageLike, tracker: StabilityTracker, interval_ms: int,
          deadline: float, metric: str) -> StabilityStatus:
    """Drive ``tracker`` with samples of ``metric`` until it leaves PENDING."""
    while True:
        if time.monotonic() >= deadline:
            return tracker.expire()
        try:
            sample = take_sample(page)
        except Exception as exc:
            log.warning('Stability sampling failed, continuing with current DOM: %s', exc)
            return tracker.expire()

        status = tracker.observe(getattr(sample, metric))
        if status is not StabilityStatus.PENDING:
            return status
        try:
            page.wait_for_timeout(interval_ms)
        except Exception as exc:
            log.warning('Stability wait interrupted, continuing with current DOM: %s', exc)
            return tracker.expire()


def wait_for_element_stability(page: PageLike, config: AuditConfig,
                               deadline: Optional[float] = None) -> StabilityStatus:
    """Poll the total element count until it stops changing."""
    if deadline is None:
        deadline = time.monotonic() + config.dom_ready_timeout_ms / 1000
    tracker = StabilityTracker(config.dom_stable_polls, config.dom_max_polls)
    status = _poll(page, tracker, config.dom_poll_interval_ms, deadline, 'element_count')

    if status is StabilityStatus.STABLE:
        log.info('DOM stable (%s elements after %d checks)', tracker.last_value, tracker.samples)
    else:
        log.warning('DOM did not stabilise after %d checks, continuing', tracker.samples)
    return status


def wait_for_dom_ready(page: PageLike, config: AuditConfig, url: str = '') -> StabilityStatus:
    """Wait until the document has finished its initial render burst.

    Raises:
        PageLoadError: DOMContentLoaded was not reached. This is the only
            fatal wait; everything else degrades to a logged warning.
    """
    started = time.monotonic()
    deadline = started + config.dom_ready_timeout_ms / 1000

    try:
        page.wait_for_load_state('domcontentloaded', timeout=config.dom_ready_timeout_ms)
    except Exception as exc:
        raise PageLoadError(url or _safe_url(page), str(exc)) from exc
    log.info('domcontentloaded reached (%.1fs)', time.monotonic() - started)

    sub_timeout = min(_remaining_ms(deadline), config.sub_wait_timeout_ms)
    try:
        page.wait_for_function(_READY_STATE_JS, timeout=sub_timeout)
        log.info('readyState complete (%.1fs)', time.monotonic() - started)
    except Exception as exc:
        log.warning('readyState did not reach "complete" within %.0fms, continuing: %s', sub_timeout, exc)

    if config.wait_for_network_idle:
        sub_timeout = min(_remaining_ms(deadline), config.sub_wait_timeout_ms)
        try:
            page.wait_for_load_state('networkidle', timeout=sub_timeout)
            log.info('networkidle reached (%.1fs)', time.monotonic() - started)
        except Exception as exc:
            log.warning('networkidle not reached within %.0fms, continuing: %s', sub_timeout, exc)

    status = wait_for_element_stability(page, config, deadline)
    try:
        page.wait_for_timeout(200)
    except Exception as exc:
        log.warning('Settle pause interrupted: %s', exc)
    log.info('DOM ready check complete (%.1fs total)', time.monotonic() - started)
    return status


def wait_for_lazy_content(page: PageLike, config: AuditConfig) -> StabilityStatus:
    """Wait until the media + link count holds still for the stability window."""
    deadline = time.monotonic() + config.lazy_timeout_ms / 1000
    max_samples = max(1, config.lazy_timeout_ms // max(1, config.lazy_poll_interval_ms))
    tracker = StabilityTracker(config.lazy_stable_polls, max_samples)
    status = _poll(page, tracker, config.lazy_poll_interval_ms, deadline, 'media_plus_link_count')

    if status is StabilityStatus.STABLE:
        log.info('Lazy content stable (content count: %s)', tracker.last_value)
    else:
        log.warning('Lazy content still changing after %d checks, continuing', tracker.samples)
    return status


def _safe_url(page: PageLike) -> str:
    try:
        return page.url
    except Exception:
        return 'unknown'
