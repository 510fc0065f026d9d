"""Tests for the audit orchestrator."""

from unittest.mock import MagicMock

import httpx
import pytest
import respx
from playwright.sync_api import Error as PlaywrightError

from linkcheck.auditor import _normalise_start_url, audit_page, run_audit
from linkcheck.errors import PageLoadError
from linkcheck.models import ValidationOutcome
from linkcheck.validation import LinkChecker

from conftest import FakeOverlay, FakePage


class StaticChecker:
    """Answers from a fixed status table; anything unknown is a 200."""

    def __init__(self, statuses=None):
        self.statuses = statuses or {}
        self.checked = []

    def check(self, url):
        self.checked.append(url)
        status = self.statuses.get(url, 200)
        return ValidationOutcome(
            url=url,
            status=status,
            status_text='OK' if status < 400 else 'Not Found',
            is_broken=status >= 400,
            error=None if status < 400 else f'HTTP {status} Not Found',
        )

    @classmethod
    def from_config(cls, config, client=None):
        return cls({'https://site.example/gone': 404})

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        pass


class RoutedPage(FakePage):
    """Fake page whose navigation fails for selected URLs."""

    def __init__(self, failing=(), **kwargs):
        super().__init__(**kwargs)
        self.failing = set(failing)

    def goto(self, url, wait_until='load', timeout=None):
        if url in self.failing:
            raise PlaywrightError(f'net::ERR_NAME_NOT_RESOLVED at {url}')
        super().goto(url, wait_until, timeout)


class ClosingTargetPage(FakePage):
    """Fake page whose timed waits fail while it shows selected URLs."""

    def __init__(self, closing=(), **kwargs):
        super().__init__(**kwargs)
        self.closing = set(closing)

    def wait_for_timeout(self, timeout):
        if self.url in self.closing:
            raise RuntimeError('Target page, context or browser has been closed')
        super().wait_for_timeout(timeout)


class CrashingPage(FakePage):
    """Fake page whose navigation raises a non-browser error."""

    def __init__(self, crashing=(), **kwargs):
        super().__init__(**kwargs)
        self.crashing = set(crashing)

    def goto(self, url, wait_until='load', timeout=None):
        if url in self.crashing:
            raise RuntimeError('renderer crashed')
        super().goto(url, wait_until, timeout)


class TestNormaliseStartUrl:
    """Tests for _normalise_start_url."""

    def test_adds_scheme(self):
        """Bare hosts get https://."""
        assert _normalise_start_url('site.example') == 'https://site.example'

    def test_keeps_scheme(self):
        """URLs with a scheme are left alone."""
        assert _normalise_start_url(' http://site.example/ ') == 'http://site.example/'

    def test_empty_rejected(self):
        """Empty input is an error."""
        with pytest.raises(ValueError):
            _normalise_start_url('  ')


class TestAuditPage:
    """Tests for audit_page."""

    def test_discovers_and_validates(self, make_link, fast_config):
        """Every candidate gets an outcome; broken ones are reported."""
        page = FakePage(links=[
            make_link('/about', 'About', 'nav'),
            make_link('/gone', 'Old page'),
        ])
        page.add_trigger('Contact', FakeOverlay(links=[make_link('/support', 'Support')], title='Contact'))
        checker = StaticChecker({'https://site.example/gone': 404})

        audit = audit_page(page, 'https://site.example/', fast_config, checker=checker)

        assert audit.error == ''
        assert audit.final_url == 'https://site.example/'
        assert [c.normalized_url for c in audit.candidates] == [
            'https://site.example/about',
            'https://site.example/gone',
            'https://site.example/support',
        ]
        assert set(audit.outcomes) == {c.normalized_url for c in audit.candidates}
        [(candidate, outcome)] = audit.broken
        assert candidate.display_text == 'Old page'
        assert outcome.status == 404

    def test_modal_candidate_reaches_report(self, make_link, fast_config):
        """Links found only in an overlay carry their modal label."""
        page = FakePage(links=[])
        page.add_trigger('Contact', FakeOverlay(links=[make_link('/gone', 'Old')]))
        checker = StaticChecker({'https://site.example/gone': 404})

        audit = audit_page(page, 'https://site.example/', fast_config, checker=checker)

        [(candidate, _)] = audit.broken
        assert candidate.location_label == 'Modal: Contact'

    def test_progress_messages(self, make_link, fast_config):
        """Progress is reported in upper case."""
        page = FakePage(links=[make_link('/a', 'A')])
        messages = []

        audit_page(page, 'https://site.example/', fast_config, checker=StaticChecker(),
                   progress_callback=messages.append)

        assert messages[0] == 'NAVIGATING TO https://site.example/'
        assert 'FOUND 1 LINKS, VALIDATING' in messages
        assert 'CHECKING LINKS: BATCH 1/1' in messages

    def test_navigation_failure_raises(self, fast_config):
        """A failed goto becomes PageLoadError."""
        page = RoutedPage(failing={'https://nowhere.example/'})

        with pytest.raises(PageLoadError) as exc_info:
            audit_page(page, 'https://nowhere.example/', fast_config, checker=StaticChecker())

        assert exc_info.value.url == 'https://nowhere.example/'
        assert 'ERR_NAME_NOT_RESOLVED' in exc_info.value.reason

    def test_no_links(self, fast_config):
        """An empty page audits cleanly."""
        checker = StaticChecker()
        audit = audit_page(FakePage(), 'https://site.example/', fast_config, checker=checker)

        assert audit.candidates == []
        assert audit.outcomes == {}
        assert checker.checked == []


@pytest.fixture
def patched_browser(monkeypatch):
    """Replace Playwright and the HTTP checker with fakes."""
    def _patch(page):
        playwright = MagicMock()
        browser = playwright.chromium.launch.return_value
        browser.new_context.return_value.new_page.return_value = page
        factory = MagicMock()
        factory.return_value.__enter__.return_value = playwright
        monkeypatch.setattr('linkcheck.auditor.sync_playwright', factory)
        monkeypatch.setattr('linkcheck.auditor.LinkChecker', StaticChecker)
        return browser
    return _patch


class TestRunAudit:
    """Tests for run_audit."""

    def test_failed_page_does_not_stop_run(self, patched_browser, make_link, fast_config):
        """A page that cannot load is recorded and the next one is audited."""
        page = RoutedPage(failing={'https://down.example'}, links=[make_link('/gone', 'Old')])
        browser = patched_browser(page)

        audits = run_audit(['down.example', 'https://site.example/'], fast_config)

        assert [a.url for a in audits] == ['https://down.example', 'https://site.example/']
        assert 'ERR_NAME_NOT_RESOLVED' in audits[0].error
        assert audits[0].candidates == []
        assert audits[1].error == ''
        assert len(audits[1].broken) == 1
        browser.close.assert_called_once()

    def test_closed_target_during_waits_does_not_stop_run(self, patched_browser, make_link, fast_config):
        """Waits failing on one page degrade and the next page is still audited."""
        page = ClosingTargetPage(closing={'https://crash.example'}, links=[make_link('/gone', 'Old')])
        patched_browser(page)

        audits = run_audit(['https://crash.example', 'https://site.example/'], fast_config)

        assert [a.url for a in audits] == ['https://crash.example', 'https://site.example/']
        assert audits[0].error == ''
        assert audits[1].error == ''
        assert len(audits[1].broken) == 1

    def test_unexpected_error_does_not_stop_run(self, patched_browser, make_link, fast_config):
        """Any per-page exception is recorded on that page only."""
        page = CrashingPage(crashing={'https://crash.example'}, links=[make_link('/gone', 'Old')])
        patched_browser(page)
        messages = []

        audits = run_audit(['https://crash.example', 'https://site.example/'], fast_config,
                           progress_callback=messages.append)

        assert audits[0].error == 'renderer crashed'
        assert audits[0].candidates == []
        assert len(audits[1].broken) == 1
        assert 'FAILED: https://crash.example (renderer crashed)' in messages
        assert messages[-1] == 'AUDIT COMPLETE'

    def test_single_url_string(self, patched_browser, fast_config):
        """A bare string is treated as one target."""
        patched_browser(FakePage())

        audits = run_audit('https://site.example/', fast_config)

        assert len(audits) == 1

    def test_reopens_closed_page(self, patched_browser, fast_config):
        """A page closed by the previous audit is replaced."""
        page = FakePage()
        page.closed = True
        browser = patched_browser(page)

        run_audit(['https://site.example/'], fast_config)

        assert browser.new_context.return_value.new_page.call_count == 2

    def test_progress(self, patched_browser, fast_config):
        """Run-level progress brackets the page messages."""
        patched_browser(FakePage())
        messages = []

        run_audit(['https://site.example/'], fast_config, progress_callback=messages.append)

        assert messages[0] == 'LAUNCHING BROWSER...'
        assert 'AUDITING PAGE 1/1: https://site.example/' in messages
        assert messages[-1] == 'AUDIT COMPLETE'


class TestScenarios:
    """End-to-end scenarios through the real HTTP checker."""

    @respx.mock
    def test_navigation_link_to_missing_page(self, make_link, fast_config):
        """A nav link to an extension-less 404 is broken after one slash retry."""
        missing = respx.head('https://site.example/missing').mock(return_value=httpx.Response(404))
        slashed = respx.head('https://site.example/missing/').mock(return_value=httpx.Response(404))
        page = FakePage(links=[make_link('/missing', 'Missing', 'nav')])

        with LinkChecker.from_config(fast_config) as checker:
            audit = audit_page(page, 'https://site.example/', fast_config, checker=checker)

        [(candidate, outcome)] = audit.broken
        assert candidate.location_label == 'Navigation'
        assert outcome.status == 404
        assert outcome.retried is True
        assert missing.call_count == 1
        assert slashed.call_count == 1

    @respx.mock
    def test_contact_overlay_with_dead_link(self, make_link, fast_config):
        """A dead link inside the Contact overlay is attributed to that overlay."""
        respx.head('https://site.example/old-form.php').mock(return_value=httpx.Response(410))
        page = FakePage(links=[])
        page.add_trigger('Contact', FakeOverlay(links=[make_link('/old-form.php', 'Write to us')]))

        with LinkChecker.from_config(fast_config) as checker:
            audit = audit_page(page, 'https://site.example/', fast_config, checker=checker)

        [(candidate, outcome)] = audit.broken
        assert candidate.location_label == 'Modal: Contact'
        assert candidate.modal_trigger_text == 'Contact'
        assert outcome.status == 410
        assert outcome.retried is False
