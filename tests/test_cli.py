"""Tests for the command-line entry point."""

import json

import pytest

import site_link_auditor
from linkcheck.models import LinkCandidate, PageAudit, ValidationOutcome


def _audit(broken=False):
    candidate = LinkCandidate('https://site.example/a', 'A', 'a', 'Content')
    outcome = ValidationOutcome(candidate.normalized_url, 404 if broken else 200,
                                'Not Found' if broken else 'OK', broken)
    return PageAudit(url='https://site.example/', candidates=[candidate],
                     outcomes={candidate.normalized_url: outcome})


@pytest.fixture
def cli(monkeypatch, tmp_path):
    """Run main() with argv and a stubbed audit; returns (exit code, json files)."""
    monkeypatch.chdir(tmp_path)

    def _run(argv, audits=None):
        monkeypatch.setattr('sys.argv', ['site-link-auditor'] + argv)
        monkeypatch.setattr(site_link_auditor, 'run_audit', lambda urls, config: audits or [])
        try:
            site_link_auditor.main()
            code = 0
        except SystemExit as exc:
            code = exc.code
        return code, sorted(tmp_path.glob('link_audit_*.json'))
    return _run


class TestMain:
    """Tests for main."""

    def test_usage_without_args(self, cli, capsys):
        """No arguments prints usage and exits 2."""
        code, _ = cli([])

        assert code == 2
        assert 'Usage' in capsys.readouterr().out

    def test_clean_run(self, cli, capsys):
        """A clean audit prints the report, writes JSON and exits 0."""
        code, files = cli(['https://site.example/'], [_audit()])

        assert code == 0
        assert 'BROKEN LINK AUDIT REPORT' in capsys.readouterr().out
        assert len(files) == 1
        assert files[0].name.startswith('link_audit_site_example_')
        assert json.loads(files[0].read_text())['meta']['broken_links'] == 0

    def test_broken_links_exit_1(self, cli):
        """Broken links make the exit status non-zero."""
        code, _ = cli(['https://site.example/'], [_audit(broken=True)])
        assert code == 1

    def test_failed_page_exit_1(self, cli):
        """A page that failed to load makes the exit status non-zero."""
        code, _ = cli(['https://site.example/'], [PageAudit(url='https://site.example/', error='timeout')])
        assert code == 1
