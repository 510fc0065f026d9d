"""Report generation: human-readable text and JSON formats.

Both reports are built from ``PageAudit`` objects only; screenshots and file
layout are the caller's business.
"""

from dataclasses import asdict
from datetime import datetime
from urllib.parse import urlparse

from .models import LinkCandidate, PageAudit, ValidationOutcome


# ---------------------------------------------------------------------------
# URL display helper
# ---------------------------------------------------------------------------

def get_short_url(url: str, max_len: int = 50) -> str:
    """Shorten URL for display."""
    parsed = urlparse(url)
    path = parsed.path
    if len(path) > max_len:
        path = '...' + path[-(max_len - 3):]
    return path if path else '/'


def _summarise(audits: list[PageAudit]) -> dict:
    d: dict = {}
    d['pages'] = len(audits)
    d['failed_pages'] = sum(1 for a in audits if a.error)
    d['total_links'] = sum(len(a.candidates) for a in audits)
    d['modal_links'] = sum(1 for a in audits for c in a.candidates if c.in_modal)
    d['broken_links'] = sum(len(a.broken) for a in audits)
    d['needs_trailing_slash'] = sum(
        1 for a in audits for o in a.outcomes.values()
        if not o.is_broken and o.retry_note
        and o.retry_note.startswith('Works with trailing slash')
    )
    d['lenient'] = sum(1 for a in audits for o in a.outcomes.values() if o.warning)
    return d


# ---------------------------------------------------------------------------
# Text report
# ---------------------------------------------------------------------------

def _section_header(d: dict, timestamp: str) -> list[str]:
    return [
        '=' * 65,
        '                 BROKEN LINK AUDIT REPORT',
        '=' * 65,
        f'Pages Audited: {d["pages"]} ({d["failed_pages"]} failed to load)',
        f'Links Checked: {d["total_links"]} ({d["modal_links"]} inside modals)',
        f'Broken Links: {d["broken_links"]}',
        f'Date: {timestamp}',
        '',
    ]


def _describe_link(number: int, candidate: LinkCandidate, outcome: ValidationOutcome) -> list[str]:
    lines = [
        f'{number}. {candidate.normalized_url}',
        f'   Status: {outcome.status} {outcome.status_text}'.rstrip(),
        f'   Location: {candidate.location_label}',
        f'   Selector: {candidate.selector}',
    ]
    if candidate.display_text:
        lines.append(f'   Link Text: "{candidate.display_text}"')
    if candidate.in_modal:
        lines.append(f'   Opened by: "{candidate.modal_trigger_text}" ({candidate.modal_trigger_selector})')
    if outcome.error:
        lines.append(f'   Error: {outcome.error}')
    if outcome.retry_note:
        lines.append(f'   Note: {outcome.retry_note}')
    return lines


def _section_page(audit: PageAudit) -> list[str]:
    lines = [
        '-' * 65,
        f'PAGE: {audit.url}',
        '-' * 65,
    ]
    if audit.error:
        lines += [f'FAILED TO LOAD: {audit.error}', '']
        return lines

    broken = audit.broken
    if not broken:
        lines.append(f'No broken links found ({len(audit.candidates)} checked).')
    for number, (candidate, outcome) in enumerate(broken, start=1):
        lines += _describe_link(number, candidate, outcome)
        lines.append('')

    warnings = [(c, o) for c, o in audit.pairs() if o is not None and not o.is_broken and (o.warning or o.retry_note)]
    if warnings:
        lines.append('')
        lines.append('Warnings:')
        for candidate, outcome in warnings:
            lines.append(f'  {get_short_url(candidate.normalized_url)}: {outcome.warning or outcome.retry_note}')
    lines.append('')
    return lines


def generate_report(audits: list[PageAudit]) -> str:
    """Generate the plain-text report."""
    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M')
    d = _summarise(audits)

    lines = _section_header(d, timestamp)
    for audit in audits:
        lines += _section_page(audit)
    lines += ['=' * 65, 'END OF REPORT', '=' * 65]
    return '\n'.join(lines)


# ---------------------------------------------------------------------------
# JSON report
# ---------------------------------------------------------------------------

def generate_json_report(audits: list[PageAudit]) -> dict:
    """Generate a JSON report for programmatic use."""
    pages = []
    for audit in audits:
        pages.append({
            'url': audit.url,
            'final_url': audit.final_url,
            'error': audit.error or None,
            'links': [
                {
                    'candidate': asdict(candidate),
                    'outcome': asdict(outcome) if outcome else None,
                }
                for candidate, outcome in audit.pairs()
            ],
            'broken_count': len(audit.broken),
        })

    return {
        'meta': {
            'timestamp': datetime.now().isoformat(),
            **_summarise(audits),
        },
        'pages': pages,
    }
