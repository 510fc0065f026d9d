#!/usr/bin/env python3
"""
Site Link Auditor
Discovers every user-reachable link on rendered pages (modals included)
and checks each one for reachability.
Requires: pip install -e . && playwright install chromium
"""

import json
import logging
import sys
from datetime import datetime
from urllib.parse import urlparse

from linkcheck import *  # noqa: F401,F403
from linkcheck import AuditConfig, generate_json_report, generate_report, run_audit

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='[%(levelname)s] %(message)s',
)
log = logging.getLogger(__name__)


def main():
    """CLI entry point.

    --serve       -> launches the audit API with uvicorn.
    URL [URL...]  -> runs a headless audit and writes a JSON report.
    """
    args = sys.argv[1:]
    if not args:
        print('Usage: site-link-auditor URL [URL ...] | --serve [PORT]')
        sys.exit(2)

    if args[0] == '--serve':
        from server.app import launch  # noqa: lazy import keeps the CLI free of server deps
        launch(int(args[1]) if len(args) > 1 else 8080)
        return

    print('\nSite Link Auditor')
    print(f'Targets: {", ".join(args)}')
    print('-' * 40)

    audits = run_audit(args, AuditConfig(headless=True))
    print('\n' + generate_report(audits))

    domain = urlparse(audits[0].url).netloc.replace('.', '_').replace(':', '_')
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    json_filename = f'link_audit_{domain}_{timestamp}.json'
    with open(json_filename, 'w', encoding='utf-8') as f:
        json.dump(generate_json_report(audits), f, indent=2)
    log.info('JSON saved to: %s', json_filename)

    if any(a.broken or a.error for a in audits):
        sys.exit(1)


if __name__ == '__main__':
    main()
