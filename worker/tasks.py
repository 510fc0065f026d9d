"""Background tasks for running link audits."""

import json
import logging
from dataclasses import fields
from typing import Any

from server.config import settings
from server.storage import update_status, attach_results, REPORTS_DIR
from linkcheck import AuditConfig, LENIENT_DOMAINS, run_audit, generate_report, generate_json_report

log = logging.getLogger(__name__)


def build_config(options: dict[str, Any]) -> AuditConfig:
    """Turn API options into an ``AuditConfig``, ignoring unknown keys."""
    known = {f.name for f in fields(AuditConfig)}
    kwargs = {k: v for k, v in options.items() if k in known}

    lenient = set(kwargs.pop('lenient_domains', None) or LENIENT_DOMAINS)
    lenient.update(settings.extra_lenient_domains)
    kwargs['lenient_domains'] = sorted(lenient)
    return AuditConfig(**kwargs)


def run_audit_task(audit_id: str, payload: dict[str, Any]) -> None:
    """Run an audit and persist results."""
    update_status(audit_id, 'running')
    try:
        config = build_config(payload.get('config', {}))
        audits = run_audit(payload['target_urls'], config)

        REPORTS_DIR.mkdir(parents=True, exist_ok=True)
        text_path = REPORTS_DIR / f'{audit_id}.txt'
        json_path = REPORTS_DIR / f'{audit_id}.json'

        text_path.write_text(generate_report(audits), encoding='utf-8')
        json_path.write_text(json.dumps(generate_json_report(audits), indent=2), encoding='utf-8')

        broken_count = sum(len(a.broken) for a in audits)
        attach_results(audit_id, str(text_path), str(json_path), broken_count)
        update_status(audit_id, 'finished')
    except Exception as exc:
        log.exception('Audit %s failed', audit_id)
        update_status(audit_id, 'failed', error_message=str(exc)[:200])
