"""SQLite storage for audit metadata and results."""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4


BASE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = BASE_DIR / 'data'
REPORTS_DIR = DATA_DIR / 'reports'
DB_PATH = DATA_DIR / 'link_audits.db'


def ensure_dirs() -> None:
    """Ensure data directories exist."""
    DATA_DIR.mkdir(exist_ok=True)
    REPORTS_DIR.mkdir(exist_ok=True)


def get_connection() -> sqlite3.Connection:
    """Get a DB connection."""
    ensure_dirs()
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Initialize DB schema."""
    with get_connection() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS audits (
                id TEXT PRIMARY KEY,
                created_at TEXT NOT NULL,
                status TEXT NOT NULL,
                target_urls_json TEXT NOT NULL,
                config_json TEXT NOT NULL,
                report_text_path TEXT,
                report_json_path TEXT,
                broken_count INTEGER,
                error_message TEXT
            )
            """
        )
        conn.commit()


def _row_to_dict(row: sqlite3.Row) -> dict:
    data = dict(row)
    data['target_urls'] = json.loads(data.pop('target_urls_json'))
    return data


def create_audit(target_urls: list, config: dict) -> str:
    """Insert a new audit and return its ID."""
    audit_id = str(uuid4())
    created_at = datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + 'Z'
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO audits (id, created_at, status, target_urls_json, config_json)
            VALUES (?, ?, ?, ?, ?)
            """,
            (audit_id, created_at, 'queued', json.dumps(list(target_urls)), json.dumps(config))
        )
        conn.commit()
    return audit_id


def update_status(audit_id: str, status: str, error_message: str = '') -> None:
    """Update audit status."""
    with get_connection() as conn:
        conn.execute(
            """
            UPDATE audits
            SET status = ?, error_message = ?
            WHERE id = ?
            """,
            (status, error_message, audit_id)
        )
        conn.commit()


def attach_results(audit_id: str, report_text_path: str, report_json_path: str, broken_count: int) -> None:
    """Attach report file paths and the broken-link count."""
    with get_connection() as conn:
        conn.execute(
            """
            UPDATE audits
            SET report_text_path = ?, report_json_path = ?, broken_count = ?
            WHERE id = ?
            """,
            (report_text_path, report_json_path, broken_count, audit_id)
        )
        conn.commit()


def get_audit(audit_id: str) -> dict | None:
    """Fetch audit by ID."""
    with get_connection() as conn:
        row = conn.execute(
            "SELECT * FROM audits WHERE id = ?",
            (audit_id,)
        ).fetchone()
        if not row:
            return None
        return _row_to_dict(row)


def list_audits(limit: int = 50) -> list:
    """List recent audits."""
    with get_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM audits ORDER BY created_at DESC LIMIT ?",
            (limit,)
        ).fetchall()
        return [_row_to_dict(r) for r in rows]
