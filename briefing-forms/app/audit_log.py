"""Append-only JSONL audit trail for briefing forms.

Stores one JSON object per line in date-partitioned files under data/audit/.
Files are named YYYY-MM-DD.jsonl.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from app.schema import AuditEntry

DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "audit"


def _ensure_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def _file_for_date(date_str: str) -> Path:
    return DATA_DIR / f"{date_str}.jsonl"


def _today_str() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def log_action(
    action: str,
    form_id: str = "",
    record_id: str = "",
    details: dict | None = None,
) -> AuditEntry:
    """Append an AuditEntry to today's JSONL file and return it."""
    _ensure_dir()

    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        form_id=form_id,
        record_id=record_id,
        details=details or {},
    )

    path = _file_for_date(_today_str())
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict(), ensure_ascii=False, default=str) + "\n")

    return entry


def _read_entries_from_file(path: Path) -> list[AuditEntry]:
    entries: list[AuditEntry] = []
    if not path.exists():
        return entries
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            entries.append(AuditEntry.from_dict(json.loads(line)))
    return entries


def get_recent_entries(limit: int = 50) -> list[AuditEntry]:
    """Read the most recent entries across all files, newest first."""
    _ensure_dir()
    results: list[AuditEntry] = []
    for path in sorted(DATA_DIR.glob("*.jsonl"), key=lambda p: p.stem, reverse=True):
        entries = _read_entries_from_file(path)
        entries.reverse()
        results.extend(entries)
        if len(results) >= limit:
            break
    return results[:limit]


def get_entries_for_form(form_id: str, limit: int = 100) -> list[AuditEntry]:
    """Return entries matching a specific form_id, newest first."""
    return [e for e in get_recent_entries(limit=10_000) if e.form_id == form_id][:limit]
