"""CSV export of every session transcript of an interview."""

from __future__ import annotations

import csv
import io
import re
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from models.interview import Interview
from services.aggregation import list_sessions

CSV_HEADER = [
    "session_id",
    "session_token",
    "started_at",
    "completed_at",
    "is_completed",
    "tokens_used",
    "role",
    "message",
    "message_time",
]


def _iso(value: datetime | None) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix; naive values are already UTC."""
    if not value:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_rows(db: Session, interview: Interview) -> list[list[str]]:
    """One row per message, or one placeholder row for a session without messages."""
    rows: list[list[str]] = []
    for s in list_sessions(db, interview):
        session_fields = [
            str(s.id),
            s.session_token,
            _iso(s.started_at),
            _iso(s.completed_at),
            "true" if s.is_completed else "false",
            str(s.tokens_used),
        ]
        messages = s.transcript.all()
        if not messages:
            rows.append(session_fields + ["", "", ""])
            continue
        for m in messages:
            rows.append(session_fields + [m.role.value, m.content, _iso(m.created_at)])
    return rows


def render_csv(rows: list[list[str]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    # Header stays unquoted
    buf.write(",".join(CSV_HEADER) + "\n")
    writer.writerows(rows)
    return buf.getvalue().rstrip("\n")


def export_filename(interview: Interview, today: date | None = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    safe_name = re.sub(r"[^a-zA-Z0-9]", "_", interview.name)
    return f"{safe_name}_{today.isoformat()}.csv"


def export_interview_csv(db: Session, interview: Interview) -> tuple[str, str]:
    """Return ``(filename, csv_text)`` for *interview*."""
    return export_filename(interview), render_csv(build_rows(db, interview))
