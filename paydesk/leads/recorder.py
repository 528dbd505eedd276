from __future__ import annotations
import csv
import io
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, List

import structlog
from fastapi.concurrency import run_in_threadpool

from paydesk.engine.errors import ValidationError, LeadStorageError

log = structlog.get_logger(__name__)

FIELD_ORDER = ("timestamp", "email", "status", "amount", "confirmationId", "failureReason", "reference")
_NEWLINES = re.compile(r"\r\n|\r|\n")


def _utc_now_iso() -> str:
    # same shape as JS Date.toISOString(): 2024-01-31T12:00:00.000Z
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _blank(v: Any) -> bool:
    return not isinstance(v, str) or not v.strip()


@dataclass(frozen=True)
class LeadRecord:
    email: str
    status: str
    amount: Optional[Any] = None
    confirmationId: Optional[str] = None
    failureReason: Optional[str] = None
    reference: Optional[str] = None
    timestamp: str = field(default_factory=_utc_now_iso)

    def __post_init__(self):
        missing = [name for name in ("email", "status") if _blank(getattr(self, name))]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", reason="MissingRequiredField"
            )

    def row(self) -> List[str]:
        out = []
        for name in FIELD_ORDER:
            v = getattr(self, name)
            # one physical line per record, whatever the caller sends
            out.append("" if v is None else _NEWLINES.sub(" ", str(v)))
        return out


def render_line(lead: LeadRecord) -> str:
    """Every field quoted, embedded quotes doubled, terminated by a single \\n."""
    buf = io.StringIO()
    csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n").writerow(lead.row())
    return buf.getvalue()


class LeadRecorder:
    """
    Append-only CSV sink for payment outcomes reported by the caller.

    Each record is one os.write() on an O_APPEND descriptor, so concurrent
    appends land whole, one after another, in completion order. The file is
    never read, truncated or rewritten. Not idempotent: reporting the same
    outcome twice writes two lines.
    """

    def __init__(self, path: str):
        self.path = path

    def _append(self, data: bytes) -> None:
        fd = os.open(self.path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
        try:
            written = os.write(fd, data)
        finally:
            os.close(fd)
        if written != len(data):
            raise OSError(f"short write to {self.path}: {written}/{len(data)} bytes")

    async def record(self, lead: LeadRecord) -> None:
        data = render_line(lead).encode("utf-8")
        try:
            await run_in_threadpool(self._append, data)
        except OSError as e:
            log.error("lead.write_failed", path=self.path, error=str(e))
            raise LeadStorageError(f"Unable to save lead: {e}") from e
        log.info("lead.recorded", status=lead.status, confirmation_id=lead.confirmationId)
