# paydesk/engine/errors.py
from __future__ import annotations
from typing import Optional


class PaydeskError(Exception):
    """Base for every error the orchestration core raises."""

    reason: str = "Error"

    def __init__(self, message: str, *, reason: Optional[str] = None):
        super().__init__(message)
        if reason:
            self.reason = reason

    def to_detail(self) -> dict:
        return {"type": self.reason, "message": str(self)}


class ValidationError(PaydeskError):
    """Caller input is malformed. Raised before any processor call."""

    reason = "ValidationError"


class UpstreamError(PaydeskError):
    """The payment processor failed or rejected the call; message is the processor's."""

    reason = "UpstreamError"


class LeadStorageError(PaydeskError):
    reason = "IOError"


class StartupError(PaydeskError):
    reason = "StartupError"
