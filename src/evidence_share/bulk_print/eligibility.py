"""Event routing and dispatch eligibility for bulk print."""

from __future__ import annotations

from .config import BulkPrintPolicy
from .contracts import CaseEvent, CaseSnapshot
from .taxonomy import STATE_READY_TO_LIST, TRANSLATION_BYPASS_EVENT_KINDS


def resend_bypasses_translation(event: CaseEvent) -> bool:
    """Resend events are routed even while translation work is outstanding."""
    return event.event_kind in TRANSLATION_BYPASS_EVENT_KINDS


def can_handle(event: CaseEvent, policy: BulkPrintPolicy) -> bool:
    if resend_bypasses_translation(event):
        return True
    return event.event_kind in policy.handled_event_kinds and not event.translation_work_outstanding


def is_eligible(snapshot: CaseSnapshot | None, policy: BulkPrintPolicy) -> bool:
    if snapshot is None or snapshot.appeal is None:
        return False
    received_via = snapshot.appeal.received_via
    if received_via is None:
        return False
    origin = snapshot.created_in_gaps_from
    if origin is None or origin == STATE_READY_TO_LIST:
        return False
    return policy.is_allowed_received_via(received_via)
