"""Bulk print run metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any, Mapping

from .contracts import FAILURE_REASONS, Dispatched, Failed, NotEligible
from .handler import HandleResult


class BulkPrintObservabilityError(ValueError):
    """Raised when bulk print observability inputs are invalid."""


@dataclass
class BulkPrintRunMetrics:
    stream_id: str
    counters: dict[str, int] = field(default_factory=dict)
    recent_events: list[dict[str, Any]] = field(default_factory=list)
    max_recent_events: int = 50

    def __post_init__(self) -> None:
        self.stream_id = str(self.stream_id or "").strip()
        if not self.stream_id:
            raise BulkPrintObservabilityError("stream_id is required")
        if self.max_recent_events <= 0:
            raise BulkPrintObservabilityError("max_recent_events must be > 0")
        for key in _REQUIRED_COUNTERS:
            self.counters.setdefault(key, 0)
        for reason in FAILURE_REASONS:
            self.counters.setdefault(_failure_counter(reason), 0)

    def record_event_seen(self, *, case_id: str, event_kind: str) -> None:
        self.counters["events_seen"] += 1
        self._append_event("event_seen", {"case_id": str(case_id), "event_kind": str(event_kind)})

    def record_skipped(self, *, reason: str, case_id: str | None = None) -> None:
        self.counters["events_skipped"] += 1
        payload: dict[str, Any] = {"reason": str(reason)}
        if case_id:
            payload["case_id"] = str(case_id)
        self._append_event("event_skipped", payload)

    def record_result(self, result: HandleResult) -> None:
        outcome = result.outcome
        payload: dict[str, Any] = {"case_id": result.case_id, "final_state": result.final_state}
        if isinstance(outcome, Dispatched):
            self.counters["dispatched"] += 1
            payload["correlation_id"] = outcome.correlation_id
        elif isinstance(outcome, NotEligible):
            self.counters["not_eligible"] += 1
        elif isinstance(outcome, Failed):
            self.counters["failed"] += 1
            self.counters[_failure_counter(outcome.reason)] += 1
            payload["reason"] = outcome.reason
            if outcome.collaborator:
                payload["collaborator"] = outcome.collaborator
        else:
            raise BulkPrintObservabilityError(f"unsupported outcome: {outcome!r}")
        if not result.recorded:
            self.counters["record_failures"] += 1
            payload["record_error"] = result.record_error
        self._append_event("dispatch_result", payload)

    def snapshot(self, *, generated_at_utc: str | None = None) -> dict[str, Any]:
        return {
            "generated_at_utc": generated_at_utc or _utc_now(),
            "stream_id": self.stream_id,
            "metrics": dict(self.counters),
            "recent_events": list(self.recent_events),
        }

    def export(self, *, output_path: str | Path, generated_at_utc: str | None = None) -> dict[str, Any]:
        payload = self.snapshot(generated_at_utc=generated_at_utc)
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, sort_keys=True, ensure_ascii=True, indent=2) + "\n", encoding="utf-8")
        return payload

    def _append_event(self, event_type: str, payload: Mapping[str, Any]) -> None:
        self.recent_events.append(
            {
                "event_type": str(event_type),
                "ts_utc": _utc_now(),
                "payload": dict(payload),
            }
        )
        if len(self.recent_events) > self.max_recent_events:
            self.recent_events = self.recent_events[-self.max_recent_events :]


def _failure_counter(reason: str) -> str:
    return f"failed_{reason.lower()}"


def _utc_now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


_REQUIRED_COUNTERS: tuple[str, ...] = (
    "events_seen",
    "events_skipped",
    "dispatched",
    "not_eligible",
    "failed",
    "record_failures",
)
