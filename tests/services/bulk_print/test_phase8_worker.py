from __future__ import annotations

import json
from pathlib import Path

import pytest

from evidence_share.bulk_print.config import build_bulk_print_policy
from evidence_share.bulk_print.contracts import CaseEvent, CaseUpdate, Dispatched, NotEligible
from evidence_share.bulk_print.eligibility import can_handle
from evidence_share.bulk_print.handler import HandleResult
from evidence_share.bulk_print.worker import (
    BulkPrintWorker,
    BulkPrintWorkerConfig,
    BulkPrintWorkerConfigError,
    load_worker_config,
)


def _policy():
    return build_bulk_print_policy(
        {
            "version": "v0",
            "policy_id": "evidence_share.bulk_print.v0",
            "revision": "r1",
            "bulk_print": {"allowed_received_via": ["Paper"]},
        }
    )


class StubHandler:
    def __init__(self) -> None:
        self.policy = _policy()
        self.handled: list[CaseEvent] = []

    def can_handle(self, event: CaseEvent) -> bool:
        return can_handle(event, self.policy)

    def handle(self, event: CaseEvent) -> HandleResult:
        self.handled.append(event)
        outcome = Dispatched(correlation_id="U1", description="d") if event.case_id == "1" else NotEligible("d")
        return HandleResult(
            case_id=event.case_id,
            outcome=outcome,
            final_state="DONE",
            update=CaseUpdate(case_id=event.case_id, event_kind="sentToDwp", title="Sent to DWP", comment="d"),
        )


def _config(tmp_path: Path) -> BulkPrintWorkerConfig:
    return BulkPrintWorkerConfig(
        profile_path=tmp_path / "profile.yaml",
        policy_ref=tmp_path / "policy.yaml",
        events_path=None,
        stream_id="bulk_print_test",
        idam_url="http://idam",
        idam_client_id="sscs",
        idam_client_secret=None,
        docmosis_url="http://docmosis",
        dm_store_url="http://dm-store",
        dm_store_service_token=None,
        bulk_print_url="http://bulk-print",
        bulk_print_api_key=None,
        ccd_url="http://ccd",
        timeout_seconds=5.0,
        metrics_path=tmp_path / "metrics.json",
        log_path=None,
    )


def _line(case_id: str, event_kind: str, *, translation: bool = False) -> str:
    return json.dumps(
        {
            "case_id": case_id,
            "event_kind": event_kind,
            "translation_work_outstanding": translation,
            "case_data": {"appeal": {"received_via": "Paper"}, "created_in_gaps_from": "validAppeal"},
        }
    )


def test_worker_routes_events_and_exports_metrics(tmp_path: Path) -> None:
    handler = StubHandler()
    worker = BulkPrintWorker(_config(tmp_path), handler=handler, policy=handler.policy)
    lines = [
        _line("1", "validAppealCreated"),
        "",
        "not json",
        _line("2", "sendToDwp", translation=True),
        _line("3", "resendToDwp", translation=True),
    ]
    processed = worker.run_lines(lines)

    assert processed == 2
    assert [event.case_id for event in handler.handled] == ["1", "3"]
    exported = json.loads((tmp_path / "metrics.json").read_text(encoding="utf-8"))
    assert exported["metrics"]["events_seen"] == 3
    assert exported["metrics"]["events_skipped"] == 2
    assert exported["metrics"]["dispatched"] == 1
    assert exported["metrics"]["not_eligible"] == 1


def test_worker_skips_undecodable_line_and_keeps_going(tmp_path: Path) -> None:
    handler = StubHandler()
    worker = BulkPrintWorker(_config(tmp_path), handler=handler, policy=handler.policy)
    events = tmp_path / "events.jsonl"
    events.write_bytes(b"\xff\xfe bad line\n" + _line("1", "validAppealCreated").encode("utf-8") + b"\n")

    processed = worker.run_file(events)

    assert processed == 1
    assert [event.case_id for event in handler.handled] == ["1"]
    exported = json.loads((tmp_path / "metrics.json").read_text(encoding="utf-8"))
    assert exported["metrics"]["events_seen"] == 1
    assert exported["metrics"]["events_skipped"] == 1
    assert exported["metrics"]["dispatched"] == 1


def test_load_worker_config_resolves_environment_placeholders(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CCD_URL", "http://ccd.internal")
    monkeypatch.delenv("IDAM_URL", raising=False)
    monkeypatch.delenv("BULK_PRINT_EVENTS_PATH", raising=False)
    profile = tmp_path / "profile.yaml"
    profile.write_text(
        """
bulk_print:
  policy_ref: config/evidence_share/bulk_print_policy_v0.yaml
  stream_id: bulk_print_local
  events_path: ${BULK_PRINT_EVENTS_PATH:-runs/events.jsonl}
  wiring:
    timeout_seconds: 12
    idam_url: ${IDAM_URL:-http://localhost:5000}
    docmosis_url: http://localhost:5433
    dm_store_url: http://localhost:4603
    bulk_print_url: http://localhost:8485
""".strip(),
        encoding="utf-8",
    )
    config = load_worker_config(profile)
    assert config.idam_url == "http://localhost:5000"
    assert config.ccd_url == "http://ccd.internal"
    assert config.timeout_seconds == 12.0
    assert config.events_path == Path("runs/events.jsonl")
    assert config.stream_id == "bulk_print_local"
    assert config.metrics_path is None


def test_load_worker_config_requires_collaborator_urls(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("IDAM_URL", "CCD_URL", "DM_STORE_URL", "DOCMOSIS_URL", "BULK_PRINT_URL"):
        monkeypatch.delenv(name, raising=False)
    profile = tmp_path / "profile.yaml"
    profile.write_text(
        """
bulk_print:
  policy_ref: config/evidence_share/bulk_print_policy_v0.yaml
  wiring:
    idam_url: http://localhost:5000
""".strip(),
        encoding="utf-8",
    )
    with pytest.raises(BulkPrintWorkerConfigError):
        load_worker_config(profile)


def test_dispatch_filter_keeps_bulk_print_records_and_warnings() -> None:
    import logging

    from evidence_share.logging_utils import DispatchFilter

    log_filter = DispatchFilter()

    def _record(name: str, level: int) -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 1, "msg", None, None)

    assert log_filter.filter(_record("evidence_share.bulk_print.handler", logging.INFO))
    assert log_filter.filter(_record("urllib3.connectionpool", logging.WARNING))
    assert not log_filter.filter(_record("urllib3.connectionpool", logging.DEBUG))
