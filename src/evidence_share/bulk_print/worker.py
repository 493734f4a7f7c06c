"""Bulk print worker CLI."""

from __future__ import annotations

import argparse
from collections.abc import Iterable
from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
import re
from typing import Any, Mapping

import yaml

from evidence_share.logging_utils import configure_logging

from .clients import (
    HttpCaseRecordStore,
    HttpContentStore,
    HttpDocumentRenderer,
    HttpIdentityProvider,
    HttpPrintProvider,
)
from .collaborators import ConfiguredTemplateResolver
from .config import BulkPrintPolicy, load_bulk_print_policy
from .contracts import BulkPrintContractError, CaseEvent
from .handler import SendToBulkPrintHandler, build_handler
from .observability import BulkPrintRunMetrics
from .taxonomy import BulkPrintTaxonomyError


logger = logging.getLogger("evidence_share.bulk_print.worker")
_ENV_PATTERN = re.compile(r"^\$\{([^}:]+)(?::-([^}]*))?\}$")


class BulkPrintWorkerConfigError(ValueError):
    """Raised when the worker profile is invalid."""


@dataclass(frozen=True)
class BulkPrintWorkerConfig:
    profile_path: Path
    policy_ref: Path
    events_path: Path | None
    stream_id: str
    idam_url: str
    idam_client_id: str
    idam_client_secret: str | None
    docmosis_url: str
    dm_store_url: str
    dm_store_service_token: str | None
    bulk_print_url: str
    bulk_print_api_key: str | None
    ccd_url: str
    timeout_seconds: float
    metrics_path: Path | None
    log_path: str | None


class BulkPrintWorker:
    def __init__(
        self,
        config: BulkPrintWorkerConfig,
        *,
        handler: SendToBulkPrintHandler | None = None,
        policy: BulkPrintPolicy | None = None,
    ) -> None:
        self.config = config
        self.policy = policy or load_bulk_print_policy(config.policy_ref)
        self.handler = handler or _build_http_handler(config, self.policy)
        self.metrics = BulkPrintRunMetrics(stream_id=config.stream_id)

    def run_lines(self, lines: Iterable[str | bytes]) -> int:
        processed = 0
        for line_number, line in enumerate(lines, start=1):
            text = line.strip()
            if not text:
                continue
            if self._process_line(text, line_number=line_number):
                processed += 1
        self._export()
        return processed

    def run_file(self, path: Path) -> int:
        with Path(path).open("rb") as handle:
            return self.run_lines(handle)

    def _process_line(self, text: str | bytes, *, line_number: int) -> bool:
        try:
            if isinstance(text, bytes):
                text = text.decode("utf-8")
            payload = json.loads(text)
            event = CaseEvent.from_payload(payload)
        except (
            UnicodeDecodeError,
            json.JSONDecodeError,
            BulkPrintContractError,
            BulkPrintTaxonomyError,
        ) as exc:
            logger.warning("Bulk print event skipped at line %s: %s", line_number, str(exc)[:256])
            self.metrics.record_skipped(reason="INVALID_EVENT")
            return False

        self.metrics.record_event_seen(case_id=event.case_id, event_kind=event.event_kind)
        if not self.handler.can_handle(event):
            logger.info(
                "Bulk print ignored event %s for case id %s",
                event.event_kind,
                event.case_id,
            )
            self.metrics.record_skipped(reason="NOT_ROUTED", case_id=event.case_id)
            return False

        result = self.handler.handle(event)
        self.metrics.record_result(result)
        return True

    def _export(self) -> None:
        if self.config.metrics_path is None:
            return
        self.metrics.export(output_path=self.config.metrics_path)


def _build_http_handler(config: BulkPrintWorkerConfig, policy: BulkPrintPolicy) -> SendToBulkPrintHandler:
    return build_handler(
        policy=policy,
        identity_provider=HttpIdentityProvider(
            base_url=config.idam_url,
            timeout_seconds=config.timeout_seconds,
            client_id=config.idam_client_id,
            client_secret=config.idam_client_secret,
        ),
        template_resolver=ConfiguredTemplateResolver(templates=policy.templates),
        document_renderer=HttpDocumentRenderer(base_url=config.docmosis_url, timeout_seconds=config.timeout_seconds),
        content_store=HttpContentStore(
            base_url=config.dm_store_url,
            timeout_seconds=config.timeout_seconds,
            service_token=config.dm_store_service_token,
        ),
        print_provider=HttpPrintProvider(
            base_url=config.bulk_print_url,
            timeout_seconds=config.timeout_seconds,
            api_key=config.bulk_print_api_key,
        ),
        case_store=HttpCaseRecordStore(base_url=config.ccd_url, timeout_seconds=config.timeout_seconds),
    )


def load_worker_config(profile_path: Path) -> BulkPrintWorkerConfig:
    path = Path(profile_path)
    payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(payload, Mapping):
        raise BulkPrintWorkerConfigError("worker profile must be a mapping")
    section = payload.get("bulk_print")
    if not isinstance(section, Mapping):
        raise BulkPrintWorkerConfigError("bulk_print must be a mapping")
    wiring = section.get("wiring") if isinstance(section.get("wiring"), Mapping) else {}

    policy_ref = str(_env(section.get("policy_ref")) or "").strip()
    if not policy_ref:
        raise BulkPrintWorkerConfigError("bulk_print.policy_ref is required")

    timeout_raw = _env(wiring.get("timeout_seconds") or os.getenv("BULK_PRINT_TIMEOUT_SECONDS") or 30)
    try:
        timeout_seconds = float(timeout_raw)
    except (TypeError, ValueError) as exc:
        raise BulkPrintWorkerConfigError("wiring.timeout_seconds must be a number") from exc
    if timeout_seconds <= 0:
        raise BulkPrintWorkerConfigError("wiring.timeout_seconds must be > 0")

    events_path = _none_if_blank(_env(section.get("events_path")))
    metrics_path = _none_if_blank(_env(section.get("metrics_path")))
    return BulkPrintWorkerConfig(
        profile_path=path,
        policy_ref=Path(policy_ref),
        events_path=Path(events_path) if events_path else None,
        stream_id=str(_env(section.get("stream_id") or "bulk_print")).strip() or "bulk_print",
        idam_url=_url(wiring, "idam_url", "IDAM_URL"),
        idam_client_id=str(_env(wiring.get("idam_client_id") or os.getenv("IDAM_CLIENT_ID") or "sscs")).strip(),
        idam_client_secret=_none_if_blank(_env(wiring.get("idam_client_secret") or os.getenv("IDAM_CLIENT_SECRET"))),
        docmosis_url=_url(wiring, "docmosis_url", "DOCMOSIS_URL"),
        dm_store_url=_url(wiring, "dm_store_url", "DM_STORE_URL"),
        dm_store_service_token=_none_if_blank(
            _env(wiring.get("dm_store_service_token") or os.getenv("DM_STORE_SERVICE_TOKEN"))
        ),
        bulk_print_url=_url(wiring, "bulk_print_url", "BULK_PRINT_URL"),
        bulk_print_api_key=_none_if_blank(_env(wiring.get("bulk_print_api_key") or os.getenv("BULK_PRINT_API_KEY"))),
        ccd_url=_url(wiring, "ccd_url", "CCD_URL"),
        timeout_seconds=timeout_seconds,
        metrics_path=Path(metrics_path) if metrics_path else None,
        log_path=_none_if_blank(_env(section.get("log_path"))),
    )


def _url(wiring: Mapping[str, Any], key: str, env_name: str) -> str:
    value = str(_env(wiring.get(key) or os.getenv(env_name) or "")).strip()
    if not value:
        raise BulkPrintWorkerConfigError(f"wiring.{key} (or {env_name}) is required")
    return value


def _env(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    token = value.strip()
    match = _ENV_PATTERN.fullmatch(token)
    if not match:
        return value
    return os.getenv(match.group(1), match.group(2) or "")


def _none_if_blank(value: Any) -> str | None:
    text = str(value or "").strip()
    return text or None


def main() -> None:
    parser = argparse.ArgumentParser(description="Evidence Share bulk print worker")
    parser.add_argument("--profile", required=True, help="Path to worker profile YAML")
    parser.add_argument("--events", help="JSON-lines file of case events (overrides the profile)")
    args = parser.parse_args()

    config = load_worker_config(Path(args.profile))
    configure_logging(log_path=config.log_path)
    events_path = Path(args.events) if args.events else config.events_path
    if events_path is None:
        parser.error("no events source: pass --events or set bulk_print.events_path")
    worker = BulkPrintWorker(config)
    processed = worker.run_file(events_path)
    logger.info("Bulk print worker processed=%s", processed)


if __name__ == "__main__":
    main()
