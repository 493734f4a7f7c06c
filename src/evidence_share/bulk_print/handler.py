"""Per-event bulk print handler.

Routes a case event, runs the print orchestrator and records exactly one
case state transition for the outcome. Nothing raised by the pipeline or
the case store escapes ``handle``; a failed record update is logged and
reported on the result instead.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from .collaborators import (
    CaseRecordStore,
    ContentStore,
    DocumentRenderer,
    IdentityProvider,
    PrintProvider,
    TemplateResolver,
)
from .config import BulkPrintPolicy
from .contracts import CaseEvent, CaseSnapshot, CaseUpdate, DispatchOutcome, Failed, outcome_label
from .eligibility import can_handle
from .orchestrator import PrintOrchestrator
from .recorder import OutcomeRecorder


logger = logging.getLogger("evidence_share.bulk_print.handler")


class BulkPrintHandlerError(ValueError):
    """Raised when an event that cannot be routed is handed to the handler."""


@dataclass(frozen=True)
class HandleResult:
    case_id: str
    outcome: DispatchOutcome
    final_state: str
    update: CaseUpdate | None
    record_error: str | None = None

    @property
    def recorded(self) -> bool:
        return self.update is not None


@dataclass
class SendToBulkPrintHandler:
    policy: BulkPrintPolicy
    orchestrator: PrintOrchestrator
    recorder: OutcomeRecorder

    def can_handle(self, event: CaseEvent) -> bool:
        return can_handle(event, self.policy)

    def handle(self, event: CaseEvent) -> HandleResult:
        if not self.can_handle(event):
            raise BulkPrintHandlerError(
                f"cannot handle event kind {event.event_kind!r} for case {event.case_id}"
            )
        snapshot = event.snapshot if event.snapshot is not None else CaseSnapshot(case_id=event.case_id)
        result = self.orchestrator.run(snapshot)
        outcome = result.outcome
        if isinstance(outcome, Failed):
            logger.info(
                "Error when bulk-printing caseId: %s. %s",
                event.case_id,
                outcome.description,
            )
        try:
            update = self.recorder.record(snapshot, outcome)
        except Exception as exc:
            logger.exception(
                "Failed to record bulk print outcome %s for case id %s",
                outcome_label(outcome),
                event.case_id,
            )
            return HandleResult(
                case_id=event.case_id,
                outcome=outcome,
                final_state=result.final_state,
                update=None,
                record_error=str(exc)[:256],
            )
        return HandleResult(
            case_id=event.case_id,
            outcome=outcome,
            final_state=result.final_state,
            update=update,
        )


def build_handler(
    *,
    policy: BulkPrintPolicy,
    identity_provider: IdentityProvider,
    template_resolver: TemplateResolver,
    document_renderer: DocumentRenderer,
    content_store: ContentStore,
    print_provider: PrintProvider,
    case_store: CaseRecordStore,
) -> SendToBulkPrintHandler:
    orchestrator = PrintOrchestrator(
        policy=policy,
        identity_provider=identity_provider,
        template_resolver=template_resolver,
        document_renderer=document_renderer,
        content_store=content_store,
        print_provider=print_provider,
    )
    recorder = OutcomeRecorder(case_store=case_store, identity_provider=identity_provider)
    return SendToBulkPrintHandler(policy=policy, orchestrator=orchestrator, recorder=recorder)
