"""Outcome recording: one case state transition per dispatch."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
import logging

from .collaborators import CaseRecordStore, IdentityProvider
from .contracts import CaseSnapshot, CaseUpdate, Dispatched, DispatchOutcome, Failed, NotEligible
from .taxonomy import (
    DWP_STATE_UNREGISTERED,
    EVENT_SENT_TO_DWP,
    EVENT_SENT_TO_DWP_ERROR,
    FIELD_DATE_SENT_TO_DWP,
    FIELD_DWP_STATE,
    FIELD_HMCTS_DWP_STATE,
    HMCTS_DWP_STATE_FAILED,
    HMCTS_DWP_STATE_SENT,
    STATE_READY_TO_LIST,
    TITLE_SEND_TO_DWP_ERROR,
    TITLE_SENT_TO_DWP,
)


logger = logging.getLogger("evidence_share.bulk_print.recorder")


def build_case_update(snapshot: CaseSnapshot, outcome: DispatchOutcome, *, today: date) -> CaseUpdate:
    if isinstance(outcome, Failed):
        return CaseUpdate(
            case_id=snapshot.case_id,
            event_kind=EVENT_SENT_TO_DWP_ERROR,
            title=TITLE_SEND_TO_DWP_ERROR,
            comment=outcome.description,
            fields={FIELD_HMCTS_DWP_STATE: HMCTS_DWP_STATE_FAILED},
        )
    if not isinstance(outcome, (Dispatched, NotEligible)):
        raise TypeError(f"unsupported dispatch outcome: {outcome!r}")
    fields = {
        FIELD_DATE_SENT_TO_DWP: today.isoformat(),
        FIELD_HMCTS_DWP_STATE: HMCTS_DWP_STATE_SENT,
    }
    # Cases created in GAPS from ready-to-list are unregistered on the DWP side.
    if snapshot.created_in_gaps_from == STATE_READY_TO_LIST:
        fields[FIELD_DWP_STATE] = DWP_STATE_UNREGISTERED
    return CaseUpdate(
        case_id=snapshot.case_id,
        event_kind=EVENT_SENT_TO_DWP,
        title=TITLE_SENT_TO_DWP,
        comment=outcome.description,
        fields=fields,
    )


@dataclass
class OutcomeRecorder:
    case_store: CaseRecordStore
    identity_provider: IdentityProvider
    today: Callable[[], date] = date.today

    def record(self, snapshot: CaseSnapshot, outcome: DispatchOutcome) -> CaseUpdate:
        update = build_case_update(snapshot, outcome, today=self.today())
        self.case_store.apply_event(
            case_id=update.case_id,
            event_kind=update.event_kind,
            title=update.title,
            comment=update.comment,
            fields=dict(update.fields),
            credentials=self.identity_provider.get_credentials(),
        )
        if isinstance(outcome, Dispatched):
            logger.info(
                "Case sent to dwp for case id %s with returned value %s",
                snapshot.case_id,
                outcome.correlation_id,
            )
        return update
