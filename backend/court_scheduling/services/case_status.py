"""
services/case_status.py

Legal transitions of Case.status and the chain-of-custody history.

Every transition touching scheduling re-asserts the lawyer captured by the
caller at the start of its operation, so a scheduling write can never
clear Case.current_lawyer_id as a side effect.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from court_scheduling.db.models import Case, CaseStatus, CaseStatusHistory
from court_scheduling.utils.exceptions import InvalidStateError

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: dict[CaseStatus, frozenset[CaseStatus]] = {
    CaseStatus.draft:                frozenset({CaseStatus.pending}),
    CaseStatus.pending:              frozenset({CaseStatus.verified, CaseStatus.rejected}),
    CaseStatus.verified:             frozenset({CaseStatus.lawyer_requested}),
    CaseStatus.lawyer_requested:     frozenset({CaseStatus.lawyer_assigned, CaseStatus.verified}),
    CaseStatus.lawyer_assigned:      frozenset({CaseStatus.filing_requested}),
    CaseStatus.filing_requested:     frozenset({CaseStatus.filed, CaseStatus.lawyer_assigned}),
    CaseStatus.filed:                frozenset({CaseStatus.scheduling_requested}),
    CaseStatus.scheduling_requested: frozenset({CaseStatus.hearing_scheduled}),
    CaseStatus.hearing_scheduled:    frozenset({CaseStatus.hearing_scheduled, CaseStatus.completed}),
    CaseStatus.completed:            frozenset(),
    CaseStatus.rejected:             frozenset(),
}

# Transitions that require an assigned lawyer
LAWYER_REQUIRED = frozenset({
    CaseStatus.filed,
    CaseStatus.scheduling_requested,
    CaseStatus.hearing_scheduled,
})


def can_transition(from_status: CaseStatus, to_status: CaseStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())


def transition(
    db:        Session,
    case:      Case,
    to_status: CaseStatus,
    lawyer_id: Optional[UUID],
    actor_id:  Optional[UUID] = None,
    reason:    Optional[str]  = None,
) -> CaseStatusHistory:
    """
    Moves case to to_status and appends a history row. Does not commit.

    lawyer_id is the current lawyer as read by the caller at the start of
    the operation; it is written back unchanged.

    Raises InvalidStateError for a transition not in ALLOWED_TRANSITIONS or
    a scheduling transition on a case without a lawyer.
    """
    from_status = case.status

    if not can_transition(from_status, to_status):
        raise InvalidStateError(
            f"Case {case.case_number} cannot move from '{from_status.value}' to '{to_status.value}'"
        )

    if to_status in LAWYER_REQUIRED and lawyer_id is None:
        raise InvalidStateError(
            f"Case {case.case_number} has no assigned lawyer"
        )

    case.status = to_status
    case.current_lawyer_id = lawyer_id

    history = CaseStatusHistory(
        case_id=case.id,
        from_status=from_status.value,
        to_status=to_status.value,
        actor_id=actor_id,
        reason=reason,
    )
    db.add(history)

    logger.info(
        "Case %s status %s -> %s (actor=%s, lawyer=%s)",
        case.case_number, from_status.value, to_status.value, actor_id, lawyer_id,
    )
    return history
