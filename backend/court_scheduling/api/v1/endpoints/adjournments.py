"""
api/v1/endpoints/adjournments.py

Adjournment negotiation between clients and the court scheduler.

Endpoints:
  POST /api/v1/adjournments/request                  client submits a request
  GET  /api/v1/adjournments/client-requests          client's own requests
  GET  /api/v1/adjournments/requests                 scheduler: all requests (?status=)
  GET  /api/v1/adjournments/requests/{id}            scheduler: one request
  PUT  /api/v1/adjournments/requests/{id}/accept     scheduler: move the hearing
  PUT  /api/v1/adjournments/requests/{id}/reject     scheduler: keep the hearing
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from court_scheduling.api.v1.deps import require_role
from court_scheduling.db.database import get_db
from court_scheduling.db.models import AdjournmentRequest, User, UserRole
from court_scheduling.db.schemas import AdjournmentRequestOut
from court_scheduling.services import adjournment_service

logger = logging.getLogger(__name__)

router = APIRouter()

client_only = require_role(UserRole.client)
scheduler_only = require_role(UserRole.court_scheduler)


# ============================================================================
# Request schemas
# ============================================================================

class AdjournmentCreateRequest(BaseModel):
    case_id:              UUID
    preferred_date:       Optional[str] = None
    preferred_start_time: Optional[str] = None
    preferred_end_time:   Optional[str] = None
    reason:               Optional[str] = None
    urgency:              Optional[str] = None


class AdjournmentAcceptRequest(BaseModel):
    new_hearing_date: Optional[str] = None
    new_start_time:   Optional[str] = None
    new_end_time:     Optional[str] = None
    scheduler_notes:  Optional[str] = None


class AdjournmentRejectRequest(BaseModel):
    scheduler_notes: Optional[str] = None


def _format_request(request: AdjournmentRequest) -> AdjournmentRequestOut:
    out = AdjournmentRequestOut.model_validate(request)
    return out.model_copy(update={
        "case_number": request.case.case_number if request.case else None,
        "client_name": request.client.name if request.client else None,
        "lawyer_name": request.lawyer.name if request.lawyer else None,
    })


# ============================================================================
# Client
# ============================================================================

@router.post("/request", response_model=AdjournmentRequestOut, status_code=status.HTTP_201_CREATED)
def submit_adjournment_request(
    payload:      AdjournmentCreateRequest,
    current_user: User    = Depends(client_only),
    db:           Session = Depends(get_db),
):
    request = adjournment_service.create_adjournment_request(
        db,
        case_id=payload.case_id,
        client=current_user,
        preferred_date=payload.preferred_date,
        reason=payload.reason,
        preferred_start=payload.preferred_start_time,
        preferred_end=payload.preferred_end_time,
        urgency=payload.urgency,
    )
    return _format_request(request)


@router.get("/client-requests", response_model=list[AdjournmentRequestOut])
def get_client_requests(
    current_user: User    = Depends(client_only),
    db:           Session = Depends(get_db),
):
    requests = adjournment_service.list_client_requests(db, current_user.id)
    return [_format_request(r) for r in requests]


# ============================================================================
# Scheduler
# ============================================================================

@router.get("/requests", response_model=list[AdjournmentRequestOut])
def get_all_requests(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    current_user:  User          = Depends(scheduler_only),
    db:            Session       = Depends(get_db),
):
    requests = adjournment_service.list_adjournment_requests(db, status_filter)
    return [_format_request(r) for r in requests]


@router.get("/requests/{request_id}", response_model=AdjournmentRequestOut)
def get_request_details(
    request_id:   UUID,
    current_user: User    = Depends(scheduler_only),
    db:           Session = Depends(get_db),
):
    return _format_request(adjournment_service.get_adjournment_request(db, request_id))


@router.put("/requests/{request_id}/accept", response_model=AdjournmentRequestOut)
def accept_request(
    request_id:   UUID,
    payload:      AdjournmentAcceptRequest,
    current_user: User    = Depends(scheduler_only),
    db:           Session = Depends(get_db),
):
    request = adjournment_service.accept_adjournment_request(
        db,
        request_id,
        new_date=payload.new_hearing_date,
        scheduler=current_user,
        new_start=payload.new_start_time,
        new_end=payload.new_end_time,
        notes=payload.scheduler_notes,
    )
    return _format_request(request)


@router.put("/requests/{request_id}/reject", response_model=AdjournmentRequestOut)
def reject_request(
    request_id:   UUID,
    payload:      Optional[AdjournmentRejectRequest] = None,
    current_user: User    = Depends(scheduler_only),
    db:           Session = Depends(get_db),
):
    request = adjournment_service.reject_adjournment_request(
        db,
        request_id,
        scheduler=current_user,
        notes=payload.scheduler_notes if payload else None,
    )
    return _format_request(request)
