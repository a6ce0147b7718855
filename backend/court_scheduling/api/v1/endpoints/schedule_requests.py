"""
api/v1/endpoints/schedule_requests.py

Lawyer side of scheduling: ask the court to allocate a hearing for a
filed case.

Endpoints:
  POST /api/v1/cases/{case_id}/schedule-request
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from court_scheduling.api.v1.deps import require_role
from court_scheduling.db.database import get_db
from court_scheduling.db.models import User, UserRole
from court_scheduling.db.schemas import ScheduleRequestOut
from court_scheduling.services.scheduler_service import scheduler_service

router = APIRouter()


class ScheduleRequestCreate(BaseModel):
    message: Optional[str] = Field(default=None, max_length=1000)


@router.post(
    "/{case_id}/schedule-request",
    response_model=ScheduleRequestOut,
    status_code=status.HTTP_201_CREATED,
)
def request_court_scheduling(
    case_id:      UUID,
    payload:      Optional[ScheduleRequestCreate] = None,
    current_user: User    = Depends(require_role(UserRole.lawyer)),
    db:           Session = Depends(get_db),
):
    return scheduler_service.request_scheduling(
        db,
        case_id,
        lawyer=current_user,
        message=payload.message if payload else None,
    )
