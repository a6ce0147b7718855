"""
Main API router aggregator
"""
from fastapi import APIRouter

from court_scheduling.api.v1.endpoints import (
    adjournments,
    court_scheduler,
    health,
    schedule_requests,
)

api_router = APIRouter()

api_router.include_router(schedule_requests.router, prefix="/cases", tags=["Cases"])
api_router.include_router(court_scheduler.router, prefix="/court-scheduler", tags=["Court Scheduler"])
api_router.include_router(adjournments.router, prefix="/adjournments", tags=["Adjournments"])
api_router.include_router(health.router, prefix="/health", tags=["Health"])
