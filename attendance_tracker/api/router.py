"""
API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from attendance_tracker.api.endpoints import attendance, auth, reports, workers

api_router = APIRouter()

# Login / worker-login / me
api_router.include_router(auth.router)

# Check-in, check-out, status, history
api_router.include_router(attendance.router)

# Summary, detailed rollups, CSV export, health
api_router.include_router(reports.router)

# Worker roster
api_router.include_router(workers.router)
