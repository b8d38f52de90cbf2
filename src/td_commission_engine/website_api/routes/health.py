"""Health check routes."""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends

from ..services.transactions import get_tracker
from ...transactions.errors import PersistenceError
from ...transactions.tracker import TransactionTracker

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "message": "Transaction Management API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def ready(tracker: TransactionTracker = Depends(get_tracker)):
    """Readiness check - verifies database is accessible."""
    try:
        tracker.database.ping()
        return {"status": "ready"}
    except PersistenceError as e:
        return {"status": "not_ready", "detail": str(e)}
