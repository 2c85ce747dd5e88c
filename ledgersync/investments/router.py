"""Investment price update API routes."""

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, status

router = APIRouter(prefix="/investments", tags=["investments"])

# Global scheduler instance (set by main app)
_scheduler = None


def set_scheduler(scheduler):
    """Set the global scheduler instance."""
    global _scheduler
    _scheduler = scheduler


def _require_scheduler():
    if _scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Price scheduler not initialized",
        )
    return _scheduler


@router.post("/prices/update")
async def update_prices() -> Dict[str, Any]:
    """Run a price refresh now, regardless of the schedule."""
    return await _require_scheduler().run_now()


@router.get("/prices/status")
async def price_status() -> Dict[str, Any]:
    return _require_scheduler().get_status()
