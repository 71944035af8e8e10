"""Dashboard statistics endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockroom.db.database import get_db
from stockroom.db.models import User
from stockroom.core.dependencies import get_current_user
from stockroom.services.stats_service import StatsService
from stockroom.schemas.stats import StatsSummary


router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("/summary", response_model=StatsSummary)
async def get_summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Product, order and low-stock counts with monthly sales."""
    return StatsService(db).summary()
