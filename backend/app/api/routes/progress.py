"""Progress dashboard route."""

from fastapi import APIRouter

from app.api.deps import CurrentUser, DbSession
from app.schemas.progress import ProgressResponse
from app.services.progress import get_progress

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("/", response_model=ProgressResponse)
async def read_progress(current_user: CurrentUser, db: DbSession) -> ProgressResponse:
    """Weekly and monthly quiz/flashcard stats plus the 10 most recent attempts."""
    return await get_progress(db, current_user.id)
