"""Flashcard routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlalchemy import select

from app.api.deps import CurrentUser, DbSession, get_user_resource_or_404
from app.db.models import Flashcard
from app.schemas.generation import CategoryType
from app.schemas.study import FlashcardRead

router = APIRouter(prefix="/flashcards", tags=["flashcards"])


@router.get("/", response_model=list[FlashcardRead])
async def list_flashcards(
    current_user: CurrentUser,
    db: DbSession,
    category: CategoryType | None = None,
    source_type: Annotated[str | None, Query(alias="sourceType")] = None,
    title: str | None = None,
) -> list[FlashcardRead]:
    """
    List flashcards for the current user, newest first.

    Filters:
    - category: health, academic, wellness
    - source_type: ai_generated, ppt_generated, manual
    - title: topic or source document name
    """
    query = select(Flashcard).where(Flashcard.user_id == current_user.id)

    if category:
        query = query.where(Flashcard.category == category)
    if source_type:
        query = query.where(Flashcard.source_type == source_type)
    if title:
        query = query.where(Flashcard.title == title)

    query = query.order_by(Flashcard.created_at.desc())

    result = await db.execute(query)
    return [FlashcardRead.model_validate(f) for f in result.scalars()]


@router.delete("/{flashcard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_flashcard(
    flashcard_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """Delete a flashcard."""
    flashcard = await get_user_resource_or_404(db, Flashcard, flashcard_id, current_user.id)
    await db.delete(flashcard)
    await db.commit()
