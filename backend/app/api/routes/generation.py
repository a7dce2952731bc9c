"""
AI study-material generation routes.

Endpoints:
- POST /generate-flashcards - topic → flashcards
- POST /generate-quiz - topic → multiple-choice quiz
- POST /process-document - uploaded document → flashcards + quiz

Each handler validates input, asks the gateway for schema-constrained output,
and persists the derived rows for the authenticated user. Nothing is retried.
"""

import logging

from fastapi import APIRouter

from app.api.deps import CurrentUser, DbSession, require_own_storage_key, require_self
from app.api.errors import GENERATION_ERRORS, generation_http_error
from app.db.models import SourceType
from app.schemas.generation import (
    GenerateFlashcardsRequest,
    GenerateFlashcardsResponse,
    GenerateQuizRequest,
    GenerateQuizResponse,
    ProcessDocumentRequest,
    ProcessDocumentResponse,
)
from app.services import document_pipeline, study_generator
from app.services.document_pipeline import get_or_register_document
from app.services.study_generator import save_flashcards, save_quiz

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])


@router.post("/generate-flashcards", response_model=GenerateFlashcardsResponse)
async def generate_flashcards(
    request: GenerateFlashcardsRequest,
    db: DbSession,
    user: CurrentUser,
) -> GenerateFlashcardsResponse:
    """Generate `count` flashcards about `topic` and save them as ai_generated."""
    require_self(request.user_id, user)
    logger.info("Generating %d flashcards on topic: %s", request.count, request.topic)

    try:
        cards = await study_generator.generate_flashcards(request.topic, request.count)
    except GENERATION_ERRORS as e:
        raise generation_http_error(e) from e

    await save_flashcards(
        db,
        user.id,
        cards,
        title=request.topic,
        category=request.category,
        source_type=SourceType.AI_GENERATED.value,
    )
    await db.commit()

    return GenerateFlashcardsResponse(flashcards=cards)


@router.post("/generate-quiz", response_model=GenerateQuizResponse)
async def generate_quiz(
    request: GenerateQuizRequest,
    db: DbSession,
    user: CurrentUser,
) -> GenerateQuizResponse:
    """Generate a multiple-choice quiz and save it as one ai_generated Quiz row."""
    require_self(request.user_id, user)
    logger.info(
        "Generating %d %s questions on topic: %s",
        request.question_count, request.difficulty, request.topic,
    )

    try:
        quiz = await study_generator.generate_quiz(
            request.topic, request.question_count, request.difficulty
        )
    except GENERATION_ERRORS as e:
        raise generation_http_error(e) from e

    if not quiz.title:
        quiz.title = f"{request.topic} Quiz"

    await save_quiz(
        db,
        user.id,
        quiz,
        title=quiz.title,
        description=f"{request.difficulty} difficulty quiz on {request.topic}",
        source_type=SourceType.AI_GENERATED.value,
    )
    await db.commit()

    return GenerateQuizResponse(quiz=quiz)


@router.post("/process-document", response_model=ProcessDocumentResponse)
async def process_document(
    request: ProcessDocumentRequest,
    db: DbSession,
    user: CurrentUser,
) -> ProcessDocumentResponse:
    """
    Turn an uploaded document into flashcards and a quiz (ppt_generated).

    Steps that already committed on an earlier attempt are skipped, so calling
    this again after a failure resumes where the last run stopped.
    """
    require_self(request.user_id, user)
    require_own_storage_key(request.file_path, user)

    document = await get_or_register_document(db, user.id, request.file_path, request.file_name)

    try:
        document = await document_pipeline.run(db, document)
    except GENERATION_ERRORS as e:
        raise generation_http_error(e) from e

    return ProcessDocumentResponse(
        success=True,
        flashcards_count=document.flashcards_count or 0,
        questions_count=document.questions_count or 0,
    )
