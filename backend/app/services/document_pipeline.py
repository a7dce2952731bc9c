"""
Document → study material pipeline.

Three gateway calls (extract, flashcards, quiz) with no transaction spanning
them. Each step commits its rows together with a completion marker on the
UploadedDocument, so:

- rows from finished steps stay committed when a later step fails
- re-running the pipeline skips finished steps and resumes at the failed one

A run first claims the document with a conditional UPDATE, so two concurrent
calls for the same document cannot both generate study material.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db.models import ProcessingStatus, SourceType, UploadedDocument
from app.services.document_processor import clean_text, document_processor, guess_file_type
from app.services.llm_gateway import llm_gateway
from app.services.s3 import s3_service
from app.services.study_generator import save_flashcards, save_quiz, study_generator

logger = logging.getLogger(__name__)
settings = get_settings()


class DocumentInProgressError(RuntimeError):
    """Another run is processing the document right now."""


async def get_or_register_document(
    db: AsyncSession,
    user_id: UUID,
    file_path: str,
    file_name: str,
) -> UploadedDocument:
    """Find the caller's document row for `file_path`, creating it if the client skipped registration."""
    result = await db.execute(
        select(UploadedDocument).where(
            UploadedDocument.user_id == user_id,
            UploadedDocument.file_path == file_path,
        )
    )
    document = result.scalar_one_or_none()
    if document is None:
        document = UploadedDocument(
            user_id=user_id,
            file_name=file_name,
            file_path=file_path,
            file_type=guess_file_type(file_name),
            processing_status=ProcessingStatus.PENDING.value,
        )
        db.add(document)
        await db.commit()
        await db.refresh(document)
    return document


class DocumentPipeline:
    """Runs the extract → flashcards → quiz steps for one document."""

    async def run(self, db: AsyncSession, document: UploadedDocument) -> UploadedDocument:
        """
        Process `document`, resuming after any step that already committed.

        On failure the document is marked failed (committed) and the error re-raised.
        """
        if document.processing_status == ProcessingStatus.COMPLETED.value:
            logger.info("Document %s already processed", document.file_name)
            return document

        if not await self._claim(db, document):
            if document.processing_status == ProcessingStatus.COMPLETED.value:
                return document
            logger.warning("Document %s is already being processed", document.file_name)
            raise DocumentInProgressError(f"{document.file_name} is already being processed")

        logger.info("Processing document: %s", document.file_name)

        try:
            if document.extracted_text is None:
                await self._extract(db, document)
            if document.flashcards_generated_at is None:
                await self._generate_flashcards(db, document)
            if document.quiz_generated_at is None:
                await self._generate_quiz(db, document)
        except Exception as e:
            logger.error("Error processing document %s: %s", document.file_name, str(e))
            await db.rollback()
            document.processing_status = ProcessingStatus.FAILED.value
            document.processing_error = str(e)[:1000]
            await db.commit()
            raise

        document.processing_status = ProcessingStatus.COMPLETED.value
        document.processed_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(document)
        return document

    async def _claim(self, db: AsyncSession, document: UploadedDocument) -> bool:
        """
        Atomically move the document to 'processing'.

        Only pending or failed documents can be claimed, plus 'processing' ones whose
        run started more than `document_processing_timeout_seconds` ago. Returns
        False when another run holds the document.
        """
        now = datetime.now(timezone.utc)
        stale_before = now - timedelta(seconds=settings.document_processing_timeout_seconds)
        started_at = func.coalesce(UploadedDocument.processing_started_at, UploadedDocument.created_at)

        result = await db.execute(
            update(UploadedDocument)
            .where(
                UploadedDocument.id == document.id,
                or_(
                    UploadedDocument.processing_status.in_(
                        [ProcessingStatus.PENDING.value, ProcessingStatus.FAILED.value]
                    ),
                    and_(
                        UploadedDocument.processing_status == ProcessingStatus.PROCESSING.value,
                        started_at < stale_before,
                    ),
                ),
            )
            .values(
                processing_status=ProcessingStatus.PROCESSING.value,
                processing_error=None,
                processing_started_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        claimed = result.rowcount == 1
        await db.commit()
        await db.refresh(document)
        return claimed

    async def _extract(self, db: AsyncSession, document: UploadedDocument) -> None:
        data = await s3_service.download_document(document.file_path)
        logger.info("Downloaded %d bytes from storage: %s", len(data), document.file_path)
        document.file_size = len(data)

        message = document_processor.build_extraction_message(
            data, document.file_type, document.file_name
        )
        summary = await llm_gateway.complete_text([message])

        document.extracted_text = clean_text(summary)[: settings.extracted_text_max_chars]
        await db.commit()
        logger.info("Document content extracted, generating study materials...")

    async def _generate_flashcards(self, db: AsyncSession, document: UploadedDocument) -> None:
        cards = await study_generator.generate_flashcards_from_text(
            document.extracted_text, settings.document_flashcard_count
        )
        await save_flashcards(
            db,
            document.user_id,
            cards,
            title=document.file_name,
            category="academic",
            source_type=SourceType.PPT_GENERATED.value,
        )
        document.flashcards_count = len(cards)
        document.flashcards_generated_at = datetime.now(timezone.utc)
        await db.commit()
        logger.info("Saved %d flashcards from %s", len(cards), document.file_name)

    async def _generate_quiz(self, db: AsyncSession, document: UploadedDocument) -> None:
        quiz = await study_generator.generate_quiz_from_text(
            document.extracted_text, settings.document_question_count
        )
        await save_quiz(
            db,
            document.user_id,
            quiz,
            title=f"{document.file_name} Quiz",
            description=f"Quiz generated from {document.file_name}",
            source_type=SourceType.PPT_GENERATED.value,
        )
        document.questions_count = len(quiz.questions)
        document.quiz_generated_at = datetime.now(timezone.utc)
        await db.commit()
        logger.info("Saved quiz with %d questions from %s", len(quiz.questions), document.file_name)


# Singleton instance
document_pipeline = DocumentPipeline()
