"""Prepares uploaded documents for AI extraction (PDF, PPTX, DOCX)."""

import base64
import io
import logging
import re
from pathlib import PurePosixPath

import pymupdf  # PyMuPDF
from docx import Document as DocxDocument
from pptx import Presentation

logger = logging.getLogger(__name__)

PDF_TYPE = "application/pdf"
PPT_TYPE = "application/vnd.ms-powerpoint"
PPTX_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
DOC_TYPE = "application/msword"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_EXTENSION_TYPES = {
    ".pdf": PDF_TYPE,
    ".ppt": PPT_TYPE,
    ".pptx": PPTX_TYPE,
    ".doc": DOC_TYPE,
    ".docx": DOCX_TYPE,
}

EXTRACTION_PROMPT = (
    "Extract the main content and key points from this document. "
    "Provide a comprehensive summary."
)

# Control characters that Postgres TEXT/VARCHAR cannot store (NUL, etc.)
_ILLEGAL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


class UnsupportedDocumentError(ValueError):
    """The document format cannot be sent to the gateway."""


class InvalidDocumentError(ValueError):
    """The document bytes do not parse as the declared format."""


def guess_file_type(file_name: str) -> str | None:
    """Map a file name's extension to one of the accepted MIME types."""
    return _EXTENSION_TYPES.get(PurePosixPath(file_name).suffix.lower())


def clean_text(text: str) -> str:
    """Strip control characters the database rejects."""
    return _ILLEGAL_CHARS.sub("", text)


class DocumentProcessor:
    """Service for turning raw document bytes into gateway message content."""

    @staticmethod
    def validate_pdf(pdf_bytes: bytes) -> int:
        """
        Validate that the bytes represent a valid PDF file.

        Returns:
            Page count of the PDF

        Raises:
            InvalidDocumentError: If the bytes are not a PDF with at least one page
        """
        try:
            doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            raise InvalidDocumentError("The uploaded file is not a valid PDF.") from e
        try:
            page_count = len(doc)
        finally:
            doc.close()
        if page_count == 0:
            raise InvalidDocumentError("The uploaded PDF has no pages.")
        return page_count

    @staticmethod
    def extract_pptx_text(data: bytes) -> str:
        """Collect the text of every shape on every slide."""
        try:
            presentation = Presentation(io.BytesIO(data))
        except Exception as e:
            raise InvalidDocumentError("The uploaded file is not a valid PowerPoint file.") from e

        slides = []
        for number, slide in enumerate(presentation.slides, start=1):
            lines = [
                shape.text_frame.text
                for shape in slide.shapes
                if shape.has_text_frame and shape.text_frame.text.strip()
            ]
            if lines:
                slides.append(f"Slide {number}:\n" + "\n".join(lines))
        return "\n\n".join(slides)

    @staticmethod
    def extract_docx_text(data: bytes) -> str:
        """Collect the text of every non-empty paragraph."""
        try:
            document = DocxDocument(io.BytesIO(data))
        except Exception as e:
            raise InvalidDocumentError("The uploaded file is not a valid Word document.") from e
        return "\n".join(p.text for p in document.paragraphs if p.text.strip())

    def build_extraction_message(self, data: bytes, file_type: str | None, file_name: str) -> dict:
        """
        Build the user message asking the gateway to summarize a document.

        PDFs are embedded as a base64 document block. PPTX and DOCX text is
        read locally and sent inline. Legacy binary Office formats are rejected.
        """
        kind = file_type or guess_file_type(file_name)

        if kind == PDF_TYPE:
            page_count = self.validate_pdf(data)
            logger.info("Embedding PDF %s (%d pages) for extraction", file_name, page_count)
            return {
                "role": "user",
                "content": [
                    {
                        "type": "document",
                        "source": {
                            "type": "base64",
                            "media_type": PDF_TYPE,
                            "data": base64.b64encode(data).decode("ascii"),
                        },
                    },
                    {"type": "text", "text": EXTRACTION_PROMPT},
                ],
            }

        if kind == PPTX_TYPE:
            text = self.extract_pptx_text(data)
        elif kind == DOCX_TYPE:
            text = self.extract_docx_text(data)
        else:
            raise UnsupportedDocumentError(
                f"Cannot extract content from {file_name} ({kind or 'unknown type'}). "
                "Save it as PDF, PPTX, or DOCX and upload it again."
            )

        if not text.strip():
            raise InvalidDocumentError(f"No text found in {file_name}.")
        logger.info("Read %d chars from %s for extraction", len(text), file_name)
        return {
            "role": "user",
            "content": f"{EXTRACTION_PROMPT}\n\nDocument: {file_name}\n\n{clean_text(text)}",
        }


# Singleton instance
document_processor = DocumentProcessor()
