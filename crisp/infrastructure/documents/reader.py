"""
Résumé file readers.

PDF text comes from PyMuPDF, DOCX text from python-docx. Validation happens
before any parser is touched so rejected uploads never cost a parse.
"""
import os
import logging

import fitz  # PyMuPDF for text extraction
import docx

from ...config import MAX_UPLOAD_BYTES, SUPPORTED_EXTENSIONS
from ...errors import DocumentParseError, DocumentTooLargeError, UnsupportedDocumentError

logger = logging.getLogger("documents")


def validate_upload(path: str) -> str:
    """
    Check extension and size of an uploaded file.

    Returns:
        The lower-cased extension (".pdf" or ".docx")

    Raises:
        UnsupportedDocumentError: Extension is not PDF/DOCX
        DocumentTooLargeError: File is larger than the upload limit
        DocumentParseError: File does not exist
    """
    extension = os.path.splitext(path)[1].lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedDocumentError("Unsupported file format. Please upload a PDF or DOCX file.")

    try:
        size = os.path.getsize(path)
    except OSError as e:
        raise DocumentParseError(f"Could not open {os.path.basename(path)}") from e

    if size > MAX_UPLOAD_BYTES:
        raise DocumentTooLargeError("File size must be less than 10MB!")
    return extension


def read_pdf(path: str) -> str:
    """Extract text from every page of a PDF, one page per line block."""
    try:
        pdf_document = fitz.open(path)
        try:
            return "".join(page.get_text() + "\n" for page in pdf_document)
        finally:
            pdf_document.close()
    except Exception as e:
        logger.error("Error extracting text from PDF %s: %s", path, e)
        raise DocumentParseError("Failed to parse PDF file") from e


def read_docx(path: str) -> str:
    """Extract paragraph text from a DOCX file."""
    try:
        document = docx.Document(path)
        return "\n".join(p.text for p in document.paragraphs)
    except Exception as e:
        logger.error("Error extracting text from DOCX %s: %s", path, e)
        raise DocumentParseError("Failed to parse DOCX file") from e


def read_document(path: str) -> str:
    """
    Validate and read a résumé file into plain text.

    Raises:
        DocumentError: Any validation or parse failure, with a user-facing message
    """
    extension = validate_upload(path)
    text = read_pdf(path) if extension == ".pdf" else read_docx(path)
    logger.info("Extracted %d characters from %s", len(text), os.path.basename(path))
    return text
