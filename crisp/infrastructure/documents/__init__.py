"""
Document infrastructure: turning uploaded résumé files into plain text.
"""

from .reader import read_document, validate_upload, read_pdf, read_docx

__all__ = ["read_document", "validate_upload", "read_pdf", "read_docx"]
