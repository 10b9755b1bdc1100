"""
Exception hierarchy for the interview engine.

Every error carries a message that is safe to show to the user.
"""


class CrispError(Exception):
    """Base class for all interview engine errors."""


class ConfigError(CrispError):
    """Missing or invalid configuration."""


class DocumentError(CrispError):
    """A résumé file could not be accepted or read."""


class UnsupportedDocumentError(DocumentError):
    """File extension is not one we can parse."""


class DocumentTooLargeError(DocumentError):
    """File exceeds the upload size limit."""


class DocumentParseError(DocumentError):
    """The parser failed on an otherwise acceptable file."""


class LLMError(CrispError):
    """The generative-language endpoint failed or returned unusable data."""


class AuthError(CrispError):
    """Sign-up, sign-in or sign-out failed."""


class InterviewError(CrispError):
    """An interview operation was rejected by validation."""
