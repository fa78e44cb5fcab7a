from __future__ import annotations


class MenuImportError(Exception):
    """Base class for failures surfaced to callers of the import core."""

    status_code = 500
    public_message = "Interner Fehler."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ConfigurationError(MenuImportError):
    """A required setting (e.g. the extraction service credential) is missing."""

    status_code = 500


class ValidationError(MenuImportError):
    """Client input is malformed: empty input, unsupported or oversized upload."""

    status_code = 400
    public_message = "Ungültige Eingabe."


class RateLimitExceeded(MenuImportError):
    status_code = 429
    public_message = "Zu viele Anfragen. Bitte versuchen Sie es gleich erneut."

    def __init__(self, retry_after_ms: int, message: str = "") -> None:
        super().__init__(message)
        self.retry_after_ms = max(0, int(retry_after_ms))


class ExtractionFailure(MenuImportError):
    """The external extraction dependency failed or broke its output contract.

    ``message`` carries the detail for logs; ``public_message`` is what the
    HTTP layer shows to clients.
    """

    status_code = 500
    public_message = "Die Speisekarte konnte nicht analysiert werden."


class SuggestionFailure(ExtractionFailure):
    public_message = "Die KI-Vorschläge konnten nicht erzeugt werden."
