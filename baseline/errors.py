"""
User-facing error messages and exception types.
"""
import re
from typing import Optional

from flask import jsonify


DATABASE_ERRORS = {
    "SITE_STATE_FETCH": "We couldn't load the latest investor briefing. Refresh and try again.",
    "PITCH_DECK_FETCH": "We couldn't load the pitch deck content. Refresh and try again.",
    "ADMIN_PUBLISH_FAILED": "We couldn't publish your updates right now. Review the fields and try again.",
    "PITCH_DECK_SAVE_FAILED": "We couldn't save the pitch deck changes right now. Try again shortly.",
    "QUESTIONNAIRE_UPDATE_FAILED": "We couldn't update the questionnaire data just now. Try again shortly.",
    "SLIDES_FETCH_FAILED": "Failed to fetch slides",
    "SLIDES_UPDATE_FAILED": "Failed to update slides",
    "PARTNERSHIPS_FETCH_FAILED": "We couldn't load the partner network. Refresh and try again.",
    "PARTNERSHIPS_SAVE_FAILED": "We couldn't save the partner changes. Try again shortly.",
    "HISTORY_FETCH_FAILED": "We couldn't load the publish history. Refresh and try again.",
    "AGREEMENT_SAVE_FAILED": "Failed to record agreement",
    "AGREEMENT_FETCH_FAILED": "Failed to check agreement",
    "SESSION_STATS_FAILED": "Failed to fetch session stats",
    "RESET_VISITS_FAILED": "Failed to reset visit count",
    "GENERIC": "We ran into a database issue. Try again shortly.",
}

AUTH_ERRORS = {
    "ADMIN_PIN_INVALID": "We couldn't verify that admin PIN. Double-check the secure code.",
    "DECK_PIN_INVALID": "We couldn't verify that pitch deck PIN. Double-check the code.",
    "SESSION_INVALID": "Your session expired or is invalid. Log in again.",
    "NOT_AUTHENTICATED": "You need to sign in before continuing.",
    "INVESTOR_CREDENTIALS_INVALID": "Those investor credentials don't match. Check the PIN and try again.",
    "ADMIN_ACCESS_REQUIRED": "Log in as Chase or Sheldon to publish updates.",
    "ROLE_NOT_PERMITTED": "Your session doesn't have access to this resource.",
    "INVESTOR_ONLY": "Only investors can self-report",
}

VALIDATION_ERRORS = {
    "ROLE_AND_PIN_REQUIRED": "Provide both a role and PIN before continuing.",
    "UNSUPPORTED_ROLE": "That access role isn't supported.",
    "INVESTOR_SLUG_REQUIRED": "Choose an investor profile before continuing.",
    "PAYLOAD_REQUIRED": "Include the payload before continuing.",
    "INVALID_ACTION": "Invalid action",
    "SLIDE_ID_REQUIRED": "Slide ID is required",
    "IS_ACTIVE_REQUIRED": "is_active must be true or false",
    "SLIDE_NUMBER_REQUIRED": "Slide number required",
    "SLIDE_SIZE_INVALID": "Slide size must be small, medium, large, wide, or full.",
    "REORDER_INVALID": "Reorder requires the full list of existing slide IDs.",
    "SESSION_SECRET_MISSING": "SESSION_SECRET isn't set. Define it to handle sessions securely.",
    "VALIDATION_FAILED": "Validation failed",
    "DOCUMENT_KIND_INVALID": "History is available for site, pitch_deck or bos.",
    "SELF_REPORT_FORBIDDEN": "Cannot report for another investor",
    "INVESTOR_SLUG_MISSING": "Investor slug is required",
}

NETWORK_ERRORS = {
    "GENERIC": "We ran into a network issue. Check your connection and try again.",
    "SESSION_REQUEST_FAILED": "We couldn't start a secure session. Try again.",
    "SESSION_VERIFICATION_FAILED": "We couldn't verify your access token. Check your connection and try again.",
}

FILE_UPLOAD_ERRORS = {
    "FIELD_MISSING": "Select a file to upload before continuing.",
    "EMPTY_FILE": "The selected file is empty. Choose a different file.",
    "TOO_LARGE": "That file exceeds the 50MB limit.",
    "SLIDE_TOO_LARGE": "That slide image exceeds the 10MB limit.",
    "TYPE_UNSUPPORTED": "Unsupported file type. Upload a PDF or one of the supported video formats.",
    "SLIDE_NOT_IMAGE": "Slide uploads must be PNG images.",
    "PDF_UNREADABLE": "We couldn't read that PDF. Export it again and retry.",
    "NO_SLIDES_EXTRACTED": "None of the PDF pages could be converted into slides.",
    "DECK_CLEAR_FAILED": "We couldn't clear the previous deck, so the new upload was not started.",
    "UPLOAD_FAILED": "We couldn't upload the file. Try again.",
    "INTERNAL_ERROR": "We couldn't finish the upload because of a server issue. Try again.",
}

GENERAL_ERRORS = {
    "UNKNOWN": "Something went wrong. Try again in a moment.",
}

_TECHNICAL_ERROR_MATCHERS = [
    (re.compile(r"network|fetch|timeout", re.IGNORECASE), NETWORK_ERRORS["GENERIC"]),
    (re.compile(r"auth|token|session", re.IGNORECASE), NETWORK_ERRORS["SESSION_VERIFICATION_FAILED"]),
    (re.compile(r"upload|storage|bucket", re.IGNORECASE), FILE_UPLOAD_ERRORS["UPLOAD_FAILED"]),
    (re.compile(r"database|relation|table|row|constraint", re.IGNORECASE), DATABASE_ERRORS["GENERIC"]),
]


class StorageError(Exception):
    """Object storage call failed."""


class PdfRenderError(Exception):
    """The uploaded document could not be opened as a PDF."""


class SlideExtractionError(Exception):
    """No page of the uploaded PDF made it into the deck."""


class SlideNotFoundError(Exception):
    """A slide id did not match any stored slide."""


class SessionConfigError(RuntimeError):
    """Session signing is not configured."""


def friendly_error(error: Optional[BaseException], fallback: str = GENERAL_ERRORS["UNKNOWN"]) -> str:
    """Map a technical exception onto a message safe to show to the admin."""
    message = str(error or "").strip()
    if not message:
        return fallback
    for pattern, friendly in _TECHNICAL_ERROR_MATCHERS:
        if pattern.search(message):
            return friendly
    return fallback


def json_error(message: str, status: int = 400, **extra):
    """JSON error body with the given status, as returned by every API route."""
    body = {"ok": False, "error": message}
    body.update(extra)
    return jsonify(body), status
