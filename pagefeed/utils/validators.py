"""
Input validation utilities.

Identity components are checked here before anything touches the store, so a
rejected request never leaves a partial write behind.
"""

from __future__ import annotations

from urllib.parse import urlparse

# Separator used by the SQLite backend to join key components
KEY_SEPARATOR = "\x1f"
MAX_IDENTITY_LENGTH = 1024


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


def validate_identity_component(field_name: str, value: str | None) -> str:
    """
    Validate one part of a record identity (tenant, project, or page name).

    Args:
        field_name: Name used in the error message
        value: Candidate value

    Returns:
        The value unchanged

    Raises:
        ValidationError: If the value is empty, too long, or contains the key separator
    """
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field_name} is required")

    if len(value) > MAX_IDENTITY_LENGTH:
        raise ValidationError(f"{field_name} exceeds maximum length of {MAX_IDENTITY_LENGTH}")

    if KEY_SEPARATOR in value:
        raise ValidationError(f"{field_name} contains a reserved control character")

    return value


def validate_page_identity(tenant_id: str, project_name: str, page_name: str) -> None:
    """Validate the (tenant, project, page) identity triple."""
    validate_identity_component("tenant_id", tenant_id)
    validate_identity_component("project_name", project_name)
    validate_identity_component("page_name", page_name)


def extract_project_name(page_url: str) -> str:
    """
    Return the project name (first path segment) of a Cosense page URL.

    Example:
        https://scrapbox.io/test-project/TestPage -> "test-project"

    Raises:
        ValidationError: If the URL has no scheme/host or no first path segment
    """
    parsed = urlparse(page_url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Invalid page URL: {page_url!r}")

    segments = parsed.path.split("/")
    project = segments[1] if len(segments) > 1 else ""
    if not project:
        raise ValidationError(f"Page URL has no project segment: {page_url!r}")

    return project
