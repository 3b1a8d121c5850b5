"""Input validation and sanitization utilities.

Everything a user types passes through here before it is interpolated into
a Drive or Gmail query, a URL or a file name. The sanitizers are pure: they
never raise, and invalid input degrades to a safe default (empty string,
None or an INVALID result) so the caller decides how to report it.
"""

from __future__ import annotations

import logging
import math
import re
from urllib.parse import quote, urlsplit

from drive_gmail_manager.schemas.results import EmailValidationResult, LengthCheck
from drive_gmail_manager.utils.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_EMAIL_LENGTH = 254
MAX_QUERY_LENGTH = 1000
MAX_FILENAME_LENGTH = 255
MAX_LABEL_LENGTH = 255
DEFAULT_FILENAME = "download"

# Regex patterns
EMAIL_PATTERN = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)
OPAQUE_ID_PATTERN = re.compile(r"[A-Za-z0-9]+")
RESOURCE_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,256}")
GMAIL_TOKEN_PATTERN = re.compile(r'(?:[^\s"]+|"[^"]*")+')
GMAIL_PLAIN_TERM_PATTERN = re.compile(r"[a-zA-Z0-9@._-]+")
FILENAME_FORBIDDEN_PATTERN = re.compile(r'[/\\<>:"|?*\x00-\x1f\x7f]')
LEADING_INT_PATTERN = re.compile(r"\s*([+-]?\d+)")

# Well-formed addresses whose domain is almost certainly a typo
DOMAIN_TYPOS: dict[str, str] = {
    "gmail.con": "gmail.com",
    "gmial.com": "gmail.com",
    "gmai.com": "gmail.com",
    "yahooo.com": "yahoo.com",
    "yaho.com": "yahoo.com",
    "hotmial.com": "hotmail.com",
}

TRUSTED_GOOGLE_HOSTS = (
    "drive.google.com",
    "docs.google.com",
    "sheets.google.com",
    "slides.google.com",
    "mail.google.com",
    "calendar.google.com",
    "meet.google.com",
    "accounts.google.com",
    "www.googleapis.com",
    "googleapis.com",
)

# Stripped from Drive query text even though Drive is not a SQL engine
DRIVE_DANGEROUS_PATTERNS = [
    re.compile(r"--"),
    re.compile(r"/\*"),
    re.compile(r"\*/"),
    re.compile(r";\s*drop", re.IGNORECASE),
    re.compile(r";\s*delete", re.IGNORECASE),
]

GMAIL_BOOLEAN_KEYWORDS = {"and", "or", "not", "-"}

GMAIL_VALID_OPERATORS = (
    "from:",
    "to:",
    "cc:",
    "bcc:",
    "subject:",
    "label:",
    "has:",
    "is:",
    "in:",
    "before:",
    "after:",
    "older:",
    "newer:",
    "older_than:",
    "newer_than:",
    "deliveredto:",
    "category:",
    "size:",
    "larger:",
    "smaller:",
    "filename:",
    "list:",
    "rfc822msgid:",
)

DRIVE_SECTION_FILTERS: dict[str, list[str]] = {
    "all": ["trashed = false"],
    "starred": ["starred = true", "trashed = false"],
    "trash": ["trashed = true"],
}

GMAIL_SECTION_FILTERS: dict[str, str] = {
    "inbox": "in:inbox",
    "sent": "in:sent",
    "starred": "is:starred",
    "archive": "-in:inbox -in:trash",
    "trash": "in:trash",
}


# =============================================================================
# Email addresses
# =============================================================================


def validate_email_address(candidate: object) -> EmailValidationResult:
    """Validate an email address and detect common domain typos.

    Args:
        candidate: Address to validate; anything but a string is INVALID.

    Returns:
        VALID, INVALID, or INVALID_WITH_SUGGESTION carrying the corrected
        domain (e.g. ``user@gmail.con`` suggests ``gmail.com``).
    """
    if not isinstance(candidate, str):
        return EmailValidationResult.invalid()

    email = candidate.strip()
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return EmailValidationResult.invalid()

    if not EMAIL_PATTERN.fullmatch(email):
        return EmailValidationResult.invalid()

    domain = email.rsplit("@", 1)[1].lower()
    suggestion = DOMAIN_TYPOS.get(domain)
    if suggestion:
        logger.debug("Email domain %s looks like a typo of %s", domain, suggestion)
        return EmailValidationResult.with_suggestion(suggestion)

    return EmailValidationResult.valid()


def sanitize_email_address(candidate: object) -> str:
    """Trim and lowercase an email address (no re-validation)."""
    if not isinstance(candidate, str):
        return ""
    return candidate.strip().lower()


# =============================================================================
# URLs and identifiers
# =============================================================================


def is_trusted_google_url(url: object) -> bool:
    """Check that a URL is HTTPS and points at a known Google host.

    Args:
        url: URL to check.

    Returns:
        True if the scheme is https and the hostname equals, or is a
        subdomain of, one of ``TRUSTED_GOOGLE_HOSTS``.
    """
    if not isinstance(url, str) or not url:
        return False

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return False

    if parts.scheme != "https" or not hostname:
        return False

    return any(
        hostname == domain or hostname.endswith("." + domain)
        for domain in TRUSTED_GOOGLE_HOSTS
    )


def sanitize_opaque_id(value: object) -> str | None:
    """Validate a Drive/Gmail identifier before it is embedded in a URL.

    Returns:
        The percent-encoded identifier, or None if it is not purely
        alphanumeric.
    """
    if not isinstance(value, str) or not OPAQUE_ID_PATTERN.fullmatch(value):
        return None
    return quote(value, safe="")


# =============================================================================
# Query text
# =============================================================================


def _strip_repeatedly(text: str, patterns: list[re.Pattern[str]]) -> str:
    """Remove patterns until none remain (removal can create new matches)."""
    previous = None
    while previous != text:
        previous = text
        for pattern in patterns:
            text = pattern.sub("", text)
    return text


def sanitize_drive_query_text(raw: object) -> str:
    """Make free text safe to place inside a Drive single-quoted literal.

    Trims, truncates to 1000 characters, strips SQL-style comment and
    ``; drop`` / ``; delete`` sequences, and backslash-escapes quotes and
    backslashes. The escaped result never exceeds 1000 characters and
    never ends in a dangling escape.

    Args:
        raw: User-supplied search text.

    Returns:
        Sanitized text, or an empty string for non-string input.
    """
    if not isinstance(raw, str):
        return ""

    text = raw.strip()[:MAX_QUERY_LENGTH]
    text = _strip_repeatedly(text, DRIVE_DANGEROUS_PATTERNS)

    escaped: list[str] = []
    length = 0
    for char in text:
        piece = "\\" + char if char in ("'", "\\") else char
        if length + len(piece) > MAX_QUERY_LENGTH:
            break
        escaped.append(piece)
        length += len(piece)

    return "".join(escaped)


def sanitize_gmail_query_text(raw: object) -> str:
    """Reduce free text to tokens Gmail search is known to accept.

    Keeps boolean keywords, quoted phrases, whitelisted ``operator:value``
    terms and plain terms made of letters, digits, ``@``, ``.``, ``_`` and
    ``-``. Everything else is dropped.

    Args:
        raw: User-supplied search text.

    Returns:
        Surviving tokens joined with single spaces.
    """
    if not isinstance(raw, str):
        return ""

    text = raw.strip()[:MAX_QUERY_LENGTH]
    text = re.sub(r"[<>{}\\]", "", text)

    kept: list[str] = []
    for token in GMAIL_TOKEN_PATTERN.findall(text):
        lowered = token.lower()
        if (
            lowered in GMAIL_BOOLEAN_KEYWORDS
            or (len(token) >= 2 and token.startswith('"') and token.endswith('"'))
            or lowered.startswith(GMAIL_VALID_OPERATORS)
            or GMAIL_PLAIN_TERM_PATTERN.fullmatch(token)
        ):
            kept.append(token)
        else:
            logger.debug("Dropped unsupported Gmail query token")

    return " ".join(kept)


def build_drive_search_query(
    text: str = "",
    section: str | None = None,
    mime_type: str | None = None,
) -> str:
    """Build a Drive ``q`` expression from free text and UI filters.

    Args:
        text: Free text matched against file names.
        section: "all" (default), "starred" or "trash".
        mime_type: Optional MIME type fragment (e.g. "image/").

    Returns:
        Drive query string.
    """
    clauses: list[str] = []

    name_text = sanitize_drive_query_text(text)
    if name_text:
        clauses.append(f"name contains '{name_text}'")

    section_key = section or "all"
    if section_key not in DRIVE_SECTION_FILTERS:
        logger.warning("Unknown Drive section %r, searching all files", section)
        section_key = "all"
    clauses.extend(DRIVE_SECTION_FILTERS[section_key])

    type_text = sanitize_drive_query_text(mime_type)
    if type_text:
        clauses.append(f"mimeType contains '{type_text}'")

    return " and ".join(clauses)


def build_gmail_search_query(text: str = "", section: str | None = None) -> str:
    """Build a Gmail ``q`` expression from free text and a mailbox section.

    Section operators are appended after the user text is sanitized so that
    trusted filters such as ``-in:inbox`` survive.

    Args:
        text: Free text in Gmail search syntax.
        section: "inbox", "sent", "starred", "archive", "trash" or None.

    Returns:
        Gmail query string, "in:inbox" when nothing else remains.
    """
    parts: list[str] = []

    sanitized = sanitize_gmail_query_text(text)
    if sanitized:
        parts.append(sanitized)

    if section:
        section_filter = GMAIL_SECTION_FILTERS.get(section)
        if section_filter:
            parts.append(section_filter)
        else:
            logger.warning("Unknown Gmail section %r ignored", section)

    return " ".join(parts) or "in:inbox"


# =============================================================================
# File names and numbers
# =============================================================================


def sanitize_file_name(raw: object) -> str:
    """Make a name safe to use as a local file name.

    Strips path separators, ``<>:"|?*`` and control characters, and keeps
    the result within 255 characters while preserving the extension.

    Returns:
        Sanitized name, or "download" if nothing is left.
    """
    if not isinstance(raw, str):
        return DEFAULT_FILENAME

    name = FILENAME_FORBIDDEN_PATTERN.sub("", raw)

    if len(name) > MAX_FILENAME_LENGTH:
        base, dot, extension = name.rpartition(".")
        if dot and base and len(extension) < MAX_FILENAME_LENGTH - 1:
            name = base[: MAX_FILENAME_LENGTH - len(extension) - 1] + "." + extension
        else:
            name = name[:MAX_FILENAME_LENGTH]

    return name or DEFAULT_FILENAME


def clamp_numeric_input(
    value: object,
    minimum: int = 0,
    maximum: int = 9999,
    fallback: int = 365,
) -> int:
    """Parse an integer and clamp it to ``[minimum, maximum]``.

    Strings are parsed by their leading integer ("12 days" is 12). Values
    that carry no integer at all yield ``fallback``.

    Examples:
        >>> clamp_numeric_input("abc", 1, 3650, 365)
        365
        >>> clamp_numeric_input("0", 1, 3650, 365)
        1
        >>> clamp_numeric_input("99999", 1, 3650, 365)
        3650
    """
    number: int | None = None

    if isinstance(value, bool):
        number = None
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        match = LEADING_INT_PATTERN.match(value)
        number = int(match.group(1)) if match else None

    if number is None:
        return fallback
    if number < minimum:
        return minimum
    if number > maximum:
        return maximum
    return number


# =============================================================================
# Length checks
# =============================================================================


def validate_length(
    value: object, max_length: int, field_name: str = "Input"
) -> LengthCheck:
    """Check that free text is present and not longer than ``max_length``."""
    if not isinstance(value, str) or not value:
        return LengthCheck(valid=False, message=f"{field_name} is required.")

    trimmed = value.strip()
    if not trimmed:
        return LengthCheck(valid=False, message=f"{field_name} cannot be empty.")

    if len(trimmed) > max_length:
        return LengthCheck(
            valid=False,
            message=f"{field_name} is too long. "
            f"Maximum {max_length} characters allowed.",
        )

    return LengthCheck(valid=True)


def validate_label_name(name: object) -> str:
    """Validate a Gmail label name.

    Args:
        name: Label name to validate.

    Returns:
        Validated label name (stripped).

    Raises:
        ValidationError: If the name is missing or too long.
    """
    check = validate_length(name, MAX_LABEL_LENGTH, "Label name")
    if not check.valid:
        raise ValidationError(check.message or "Invalid label name", field="name")
    assert isinstance(name, str)
    return name.strip()


def validate_resource_id(value: object, field: str = "id") -> str:
    """Validate a Drive file ID or Gmail label ID.

    Raises:
        ValidationError: If the value is not a plausible Google resource ID.
    """
    if not isinstance(value, str) or not RESOURCE_ID_PATTERN.fullmatch(value):
        raise ValidationError(f"Invalid {field}.", field=field)
    return value


__all__ = [
    "DOMAIN_TYPOS",
    "TRUSTED_GOOGLE_HOSTS",
    "GMAIL_VALID_OPERATORS",
    "validate_email_address",
    "sanitize_email_address",
    "is_trusted_google_url",
    "sanitize_opaque_id",
    "sanitize_drive_query_text",
    "sanitize_gmail_query_text",
    "build_drive_search_query",
    "build_gmail_search_query",
    "sanitize_file_name",
    "clamp_numeric_input",
    "validate_length",
    "validate_label_name",
    "validate_resource_id",
]
