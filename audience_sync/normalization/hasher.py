"""Identity normalization and hashing for custom-audience uploads.

Each field is canonicalized with the rule the platform expects and then
SHA-256 hashed to lowercase hex. Empty values stay empty and are never
hashed, so a blank column is sent as an empty string rather than the
digest of "".
"""

import hashlib
import re
from collections.abc import Iterable

from audience_sync.normalization.models import CustomerRecord, NormalizedRow

_NON_DIGIT_RE = re.compile(r"\D")
_NON_ALPHA_RE = re.compile(r"[^a-z]")
_VALID_GENDERS = frozenset({"m", "f"})


def sha256_hex(value: str | None) -> str:
    if not value:
        return ""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def normalize_phone(value: str | None) -> str:
    return _NON_DIGIT_RE.sub("", value or "")


def normalize_name(value: str | None) -> str:
    return _NON_ALPHA_RE.sub("", (value or "").lower())


def normalize_location(value: str | None) -> str:
    """City and state: lowercase letters only."""
    return _NON_ALPHA_RE.sub("", (value or "").lower())


def normalize_zip(value: str | None) -> str:
    return (value or "").lower().replace(" ", "")


def normalize_country(value: str | None) -> str:
    # Expected to already be an ISO 3166 alpha-2 code.
    return (value or "").lower()


def normalize_birth_year(value: str | None) -> str:
    return value or ""


def normalize_gender(value: str | None) -> str:
    lowered = (value or "").lower()
    return lowered if lowered in _VALID_GENDERS else ""


def hash_record(record: CustomerRecord) -> NormalizedRow:
    """Normalize and hash a record into the order of AUDIENCE_SCHEMA."""
    row = (
        sha256_hex(normalize_email(record.email1)),
        sha256_hex(normalize_email(record.email2)),
        sha256_hex(normalize_email(record.email3)),
        sha256_hex(normalize_phone(record.phone1)),
        sha256_hex(normalize_phone(record.phone2)),
        sha256_hex(normalize_phone(record.phone3)),
        sha256_hex(normalize_name(record.fn)),
        sha256_hex(normalize_name(record.ln)),
        sha256_hex(normalize_zip(record.zip)),
        sha256_hex(normalize_location(record.ct)),
        sha256_hex(normalize_location(record.st)),
        sha256_hex(normalize_country(record.country)),
        sha256_hex(normalize_birth_year(record.doby)),
        sha256_hex(normalize_gender(record.gen)),
    )
    return row


def hash_records(records: Iterable[CustomerRecord]) -> list[NormalizedRow]:
    return [hash_record(record) for record in records]
