"""CSV parsing for bulk candidate uploads.

Headers are trimmed and lower-cased before the required-column check, so
``First Name`` style variants are not accepted but ``FirstName `` is.  Row
numbers are physical line numbers, the first data row being 2.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field

from app.core.constants import (
    CSV_ERROR_DUPLICATE_IN_FILE,
    CSV_ERROR_INVALID_EMAIL,
    CSV_ERROR_MISSING_FIELDS,
    CSV_REQUIRED_COLUMNS,
    EMAIL_PATTERN,
)
from app.core.errors import ValidationError
from app.models.candidate import CsvRowError, normalize_email


@dataclass
class CsvCandidateRow:
    row: int
    firstname: str
    lastname: str
    email: str


@dataclass
class ParsedCsv:
    rows: list[CsvCandidateRow] = field(default_factory=list)
    errors: list[CsvRowError] = field(default_factory=list)
    total_rows: int = 0


def is_csv_upload(filename: str | None, content_type: str | None) -> bool:
    if content_type and "csv" in content_type.lower():
        return True
    return bool(filename) and filename.lower().endswith(".csv")  # type: ignore[union-attr]


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError({"file": ["CSV file must be UTF-8 encoded"]}) from exc


def parse_candidates_csv(content: bytes) -> ParsedCsv:
    """Validate the header, then every row in file order.

    Raises ``ValidationError`` naming the missing columns before any row
    is read.  Row-level problems are collected in ``ParsedCsv.errors``.
    """
    reader = csv.DictReader(io.StringIO(_decode(content)))
    headers = [name.strip().lower() for name in (reader.fieldnames or [])]

    missing = [column for column in CSV_REQUIRED_COLUMNS if column not in headers]
    if missing:
        raise ValidationError(
            {"headers": [f"Missing required column: {column}" for column in missing]},
            message=f"CSV is missing required columns: {', '.join(missing)}",
        )
    reader.fieldnames = headers

    parsed = ParsedCsv()
    seen: set[str] = set()

    for record in reader:
        parsed.total_rows += 1
        row_number = reader.line_num

        firstname = (record.get("firstname") or "").strip()
        lastname = (record.get("lastname") or "").strip()
        raw_email = (record.get("email") or "").strip()

        if not firstname or not lastname or not raw_email:
            parsed.errors.append(
                CsvRowError(row=row_number, email=raw_email or None, error=CSV_ERROR_MISSING_FIELDS)
            )
            continue

        email = normalize_email(raw_email)
        if not EMAIL_PATTERN.match(email):
            parsed.errors.append(
                CsvRowError(row=row_number, email=raw_email, error=CSV_ERROR_INVALID_EMAIL)
            )
            continue

        if email in seen:
            parsed.errors.append(
                CsvRowError(row=row_number, email=raw_email, error=CSV_ERROR_DUPLICATE_IN_FILE)
            )
            continue
        seen.add(email)

        parsed.rows.append(
            CsvCandidateRow(row=row_number, firstname=firstname, lastname=lastname, email=email)
        )

    return parsed
