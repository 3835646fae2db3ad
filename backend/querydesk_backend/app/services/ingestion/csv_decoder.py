"""CSV decoding for uploads."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import List

from querydesk_backend.app.services.errors import UploadValidationError


@dataclass
class DecodedCsv:
    header: List[str]
    rows: List[List[str]]


def decode_csv(content: bytes) -> DecodedCsv:
    """Split raw CSV bytes into a header row and data rows.

    Rows keep their own field counts; filtering rows that do not match the
    header is left to the table lifecycle. Blank lines are dropped.

    Raises:
        UploadValidationError: If the file is not UTF-8 CSV or has no rows
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise UploadValidationError(f"Failed to read CSV file: {e}") from e

    try:
        records = [row for row in csv.reader(io.StringIO(text)) if row]
    except csv.Error as e:
        raise UploadValidationError(f"Failed to read CSV file: {e}") from e

    if not records:
        raise UploadValidationError("CSV file is empty")

    return DecodedCsv(header=records[0], rows=records[1:])
