"""Identifier Source - reads asset identifiers from a text file."""

from typing import Iterable, List

from shared.errors import IdentifierSourceError
from shared.logger import StructuredLogger

DEFAULT_IDENTIFIER_FILE = "FileNamesToDelete.txt"
COMMENT_PREFIX = "#"


def clean_identifiers(lines: Iterable[str]) -> List[str]:
    """Trim lines, drop blanks and comments, dedupe keeping first occurrence."""
    seen = set()
    identifiers = []
    for line in lines:
        value = line.strip()
        if not value or value.startswith(COMMENT_PREFIX):
            continue
        if value in seen:
            continue
        seen.add(value)
        identifiers.append(value)
    return identifiers


def read_identifiers(path: str = DEFAULT_IDENTIFIER_FILE) -> List[str]:
    """Read identifiers from a UTF-8 file, one per line."""
    try:
        with open(path, encoding="utf-8") as handle:
            identifiers = clean_identifiers(handle)
    except (OSError, UnicodeDecodeError) as e:
        raise IdentifierSourceError(f"Unable to read file {path}: {str(e)}") from e

    StructuredLogger.info("Identifiers loaded", path=path, count=len(identifiers))
    return identifiers
