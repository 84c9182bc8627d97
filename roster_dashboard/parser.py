"""Delimiter-aware parser for roster text files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd

from .app_logging import get_logger
from .config import DELIMITER, QUOTE

logger = get_logger()

Row = Dict[str, str]


@dataclass
class Dataset:
    """Container for parsed headers and header-keyed row records."""

    headers: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        """Return the rows as a string-typed DataFrame in canonical order."""

        columns = list(dict.fromkeys(self.headers))
        return pd.DataFrame(self.rows, columns=columns, dtype=str).fillna("")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_records(text: str, delimiter: str = DELIMITER) -> List[List[str]]:
    """Split ``text`` into raw field lists.

    A field may be wrapped in double quotes; a doubled quote inside a quoted
    section is a literal quote, and the delimiter and newline lose their
    meaning there. A trailing line without a newline is still returned.
    """

    records: List[List[str]] = []
    record: List[str] = []
    buffer: List[str] = []
    in_quote = False
    pending = False

    chars = normalize_newlines(text)
    index = 0
    length = len(chars)
    while index < length:
        char = chars[index]
        if char == QUOTE:
            if in_quote and index + 1 < length and chars[index + 1] == QUOTE:
                buffer.append(QUOTE)
                index += 1
            else:
                in_quote = not in_quote
            pending = True
        elif char == delimiter and not in_quote:
            record.append("".join(buffer))
            buffer = []
            pending = True
        elif char == "\n" and not in_quote:
            record.append("".join(buffer))
            records.append(record)
            record = []
            buffer = []
            pending = False
        else:
            buffer.append(char)
            pending = True
        index += 1

    if pending:
        record.append("".join(buffer))
        records.append(record)

    return records


def parse(text: str) -> Dataset:
    """Parse roster ``text`` into a :class:`Dataset`.

    The first record supplies the headers. Short rows are padded with empty
    strings and excess fields are ignored. With duplicate header names the
    later column wins in the row record.
    """

    records = split_records(text)
    if not records:
        return Dataset()

    headers = [value.strip() for value in records[0]]
    rows: List[Row] = []
    for record in records[1:]:
        row: Row = {}
        for index, header in enumerate(headers):
            row[header] = record[index].strip() if index < len(record) else ""
        rows.append(row)

    logger.debug("Parsed %d rows across %d columns", len(rows), len(headers))
    return Dataset(headers=headers, rows=rows)
