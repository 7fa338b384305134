"""Quote-aware record tokenizer for loosely structured CSV exports.

Bank exports in the wild wrap descriptions across physical lines, wrap
whole rows in quotes and append free-text trailers. The tokenizer joins
physical lines into logical records by tracking quote parity instead of
relying on the csv module, which rejects most of these files outright.
"""

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

# Trailer lines that end the transaction table
DEFAULT_SENTINELS = (
    r"^\*",
    r"^end of statement",
    r"^statement summary",
    r"^closing balance",
    r"^opening balance",
)


@dataclass
class TokenizedRecord:
    """One logical record assembled from one or more physical lines.

    Attributes:
        fields: Field values with surrounding whitespace and quotes removed.
        line_number: 1-based physical line the record started on.
        next_index: Index of the first physical line after this record.
        unterminated: True if the input ended inside a quoted field.
    """

    fields: list[str]
    line_number: int
    next_index: int
    unterminated: bool = False

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, index: Optional[int], default: str = "") -> str:
        """Return the field at index, or default when absent."""
        if index is None or index >= len(self.fields):
            return default
        return self.fields[index]


class Tokenizer:
    """Split physical lines into logical records.

    A record is complete once its quote count is even and it contains the
    delimiter. While a quote is open, following lines are joined with a
    single space. Outside a quote, a blank line or a sentinel trailer line
    ends the table.
    """

    def __init__(
        self,
        delimiter: str = ",",
        sentinel_patterns: Sequence[str] = DEFAULT_SENTINELS,
    ):
        """Initialize the tokenizer.

        Args:
            delimiter: Field delimiter.
            sentinel_patterns: Regexes (matched case-insensitively against the
                stripped line) marking the end of the transaction table.
        """
        if len(delimiter) != 1 or delimiter == '"':
            raise ValueError(f"Invalid delimiter: {delimiter!r}")
        self.delimiter = delimiter
        self._sentinels = [re.compile(p, re.IGNORECASE) for p in sentinel_patterns]

    def is_sentinel(self, line: str) -> bool:
        stripped = line.strip()
        return any(p.search(stripped) for p in self._sentinels)

    def is_terminator(self, line: str) -> bool:
        """Check whether a line outside a quoted field ends tokenization."""
        return not line.strip() or self.is_sentinel(line)

    def next_record(self, lines: Sequence[str], start_index: int) -> Optional[TokenizedRecord]:
        """Assemble the next logical record.

        Args:
            lines: All physical lines of the input.
            start_index: Index of the line to start from.

        Returns:
            The record, or None when the table has ended (end of input,
            blank line or sentinel trailer).
        """
        if start_index >= len(lines) or self.is_terminator(lines[start_index]):
            return None

        buffer = lines[start_index].strip()
        i = start_index + 1

        while not self._is_complete(buffer):
            in_quote = buffer.count('"') % 2 == 1
            if i >= len(lines):
                if in_quote:
                    logger.debug(f"Unterminated quoted field starting at line {start_index + 1}")
                    return TokenizedRecord(
                        fields=self.parse_fields(buffer),
                        line_number=start_index + 1,
                        next_index=i,
                        unterminated=True,
                    )
                break

            line = lines[i]
            if in_quote:
                i += 1
                if line.strip():
                    buffer = f"{buffer} {line.strip()}"
                continue

            # Quotes are balanced but no delimiter yet
            if self.is_terminator(line):
                break
            buffer = f"{buffer} {line.strip()}"
            i += 1

        return TokenizedRecord(
            fields=self.parse_fields(buffer),
            line_number=start_index + 1,
            next_index=i,
        )

    def iter_records(self, lines: Sequence[str], start_index: int = 0) -> Iterator[TokenizedRecord]:
        """Yield records until tokenization ends.

        Args:
            lines: All physical lines of the input.
            start_index: Index of the first data line.

        Yields:
            TokenizedRecord for each logical record.
        """
        index = start_index
        while True:
            record = self.next_record(lines, index)
            if record is None:
                return
            yield record
            index = record.next_index

    def parse_fields(self, record: str) -> list[str]:
        """Split one logical record into fields.

        A doubled quote inside a quoted field is a literal quote. A record
        that parses to a single field containing the delimiter was wrapped
        whole in quotes and is split again.

        Args:
            record: Logical record text.

        Returns:
            List of stripped field values.
        """
        fields = self._split(record)
        if len(fields) == 1 and self.delimiter in fields[0]:
            fields = self._split(fields[0])
        return fields

    def _is_complete(self, buffer: str) -> bool:
        return buffer.count('"') % 2 == 0 and self.delimiter in buffer

    def _split(self, record: str) -> list[str]:
        fields: list[str] = []
        current: list[str] = []
        in_quotes = False
        i = 0
        length = len(record)

        while i < length:
            char = record[i]
            if char == '"':
                if in_quotes and i + 1 < length and record[i + 1] == '"':
                    current.append('"')
                    i += 1
                else:
                    in_quotes = not in_quotes
            elif char == self.delimiter and not in_quotes:
                fields.append("".join(current).strip())
                current = []
            else:
                current.append(char)
            i += 1

        fields.append("".join(current).strip())
        return fields
