"""CSV row source: header row plus the remaining rows as positional cells."""

from __future__ import annotations

import codecs
import csv
import io
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from rowloader.domain.errors import ConfigurationError

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)

_BOM = "\ufeff"


@dataclass(frozen=True, slots=True)
class ParsedFile:
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]


class CsvSource:
    """Parse CSV text into a :class:`ParsedFile`.

    A UTF-8 byte-order mark is dropped and header cells are stripped. Fully empty
    lines are skipped; cells are otherwise returned as read. Bytes that do not
    decode with ``encoding`` raise ``ConfigurationError``.
    """

    def __init__(self, *, delimiter: str = ",", encoding: str = "utf-8") -> None:
        try:
            codecs.lookup(encoding)
        except LookupError as exc:
            raise ConfigurationError(f"Unknown encoding {encoding!r}") from exc
        self.delimiter = delimiter
        self.encoding = encoding

    def read(self, path: Path) -> ParsedFile:
        raw = path.read_bytes()
        parsed = self.parse(raw)
        log.debug("Read %d row(s) from %s", len(parsed.rows), path)
        return parsed

    def parse(self, raw: str | bytes) -> ParsedFile:
        text = self._decode(raw)
        if not text.strip():
            return ParsedFile(headers=(), rows=())

        reader = csv.reader(io.StringIO(text, newline=""), delimiter=self.delimiter)
        headers: tuple[str, ...] = ()
        rows: list[tuple[str, ...]] = []
        for record in reader:
            if not any(cell.strip() for cell in record):
                continue
            if not headers:
                headers = tuple(cell.strip() for cell in record)
                continue
            rows.append(tuple(record))
        return ParsedFile(headers=headers, rows=tuple(rows))

    def _decode(self, raw: str | bytes) -> str:
        if isinstance(raw, str):
            return raw.removeprefix(_BOM)
        try:
            text = raw.decode(self.encoding)
        except UnicodeDecodeError as exc:
            raise ConfigurationError(
                f"Input is not valid {self.encoding} (byte {exc.start}: {exc.reason}); "
                "pass the file's encoding explicitly"
            ) from exc
        return text.removeprefix(_BOM)
