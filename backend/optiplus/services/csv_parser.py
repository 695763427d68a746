from __future__ import annotations

import csv
import math
import re
from dataclasses import dataclass, field
from io import StringIO
from typing import Any, Iterable, Sequence

import pandas as pd

from optiplus.services.errors import ParseError

Scalar = str | int | float | bool | None
Row = dict[str, Scalar]

# Same lexical shape a spreadsheet export would give a number: optional sign,
# digits with optional fraction (or a bare fraction), optional exponent.
_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")
_INT_RE = re.compile(r"^\s*[-+]?\d+\s*$")
_TRUE = "true"
_FALSE = "false"


@dataclass
class ParsedCsv:
    rows: list[Row] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def coerce_scalar(raw: str) -> Scalar:
    """Infer the scalar type of a single cell."""
    if raw == "":
        return None
    lowered = raw.lower()
    if lowered == _TRUE:
        return True
    if lowered == _FALSE:
        return False
    if _INT_RE.match(raw):
        return int(raw)
    if _NUMBER_RE.match(raw):
        value = float(raw)
        # out of range for a float: keep the lexeme rather than inf
        return value if math.isfinite(value) else raw
    return raw


def _read_frame(text: str) -> pd.DataFrame:
    try:
        return pd.read_csv(
            StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except pd.errors.ParserError as e:
        raise ParseError(_describe_parser_error(e), row=_row_from_message(str(e))) from e


def _describe_parser_error(err: Exception) -> str:
    msg = str(err).strip()
    # pandas prefixes tokenizer failures with boilerplate
    msg = msg.replace("Error tokenizing data. C error: ", "")
    if "EOF inside string" in msg:
        return f"Quoted field unterminated ({msg})"
    if "Expected" in msg and "fields" in msg:
        return f"Too many fields ({msg})"
    return msg


def _row_from_message(msg: str) -> int | None:
    m = re.search(r"(line|row) (\d+)", msg)
    if not m:
        return None
    # the tokenizer counts "line N" from 1 but "row N" from 0
    return int(m.group(2)) + (1 if m.group(1) == "row" else 0)


def _check_field_counts(text: str, width: int) -> None:
    """Reject a record with fewer fields than the header; pandas pads those silently."""
    reader = csv.reader(StringIO(text))
    seen_header = False
    try:
        for record in reader:
            if not record or (len(record) == 1 and not record[0].strip()):
                continue
            if not seen_header:
                seen_header = True
                continue
            if len(record) < width:
                line = reader.line_num
                raise ParseError(
                    f"Too few fields: expected {width} fields but parsed {len(record)} (line {line})",
                    row=line,
                )
    except csv.Error as e:
        raise ParseError(f"{e} (line {reader.line_num})", row=reader.line_num) from e


def parse_csv(text: str) -> ParsedCsv:
    """
    Parse raw CSV text into typed rows.

    The first non-empty line provides the headers. Every other cell is
    coerced independently via `coerce_scalar`. Any structural problem raises
    `ParseError`; a partial result is never returned.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    df = _read_frame(text)
    if df.shape[1] == 0:
        return ParsedCsv()

    headers = [str(h) for h in df.iloc[0].tolist()]
    _check_field_counts(text, len(headers))
    body = df.iloc[1:].fillna("")

    rows: list[Row] = []
    for values in body.itertuples(index=False, name=None):
        row: Row = {}
        for header, value in zip(headers, values):
            row[header] = coerce_scalar(value)
        rows.append(row)

    return ParsedCsv(rows=rows, headers=headers)


def format_scalar(value: Any) -> str:
    """String form of a cell for CSV output."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return _TRUE if value else _FALSE
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def rows_to_csv(rows: Iterable[Row], headers: Sequence[str]) -> str:
    """Render rows back to CSV text, restricted to (and ordered by) `headers`."""
    headers = list(headers)
    if not headers:
        return ""
    frame = pd.DataFrame(
        [[format_scalar(row.get(h)) for h in headers] for row in rows],
        columns=pd.Index(headers, dtype=object),
        dtype=object,
    )
    return frame.to_csv(index=False, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
