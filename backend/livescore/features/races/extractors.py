"""Feed format detection.

Each extractor is a pure function `raw text → ExtractionResult | None`.
`extract_rows` tries them in priority order and the first one that yields
rows wins.
"""

from __future__ import annotations

import html
import json
import logging
import re
from typing import Any, Callable

from .models import ExtractionResult, RawRecord
from .pipe_format import merge_rows, parse_pipe_feed

logger = logging.getLogger(__name__)

UNKNOWN_FORMAT = "unknown"

_JSONP = re.compile(r"^[^(]+\((.*)\);?$", re.DOTALL)
_INLINE_ARRAY = re.compile(r"\[[\s\S]*\]")
_SIGNAL_KEYS = re.compile(r"name|team|time|place|rank|bib")
_TABLE = re.compile(r"<table", re.IGNORECASE)
_ROW = re.compile(r"<tr(?:\s[^>]*)?>([\s\S]*?)</tr>", re.IGNORECASE)
_CELL = re.compile(r"<t[dh](?:\s[^>]*)?>([\s\S]*?)</t[dh]>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_NEWLINE = re.compile(r"\r?\n")


def safe_json_loads(text: str) -> Any | None:
    """Parse JSON (unwrapping a JSONP callback), None on failure."""
    match = _JSONP.match(text.strip())
    payload = match.group(1) if match else text
    try:
        return json.loads(payload)
    except ValueError:
        return None


def _is_object_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


# =============================================================================
# 1. Pipe feed
# =============================================================================


def extract_pipe(raw: str) -> ExtractionResult | None:
    parsed = parse_pipe_feed(raw)
    if parsed is None:
        return None
    return ExtractionResult(
        rows=merge_rows(parsed),
        source_format="pipe-live-timing",
        metadata=parsed.metadata,
        notes=["Parsed from live-timing pipe feed format."],
    )


# =============================================================================
# 2. JSON object tree
# =============================================================================


def _collect_object_arrays(node: Any, bag: list[list[dict]]) -> None:
    if isinstance(node, list):
        if _is_object_list(node):
            bag.append(node)
        for item in node:
            _collect_object_arrays(item, bag)
    elif isinstance(node, dict):
        for value in node.values():
            _collect_object_arrays(value, bag)


def _signal(rows: list[dict]) -> int:
    """Number of rows that have at least one result-like key."""
    return sum(
        1 for row in rows if _SIGNAL_KEYS.search("|".join(map(str, row)).lower())
    )


def best_object_array(payload: Any) -> list[RawRecord]:
    """Pick the array of objects that looks most like a results table."""
    candidates: list[list[dict]] = []
    _collect_object_arrays(payload, candidates)
    if not candidates:
        return []
    # max() keeps the first candidate on ties
    return max(candidates, key=_signal)


def extract_json(raw: str) -> ExtractionResult | None:
    payload = safe_json_loads(raw)
    if payload is None:
        return None
    return ExtractionResult(rows=best_object_array(payload), source_format="json")


# =============================================================================
# 3. Array literal embedded in a page/script
# =============================================================================


def extract_inline_array(raw: str) -> ExtractionResult | None:
    for candidate in _INLINE_ARRAY.findall(raw):
        parsed = safe_json_loads(candidate)
        if _is_object_list(parsed):
            return ExtractionResult(
                rows=parsed,
                source_format="inline-js-array",
                notes=["Parsed from embedded JavaScript array."],
            )
    return None


# =============================================================================
# 4. HTML table
# =============================================================================


def _cell_text(value: str) -> str:
    return html.unescape(_TAG.sub("", value)).replace("\xa0", " ").strip()


def extract_html_table(raw: str) -> ExtractionResult | None:
    if not _TABLE.search(raw):
        return None

    rows: list[list[str]] = []
    for row_html in _ROW.findall(raw):
        cells = [_cell_text(cell) for cell in _CELL.findall(row_html)]
        if cells:
            rows.append(cells)

    if len(rows) < 2:
        return None

    header = rows[0]
    records = [
        {key: values[i] if i < len(values) else "" for i, key in enumerate(header)}
        for values in rows[1:]
    ]
    return ExtractionResult(
        rows=records, source_format="html-table", notes=["Parsed from HTML table."]
    )


# =============================================================================
# 5. CSV-like text
# =============================================================================


def _split_csv_line(line: str) -> list[str]:
    return [part.strip() for part in line.split(",")]


def extract_csv(raw: str) -> ExtractionResult | None:
    if "," not in raw:
        return None

    lines = [line.strip() for line in _NEWLINE.split(raw) if line.strip()]
    if len(lines) < 2:
        return None

    header = _split_csv_line(lines[0])
    if len(header) < 3:
        return None

    records = []
    for line in lines[1:]:
        cols = _split_csv_line(line)
        records.append(
            {key: cols[i] if i < len(cols) else "" for i, key in enumerate(header)}
        )
    return ExtractionResult(
        rows=records, source_format="csv", notes=["Parsed as CSV-like payload."]
    )


# =============================================================================
# Cascade
# =============================================================================

Extractor = Callable[[str], "ExtractionResult | None"]

EXTRACTORS: list[Extractor] = [
    extract_pipe,
    extract_json,
    extract_inline_array,
    extract_html_table,
    extract_csv,
]


def extract_rows(raw: str, extractors: list[Extractor] | None = None) -> ExtractionResult:
    """Run the extractors in order and return the first non-empty result."""
    for extractor in extractors or EXTRACTORS:
        result = extractor(raw)
        if result is not None and result.rows:
            logger.debug(f"Feed parsed as {result.source_format} ({len(result.rows)} rows)")
            return result

    return ExtractionResult(
        rows=[],
        source_format=UNKNOWN_FORMAT,
        notes=["Feed format not recognized."],
    )
