"""
Core conversion logic lives here.

Responsibilities:
- encoding detection + newline normalization of raw bytes
- table shape detection (markdown, tsv, csv, spaced)
- header guessing and row extraction per shape
- junk row filtering
- row normalization (keys, coercions, ids, metadata)
- rank ordering
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from charset_normalizer import from_bytes

from .models import ConvertOptions, Record, TableShape
from .rules import (
    HEADER_KEYWORDS,
    HEADER_MIN_HITS,
    HEADER_SCAN_LIMIT,
    ID_BASE_FALLBACK,
    ID_BASE_FIELDS,
)

logger = logging.getLogger(__name__)

Row = List[str]
Header = Optional[List[str]]

_LINE_BREAK = re.compile(r"\r?\n")
_SPACED_DELIM = re.compile(r"\s{2,}")
_QUOTES = re.compile(r"['\"‘’“”]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_NON_KEY = re.compile(r"[^a-z0-9_]")
_WHITESPACE = re.compile(r"\s+")
_RANK = re.compile(r"#?(\d+)")
_NUMBER = re.compile(r"-?\d+(\.\d+)?")


# --- Input decoding ---

def decode_input(raw: bytes) -> tuple[str, Dict[str, Any]]:
    """
    Decode uploaded or piped bytes into text for the parser.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is consumed rather than kept as text.
    - If decode fails, fall back to UTF-8, then to replacement characters.
    - CRLF/CR newlines become LF.
    """
    detected = None
    match = from_bytes(raw).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or "utf-8"
    if raw.startswith(b"\xef\xbb\xbf") and decode_used.lower().replace("-", "_") in ("utf_8", "utf8"):
        decode_used = "utf-8-sig"

    decode_fallback = False
    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        decode_fallback = True
        try:
            text = raw.decode("utf-8")
            decode_used = "utf-8"
        except UnicodeDecodeError:
            # Last resort: keep going with replacement characters
            text = raw.decode("utf-8", errors="replace")
            decode_used = "utf-8"
        logger.warning("Could not decode input as %s, used %s instead", detected, decode_used)

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    logger.debug("Decoded %d bytes as %s", len(raw), decode_used)

    return text, {
        "detected": detected,
        "decode_used": decode_used,
        "decode_fallback": decode_fallback,
    }


# --- Pure text utilities ---

def slugify(value: Any) -> str:
    """Lowercase, drop quotes, hyphenate everything that isn't a letter or digit."""
    s = str(value or "").lower().strip()
    s = _QUOTES.sub("", s)
    s = _NON_ALNUM.sub("-", s)
    return s.strip("-")


def normalize_key(key: Any) -> str:
    s = str(key or "").lower().strip()
    s = _WHITESPACE.sub("_", s)
    return _NON_KEY.sub("", s)


def coerce_rank(value: Any) -> Optional[int]:
    """'#12' -> 12, '12th' -> 12, 'rank: none' -> None."""
    if value is None:
        return None
    m = _RANK.search(str(value).strip())
    return int(m.group(1)) if m else None


def coerce_number(value: Any) -> Union[int, float, None]:
    """First signed integer or decimal token in the value, or None."""
    if value is None:
        return None
    m = _NUMBER.search(str(value).strip())
    if not m:
        return None
    token = m.group(0)
    return float(token) if m.group(1) else int(token)


def split_lines(text: str) -> List[str]:
    """Lines with NBSPs flattened, trailing whitespace trimmed, blanks removed."""
    lines = []
    for line in _LINE_BREAK.split(text.replace("\u00a0", " ")):
        line = line.rstrip()
        if line.strip():
            lines.append(line)
    return lines


# --- Shape detection ---

def detect_format(text: str) -> TableShape:
    lines = [line for line in _LINE_BREAK.split(text) if line.strip()]

    if any("|" in line and line.strip().startswith("|") for line in lines):
        return TableShape.MARKDOWN
    if any("\t" in line for line in lines):
        return TableShape.TSV
    # No tab anywhere at this point, so any comma line makes it CSV.
    if any("," in line for line in lines):
        return TableShape.CSV
    return TableShape.SPACED


# --- Extraction ---

def guess_header(lines: List[str]) -> Optional[str]:
    """
    Return the first line that looks like a header, or None.

    Only the first HEADER_SCAN_LIMIT lines are considered. A line qualifies
    when its lowercase text contains at least HEADER_MIN_HITS distinct
    keywords (substring match, so "player_name" hits both "player" and "name").
    """
    for line in lines[:HEADER_SCAN_LIMIT]:
        low = line.lower()
        hits = sum(1 for word in HEADER_KEYWORDS if word in low)
        if hits >= HEADER_MIN_HITS:
            return line
    return None


def _split_pipes(line: str) -> Row:
    return [cell.strip() for cell in line.split("|") if cell.strip()]


def _split_spaced(line: str) -> Row:
    # 2+ spaces only, so values like "Old Greenwich" stay in one cell
    return [cell.strip() for cell in _SPACED_DELIM.split(line.strip())]


def _delimited_splitter(delim: str) -> Callable[[str], Row]:
    def split(line: str) -> Row:
        return [cell.strip() for cell in line.split(delim)]

    return split


def _extract_markdown(lines: List[str]) -> tuple[Header, List[Row]]:
    table_lines = [l for l in lines if l.strip().startswith("|")]
    if len(table_lines) < 2:
        return None, []

    header = _split_pipes(table_lines[0])
    # table_lines[1] is the | --- | separator row
    rows = [_split_pipes(l) for l in table_lines[2:]]
    return header, rows


def _extract_with_header_guess(lines: List[str], split: Callable[[str], Row]) -> tuple[Header, List[Row]]:
    header_line = guess_header(lines)
    if header_line is None:
        return None, [split(l) for l in lines]

    idx = lines.index(header_line)
    return split(header_line), [split(l) for l in lines[idx + 1:]]


_EXTRACTORS: Dict[TableShape, Callable[[List[str]], tuple[Header, List[Row]]]] = {
    TableShape.MARKDOWN: _extract_markdown,
    TableShape.TSV: lambda lines: _extract_with_header_guess(lines, _delimited_splitter("\t")),
    TableShape.CSV: lambda lines: _extract_with_header_guess(lines, _delimited_splitter(",")),
    TableShape.SPACED: lambda lines: _extract_with_header_guess(lines, _split_spaced),
}


def extract_table(lines: List[str], shape: TableShape) -> tuple[Header, List[Row]]:
    return _EXTRACTORS[shape](lines)


def resolve_header(columns: Optional[List[str]], detected: Header) -> Header:
    """Explicit columns beat a detected header; neither means positional col1..colN."""
    if columns:
        return list(columns)
    if detected:
        return detected
    return None


# --- Row handling ---

def is_junk_row(row: Row) -> bool:
    if "---" in " ".join(row).lower():
        return True
    return len(row) == 1 and len(row[0]) < 2


def _id_base(record: Record) -> str:
    for field in ID_BASE_FIELDS:
        value = record.get(field)
        if value:
            return str(value)
    return ID_BASE_FALLBACK


def normalize_row(row: Row, header: Header, produced: int, options: ConvertOptions) -> Record:
    """
    Turn one raw row into a record.

    Steps run in a fixed order on a fresh dict: keyed values, rank/rating
    coercion, id synthesis, then metadata (which overwrites anything
    already present).
    """
    record: Record = {}

    if header:
        for i, name in enumerate(header):
            record[normalize_key(name)] = row[i] if i < len(row) else ""
    else:
        for i, cell in enumerate(row):
            record[f"col{i + 1}"] = cell

    if "rank" in record:
        record["rank"] = coerce_rank(record["rank"])
    if "rating" in record:
        record["rating"] = coerce_number(record["rating"])

    if options.add_id:
        rank = record.get("rank")
        suffix = rank if rank is not None else produced + 1
        record["id"] = slugify(f"{_id_base(record)}-{suffix}")

    for key, value in options.meta.items():
        record[key] = value

    return record


def _rank_key(record: Record) -> tuple[bool, Union[int, float]]:
    # Rank-less records sort after every ranked one, however large the rank.
    rank = record.get("rank")
    return rank is None, rank or 0


def sort_records(records: List[Record]) -> List[Record]:
    """
    Order records by rank when the first record carries one.

    Only the first record decides: if it has no rank, extraction order is
    kept even when later records are ranked.
    """
    if records and records[0].get("rank") is not None:
        logger.debug("Sorting %d records by rank", len(records))
        return sorted(records, key=_rank_key)
    return list(records)


# --- Entry points ---

def _coerce_options(options: Union[ConvertOptions, Mapping[str, Any], None]) -> ConvertOptions:
    if options is None:
        return ConvertOptions()
    if isinstance(options, ConvertOptions):
        return options
    return ConvertOptions.model_validate(dict(options))


def parse_table(
    raw_text: str,
    options: Union[ConvertOptions, Mapping[str, Any], None] = None,
) -> tuple[TableShape, List[Record]]:
    """Like parse_input, but also reports which table shape was detected."""
    opts = _coerce_options(options)

    lines = split_lines(raw_text)
    shape = detect_format(raw_text)
    detected, rows = extract_table(lines, shape)
    header = resolve_header(opts.columns, detected)
    logger.debug(
        "Detected %s table: %d rows, header=%s",
        shape.value,
        len(rows),
        "explicit" if opts.columns else ("detected" if header else "positional"),
    )

    records: List[Record] = []
    for row in rows:
        if is_junk_row(row):
            logger.debug("Dropping junk row %r", row)
            continue
        records.append(normalize_row(row, header, len(records), opts))

    return shape, sort_records(records)


def parse_input(
    raw_text: str,
    options: Union[ConvertOptions, Mapping[str, Any], None] = None,
) -> List[Record]:
    """
    Convert loosely tabular text into an ordered list of flat records.

    Never raises for any text input: unknown shapes fall back to spaced
    columns, a missing header to col1..colN, and unparseable rank/rating
    values to None.
    """
    _, records = parse_table(raw_text, options)
    return records
