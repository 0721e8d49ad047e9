"""
Record serializers for the HTTP and command-line surfaces.
"""

from __future__ import annotations

import csv
import io
import json
from typing import Dict, List, Union

from .errors import UnsupportedFormatError
from .models import OutputFormat, Record


def to_json(records: List[Record]) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False)


def _columns(records: List[Record]) -> List[str]:
    # Union of keys in first-seen order; rows may not share a header.
    seen: Dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)


def to_csv(records: List[Record]) -> str:
    if not records:
        return ""

    columns = _columns(records)
    outp = io.StringIO(newline="")
    writer = csv.writer(outp, delimiter=",", lineterminator="\n")

    writer.writerow(columns)
    for record in records:
        writer.writerow(["" if record.get(c) is None else record[c] for c in columns])

    return outp.getvalue().rstrip("\n")


def render(records: List[Record], fmt: Union[OutputFormat, str]) -> str:
    try:
        fmt = OutputFormat(str(getattr(fmt, "value", fmt)).lower())
    except ValueError:
        raise UnsupportedFormatError(str(fmt)) from None

    if fmt is OutputFormat.CSV:
        return to_csv(records)
    return to_json(records)
