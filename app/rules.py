"""
Deterministic conversion rules.

This file exists to make the heuristics' knobs explicit and enforceable.
"""

# Header guessing: a line is a header if it mentions enough of these words.
HEADER_KEYWORDS = ("rank", "player", "name", "city", "school", "type", "rating")
HEADER_SCAN_LIMIT = 25
HEADER_MIN_HITS = 3

# Id synthesis: first non-empty field wins.
ID_BASE_FIELDS = ("player", "name", "full_name", "col2", "col1")
ID_BASE_FALLBACK = "row"

OUTPUT_FORMATS = ("json", "csv")
DEFAULT_OUTPUT_FORMAT = "json"
