class RanklistError(Exception):
    """Base class for errors raised around the conversion core."""


class UnsupportedFormatError(RanklistError):
    """Raised when an output format other than json/csv is requested."""

    def __init__(self, fmt: str):
        super().__init__(f"Unsupported output format: {fmt!r}. Use json or csv.")
        self.fmt = fmt


class MetaPairError(RanklistError):
    """Raised when a metadata item is not a key=value pair."""

    def __init__(self, pair: str):
        super().__init__(f"Invalid meta item {pair!r}: expected key=value")
        self.pair = pair
