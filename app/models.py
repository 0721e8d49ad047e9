from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

# A normalized record value: raw text, a coerced number, or null.
RecordValue = Union[str, int, float, None]
Record = Dict[str, RecordValue]


class TableShape(str, Enum):
    MARKDOWN = "markdown"
    TSV = "tsv"
    CSV = "csv"
    SPACED = "spaced"


class OutputFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class ConvertOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    columns: Optional[List[str]] = Field(default=None, examples=[["rank", "player", "city"]])
    add_id: bool = Field(default=True, alias="addId")
    meta: Dict[str, str] = Field(default_factory=dict, examples=[{"state": "CT"}])


class ConvertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    columns: Optional[List[str]] = None
    add_id: bool = Field(default=True, alias="addId")
    meta: Dict[str, str] = Field(default_factory=dict)

    def options(self) -> ConvertOptions:
        return ConvertOptions(columns=self.columns, add_id=self.add_id, meta=self.meta)


class ConvertResponse(BaseModel):
    format: TableShape
    count: int = 0
    records: List[Record] = Field(default_factory=list)


class HealthResponse(BaseModel):
    ok: bool = True
