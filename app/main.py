from typing import List, Optional

from fastapi import FastAPI, UploadFile, File, HTTPException, Query
from fastapi.responses import PlainTextResponse

from .errors import MetaPairError, UnsupportedFormatError
from .models import ConvertOptions, ConvertRequest, ConvertResponse, HealthResponse, OutputFormat
from .normalize import decode_input, parse_table
from .output import render

app = FastAPI(
    title="ranklist",
    description="Convert ranking lists and loose tables into normalized records",
    version="0.1.0",
)


def parse_meta_pairs(pairs: Optional[List[str]]) -> dict:
    meta = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise MetaPairError(pair)
        meta[key.strip()] = value.strip()
    return meta


def parse_columns(columns: Optional[str]) -> Optional[List[str]]:
    if not columns:
        return None
    return [c.strip() for c in columns.split(",") if c.strip()] or None


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/convert", response_model=ConvertResponse)
def convert_text(req: ConvertRequest):
    shape, records = parse_table(req.text, req.options())
    return {"format": shape, "count": len(records), "records": records}


@app.post("/convert/file", response_model=ConvertResponse)
async def convert_file(
    file: UploadFile = File(...),
    fmt: str = Query("json", alias="format"),
    columns: Optional[str] = Query(None),
    add_id: bool = Query(True),
    meta: Optional[List[str]] = Query(None),
):
    try:
        out_format = OutputFormat(fmt.lower())
    except ValueError:
        raise HTTPException(status_code=422, detail=str(UnsupportedFormatError(fmt)))

    try:
        options = ConvertOptions(columns=parse_columns(columns), add_id=add_id, meta=parse_meta_pairs(meta))
    except MetaPairError as e:
        raise HTTPException(status_code=422, detail=str(e))

    raw = await file.read()
    text, _ = decode_input(raw)
    shape, records = parse_table(text, options)

    if out_format is OutputFormat.CSV:
        return PlainTextResponse(render(records, out_format), media_type="text/csv")
    return {"format": shape, "count": len(records), "records": records}
