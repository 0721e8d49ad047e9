from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)

MARKDOWN = "| Rank | Player | City |\n| --- | --- | --- |\n| 2 | Bob | Rome |\n| 1 | Ann | Troy |\n"

def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}

def test_convert_text():
    r = client.post("/convert", json={"text": MARKDOWN, "meta": {"state": "CT"}})
    assert r.status_code == 200

    data = r.json()
    assert data["format"] == "markdown"
    assert data["count"] == 2
    assert data["records"][0] == {"rank": 1, "player": "Ann", "city": "Troy", "id": "ann-1", "state": "CT"}

def test_convert_text_without_id():
    r = client.post("/convert", json={"text": "1,Ann\n2,Bob", "columns": ["rank", "player"], "addId": False})
    assert r.status_code == 200
    assert r.json()["records"] == [{"rank": 1, "player": "Ann"}, {"rank": 2, "player": "Bob"}]

def test_convert_file_to_csv():
    raw = b"rank,player,city\n2,Bob,Rome\n1,Ann,Troy\n"

    files = {"file": ("list.txt", raw, "text/plain")}
    r = client.post("/convert/file", files=files, params={"format": "csv", "meta": ["state=CT"]})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert r.text == "rank,player,city,id,state\n1,Ann,Troy,ann-1,CT\n2,Bob,Rome,bob-2,CT"

def test_convert_file_decodes_latin1():
    # Include a Latin-1 character to force non-ASCII handling
    raw = "rank,player,city\n1,Paul,Montréal\n".encode("latin-1")

    files = {"file": ("list.csv", raw, "text/csv")}
    r = client.post("/convert/file", files=files, params={"columns": "rank, player ,city"})
    assert r.status_code == 200

    data = r.json()
    assert data["format"] == "csv"
    assert data["records"][0]["city"] == "Montréal"

def test_convert_file_rejects_unknown_format():
    files = {"file": ("list.txt", b"1,Ann", "text/plain")}
    r = client.post("/convert/file", files=files, params={"format": "xml"})
    assert r.status_code == 422

def test_convert_file_rejects_bad_meta():
    files = {"file": ("list.txt", b"1,Ann", "text/plain")}
    r = client.post("/convert/file", files=files, params={"meta": ["novalue"]})
    assert r.status_code == 422
    assert "key=value" in r.json()["detail"]

def test_convert_file_format_query_is_case_insensitive():
    files = {"file": ("list.txt", b"rank,player,city\n1,Ann,Troy\n", "text/plain")}
    r = client.post("/convert/file", files=files, params={"format": "CSV", "add_id": "false"})
    assert r.status_code == 200
    assert r.text == "rank,player,city\n1,Ann,Troy"
