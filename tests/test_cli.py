import io
import json

import click
from click.testing import CliRunner

from app.cli import main, parse_meta_args

TEXT = "rank,player,city\n2,Bob,Rome\n1,Ann,Troy\n"


def test_parse_meta_args():
    pairs = ("state=CT", " class = 2027 ", "=x", "novalue", "note=a=b")
    assert parse_meta_args(pairs) == {"state": "CT", "class": "2027", "note": "a=b"}


def test_stdin_to_json():
    result = CliRunner().invoke(main, [], input=TEXT)
    assert result.exit_code == 0
    records = json.loads(result.output)
    assert [r["id"] for r in records] == ["ann-1", "bob-2"]


def test_csv_with_meta_and_no_id():
    result = CliRunner().invoke(main, ["--format", "csv", "--meta", "state=CT", "--no-id"], input=TEXT)
    assert result.exit_code == 0
    assert result.output == "rank,player,city,state\n1,Ann,Troy,CT\n2,Bob,Rome,CT\n"


def test_columns_option():
    result = CliRunner().invoke(main, ["--columns", "place, who", "--no-id"], input="1  Ann\n2  Bob\n")
    assert result.exit_code == 0
    assert json.loads(result.output) == [{"place": "1", "who": "Ann"}, {"place": "2", "who": "Bob"}]


def test_in_and_out_files(tmp_path):
    src = tmp_path / "list.txt"
    dest = tmp_path / "out.json"
    src.write_text(TEXT, encoding="utf-8")

    result = CliRunner().invoke(main, ["--in", str(src), "--out", str(dest)])
    assert result.exit_code == 0
    assert result.output == ""
    assert json.loads(dest.read_text(encoding="utf-8"))[0]["player"] == "Ann"


def test_missing_input_file(tmp_path):
    result = CliRunner().invoke(main, ["--in", str(tmp_path / "nope.txt")])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_invalid_format():
    result = CliRunner().invoke(main, ["--format", "xml"], input=TEXT)
    assert result.exit_code == 2


class _TtyStream(io.BytesIO):
    def isatty(self):
        return True


def test_tty_stdin_without_in_file(monkeypatch):
    monkeypatch.setattr(click, "get_binary_stream", lambda name: _TtyStream())
    result = CliRunner().invoke(main, [])
    assert result.exit_code == 1
    assert "No --in file provided" in result.output


def test_unwritable_out_file(tmp_path):
    dest = tmp_path / "missing-dir" / "out.json"
    result = CliRunner().invoke(main, ["--out", str(dest)], input=TEXT)
    assert result.exit_code == 1
    assert "Error" in result.output
    assert not dest.exists()
