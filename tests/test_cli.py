from __future__ import annotations

import json
from pathlib import Path

import pytest

from menu_allergens.cli.main import main


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".git").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


def test_codes_prints_vocabulary(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["codes"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["allergens"][0]["code"] == "A"


def test_import_paste_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "rows.txt"
    src.write_text("Caesar Salad;A,C,D;1,4\nTomatensuppe;I;2\n", encoding="utf-8")
    assert main(["import-paste", str(src)]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [p["name"] for p in payload["products"]] == ["Caesar Salad", "Tomatensuppe"]


def test_import_csv_cleartext_table(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "produkte.csv"
    src.write_text("Name;Allergene;Zusatzstoffe\nKäsebrot;A,G;\n;X;\n", encoding="utf-8")
    assert main(["import-csv", str(src), "--format", "cleartext"]) == 0
    captured = capsys.readouterr()
    assert captured.out.splitlines() == ["Käsebrot\tGlutenhaltiges Getreide, Milch/Laktose\t"]
    assert "Zeile 3 wurde übersprungen" in captured.err


def test_missing_file_is_validation_exit_code(tmp_path: Path) -> None:
    assert main(["import-csv", str(tmp_path / "fehlt.csv")]) == 2


def test_parse_menu_without_key_exits_1(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["parse-menu", "--text", "Suppe"]) == 1
    assert "OPENAI_API_KEY" in capsys.readouterr().err
