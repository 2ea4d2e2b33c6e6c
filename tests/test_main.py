from __future__ import annotations

import json

import pytest

from main import main


@pytest.fixture()
def db(tmp_path):
    path = tmp_path / "family.db"
    assert main(["--db", str(path), "add-member", "Xavier", "Young", "--id", "X", "--birth", "1983-05-02"]) == 0
    assert main(["--db", str(path), "add-member", "Yolanda", "Old", "--id", "Y", "--birth", "1956-09-30"]) == 0
    return path


def test_relate_corrects_direction(db, capsys) -> None:
    assert main(["--db", str(db), "relate", "X", "Y", "parent"]) == 0

    out = capsys.readouterr().out
    assert "X is child of Y (direction corrected from birth dates)" in out


def test_relate_without_correction_fails(db, capsys) -> None:
    assert main(["--db", str(db), "relate", "X", "Y", "parent", "--no-correct"]) == 1

    assert "Rejected (chronology_violation)" in capsys.readouterr().out


def test_relate_duplicate_fails(db, capsys) -> None:
    main(["--db", str(db), "relate", "Y", "X", "parent"])
    assert main(["--db", str(db), "relate", "X", "Y", "sibling"]) == 1

    assert "duplicate_relationship" in capsys.readouterr().out


def test_layout_writes_json(db, tmp_path) -> None:
    main(["--db", str(db), "relate", "Y", "X", "parent"])
    out_path = tmp_path / "layout.json"

    assert main(["--db", str(db), "layout", "--root", "Y", "--json", str(out_path)]) == 0

    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert payload["root"] == "Y"
    assert payload["generations"] == {"Y": 0, "X": 1}
    assert payload["positions"]["X"] == {"x": 0.0, "y": 200}


def test_layout_prints_positions(db, capsys) -> None:
    main(["--db", str(db), "relate", "Y", "X", "parent"])
    capsys.readouterr()

    assert main(["--db", str(db), "layout", "--root", "Y", "--generation-gap", "150"]) == 0

    out = capsys.readouterr().out
    assert "X\tgen=1\tx=0.0\ty=150.0" in out
    assert "No validation issues found" in out


def test_layout_rejects_bad_config(db, tmp_path, capsys) -> None:
    config_path = tmp_path / "layout.json"
    config_path.write_text(json.dumps({"nodeWidth": -5}), encoding="utf-8")

    assert main(["--db", str(db), "layout", "--config", str(config_path)]) == 2
    assert "Invalid layout configuration" in capsys.readouterr().err


def test_layout_empty_database(tmp_path, capsys) -> None:
    assert main(["--db", str(tmp_path / "empty.db"), "layout"]) == 0
    assert "No members to lay out" in capsys.readouterr().out


def test_add_member_with_taken_id_fails(db, capsys) -> None:
    capsys.readouterr()

    assert main(["--db", str(db), "add-member", "Other", "Person", "--id", "X"]) == 1
    assert "Rejected by the database" in capsys.readouterr().err
