import sys

import start_dev
from src.forecasting import parse_csv_text


def test_dependencies_are_installed() -> None:
    assert start_dev.check_dependencies() == []


def test_write_sample_csv(tmp_path) -> None:
    out = tmp_path / "sample.csv"
    count = start_dev.write_sample_csv(out, days=30, seed=3)

    assert count == 30
    series = parse_csv_text(out.read_text(encoding="utf-8"))
    assert len(series) == 30
    assert series.first_date.isoformat() == "2022-01-01"


def test_main_writes_sample_and_exits(tmp_path, monkeypatch, capsys) -> None:
    out = tmp_path / "demo.csv"
    monkeypatch.setattr(sys, "argv", [
        "start_dev.py", "--sample-csv", str(out), "--sample-days", "10", "--seed", "1",
    ])

    start_dev.main()

    assert out.read_text(encoding="utf-8").splitlines()[0] == "date,count"
    assert len(out.read_text(encoding="utf-8").splitlines()) == 11
    assert "Wrote 10 days" in capsys.readouterr().out
