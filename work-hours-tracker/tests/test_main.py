import json

import pytest

import main


@pytest.fixture
def storage(tmp_path, monkeypatch):
    path = tmp_path / "work-hours.json"
    monkeypatch.setenv("WORK_TRACKER_STORAGE", str(path))
    monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
    monkeypatch.chdir(tmp_path)
    return path


def test_check_in_status_check_out(storage, capsys):
    """CLIで出勤→状態表示→退勤ができること"""
    assert main.main(["check-in"]) == 0
    assert main.main(["status"]) == 0
    assert main.main(["check-out"]) == 0

    out = capsys.readouterr().out
    assert "Checked in successfully!" in out
    assert "Status:          Working" in out
    assert "Checked out!" in out
    data = json.loads(storage.read_text(encoding="utf-8"))
    assert "workHistory" in data


def test_check_out_without_check_in(storage, capsys):
    assert main.main(["check-out"]) == 1
    assert "Not checked in." in capsys.readouterr().err


def test_edit_and_history(storage, capsys):
    assert main.main(["edit", "2024-03-01", "09:00", "17:30", "--break-minutes", "30"]) == 0
    assert main.main(["leave", "add", "2024-03-04", "--type", "sick"]) == 0
    assert main.main(["history", "--month", "2024-03"]) == 0

    out = capsys.readouterr().out
    assert "Entry saved successfully! (8h 0m)" in out
    assert "Mon, Mar 04  Sick" in out
    assert "Fri, Mar 01  09:00 - 17:30  8h 0m" in out


def test_edit_invalid_returns_error(storage, capsys):
    assert main.main(["edit", "2024-03-01", "09:00", "09:30", "--break-minutes", "60"]) == 1


def test_settings_set(storage, capsys):
    assert main.main(["settings", "set", "--month-start-day", "26", "--month-end-day", "25"]) == 0
    out = capsys.readouterr().out
    assert "monthStartDay: 26" in out
    assert "monthEndDay: 25" in out


def test_export_import_round_trip(storage, tmp_path, capsys):
    main.main(["edit", "2024-03-01", "09:00", "17:00", "--break-minutes", "0"])
    backup = tmp_path / "backup.json"
    assert main.main(["export", "json", "-o", str(backup)]) == 0
    assert main.main(["clear", "--yes"]) == 0
    assert main.main(["import", str(backup)]) == 0
    assert "Imported 1 entries (json)" in capsys.readouterr().out


def test_import_missing_file(storage, tmp_path):
    assert main.main(["import", str(tmp_path / "missing.csv")]) == 2
