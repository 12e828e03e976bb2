import sqlite3
from datetime import datetime

import pytest

import backup
from backup import backup_db, main


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(backup, "setup_logging", lambda level: None)


def test_backup_copies_database(directory, make_attendee):
    make_attendee()
    out = backup_db(directory.db_path, now=datetime(2024, 5, 1, 9, 30, 0))

    assert out.parent == directory.db_path.parent
    assert out.name == "attendees-backup-2024-05-01T09-30-00-000000.db"
    conn = sqlite3.connect(out)
    assert conn.execute("SELECT name FROM attendees").fetchall() == [("Ada Lovelace",)]
    conn.close()


def test_main_reports_missing_database(tmp_path):
    assert main(["--data-dir", str(tmp_path / "empty")]) == 1


def test_main_backs_up_data_dir(tmp_path, make_attendee, directory):
    make_attendee()
    assert main(["--data-dir", str(tmp_path)]) == 0
    assert len(list(tmp_path.glob("attendees-backup-*.db"))) == 1
