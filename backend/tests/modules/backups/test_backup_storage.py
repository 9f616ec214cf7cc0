# tests/modules/backups/test_backup_storage.py
from datetime import datetime

import pytest

from rentaldesk.modules.backups.errors import BackupFileNotFound, BackupRootUnavailable
from rentaldesk.modules.backups.storage import SUBDIRECTORIES, BackupStore, sanitize_name


def test_ensure_directories_is_idempotent(tmp_path):
    store = BackupStore(tmp_path / "root")
    store.ensure_directories()
    (tmp_path / "root" / "agreements" / "keep.txt").write_text("x")
    store.ensure_directories()

    present = sorted(p.name for p in (tmp_path / "root").iterdir() if p.is_dir())
    assert present == sorted(SUBDIRECTORIES)
    assert (tmp_path / "root" / "agreements" / "keep.txt").read_text() == "x"


def test_ensure_directories_fails_when_root_is_a_file(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied")
    with pytest.raises(BackupRootUnavailable):
        BackupStore(blocker).ensure_directories()


def test_agreement_base_path_is_deterministic():
    store = BackupStore("/unused")
    path = store.agreement_base_path("AGR-007", "O'Brien & Sons", datetime(2026, 3, 5, 10, 30))
    assert path == "agreements/2026/03-March/AGR-007_OBrienSons_2026-03-05"


def test_path_for_each_kind():
    store = BackupStore("/unused")
    when = datetime(2026, 12, 1)
    assert store.path_for("csv", when=when) == "vehicles/vehicles_export_2026-12-01.csv"
    assert store.path_for("database-dump", when=when) == "database-dumps/full_backup_2026-12-01.json"
    assert store.path_for("agreement", when=when, agreement_number="AGR-120", renter_name="Zoë Ann") == (
        "agreements/2026/12-December/AGR-120_ZoAnn_2026-12-01"
    )
    with pytest.raises(ValueError):
        store.path_for("agreement", when=when)
    with pytest.raises(ValueError):
        store.path_for("tarball", when=when)


def test_sanitize_name_strips_everything_but_ascii_alphanumerics():
    assert sanitize_name("Mary-Jane  O'Neil, Jr.") == "MaryJaneONeilJr"
    assert sanitize_name("") == ""


def test_write_creates_parents_and_returns_size(backup_store):
    size = backup_store.write("agreements/2026/03-March/x.json", '{"a": 1}')
    assert size == 8
    assert backup_store.read("agreements/2026/03-March/x.json") == b'{"a": 1}'


def test_read_missing_file_raises_not_found(backup_store):
    with pytest.raises(BackupFileNotFound):
        backup_store.read("agreements/nope.pdf")


def test_read_refuses_paths_outside_root(backup_store):
    with pytest.raises(BackupFileNotFound):
        backup_store.read("../../etc/passwd")


def test_write_rejects_paths_outside_root(backup_store):
    with pytest.raises(ValueError) as exc_info:
        backup_store.write("../escape.txt", b"x")

    assert not isinstance(exc_info.value, BackupFileNotFound)
    assert not (backup_store.root.parent / "escape.txt").exists()


def test_directory_size_sums_nested_files(backup_store):
    backup_store.write("vehicles/a.csv", b"x" * 100)
    backup_store.write("database-dumps/b.json", b"y" * 250)
    backup_store.write("agreements/2026/01-January/c.pdf", b"z" * 50)
    assert backup_store.directory_size_bytes() == 400
    assert backup_store.directory_size_bytes(backup_store.root / "vehicles") == 100
