import os
import threading
import time
from datetime import timedelta

from app import create_app
from common.db import db
from models.file import FileRecord, utcnow
from services.file_store import FileStore
from services.storage.local_storage import LocalStorage
from services.sweeper import ExpirySweeper

NOTE_HASH = "0" * 40


def _note(owner, expires=None):
    """Create a note and optionally backdate its expiry."""
    result = FileStore(owner, {
        "filetype": "html",
        "hash": NOTE_HASH,
        "template": {"content": "x", "encrypted": False},
    }).create_note()
    filename = result["url"].rsplit("/", 1)[1]
    if expires is not None:
        record = FileRecord.query.filter_by(filename=filename).one()
        record.expires = expires
        db.session.commit()
    return filename


def test_sweep_removes_only_expired(test_app, owner, edge_cache):
    paths = test_app.extensions["paths"]
    with test_app.app_context():
        expired = _note(owner, utcnow() - timedelta(minutes=1))
        future = _note(owner, utcnow() + timedelta(days=1))
        forever = _note(owner)
        edge_cache.purged.clear()

        assert ExpirySweeper(test_app).delete_expired_files() == 1

        remaining = {r.filename for r in FileRecord.query.all()}
        assert remaining == {future, forever}
        assert not os.path.exists(paths.full_file_path(expired, "html")[1])
        assert os.path.exists(paths.full_file_path(future, "html")[1])
        assert edge_cache.purged == [paths.display_url(expired, "html")]

        # 再次执行不会重复删除
        assert ExpirySweeper(test_app).delete_expired_files() == 0


def test_sweep_continues_after_file_error(test_app, owner):
    class BrokenOnce(LocalStorage):
        calls = 0

        def delete_file(self, file_path):
            BrokenOnce.calls += 1
            if BrokenOnce.calls == 1:
                raise RuntimeError("storage unavailable")
            return super().delete_file(file_path)

    test_app.extensions["local_storage"] = BrokenOnce()
    past = utcnow() - timedelta(minutes=5)
    with test_app.app_context():
        _note(owner, past)
        _note(owner, past)

        assert ExpirySweeper(test_app).delete_expired_files() == 2
        assert FileRecord.query.count() == 0


def test_sweep_survives_purge_failure(test_app, owner, edge_cache):
    edge_cache.fail = True
    with test_app.app_context():
        _note(owner, utcnow() - timedelta(minutes=1))
        assert ExpirySweeper(test_app).delete_expired_files() == 1


def test_sweep_expired_command(test_app, owner):
    with test_app.app_context():
        _note(owner, utcnow() - timedelta(minutes=1))

    result = test_app.test_cli_runner().invoke(args=["sweep-expired"])

    assert result.exit_code == 0
    assert "Deleted 1 expired file(s)" in result.output


def test_background_thread_runs_and_stops(test_app, owner, monkeypatch):
    ran = threading.Event()
    sweeper = ExpirySweeper(test_app, interval=0.01)

    def fake_sweep():
        ran.set()
        return 0

    monkeypatch.setattr(sweeper, "delete_expired_files", fake_sweep)
    sweeper.start()
    try:
        assert ran.wait(2)
    finally:
        sweeper.stop(timeout=2)
    assert sweeper._thread is None


def test_refresh_during_sweep_keeps_disk_and_index_in_step(test_app, owner):
    """Owner re-publishes the note while the sweeper is removing its file."""
    paths = test_app.extensions["paths"]

    class RepublishOnDelete(LocalStorage):
        republished = False

        def delete_file(self, file_path):
            if not RepublishOnDelete.republished:
                RepublishOnDelete.republished = True
                FileStore(owner, {
                    "filetype": "html",
                    "hash": NOTE_HASH,
                    "filename": filename,
                    "expiration": int((time.time() + 86400) * 1000),
                    "template": {"content": "y", "encrypted": False},
                }).create_note()
            return super().delete_file(file_path)

    test_app.extensions["local_storage"] = RepublishOnDelete()
    with test_app.app_context():
        filename = _note(owner, utcnow() - timedelta(minutes=1))

        ExpirySweeper(test_app).delete_expired_files()

        assert RepublishOnDelete.republished
        row_exists = FileRecord.query.filter_by(filename=filename).count() == 1
        file_exists = os.path.exists(paths.full_file_path(filename, "html")[1])
        assert row_exists == file_exists


def test_create_app_does_not_start_sweeper(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "BASE_FOLDER": str(tmp_path),
        "SWEEPER_ENABLED": True,
    })
    assert app.extensions["expiry_sweeper"]._thread is None
    assert "run-sweeper" in app.cli.commands
