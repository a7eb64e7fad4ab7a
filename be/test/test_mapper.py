import pytest

from common.db import db
from models.file import FileRecord, utcnow
from services.mapper import Mapper, sanitize_identifier, table_schema


def _file_row(**overrides):
    row = {
        "user_id": 1,
        "filename": "abcd1234",
        "filetype": "html",
        "hash": "a" * 40,
        "bytes": 10,
        "encrypted": False,
        "created": utcnow(),
        "updated": utcnow(),
    }
    row.update(overrides)
    return row


def test_sanitize_identifier():
    assert sanitize_identifier("files") == "files"
    assert sanitize_identifier("user_id; DROP TABLE") == "user_id"
    assert sanitize_identifier("Files2") == "iles"
    assert sanitize_identifier(None) == ""


def test_new_mapper_has_empty_row(test_app):
    with test_app.app_context():
        mapper = Mapper("files")
        assert set(mapper.fields) >= {"id", "filename", "filetype", "hash", "expires"}
        assert all(value is None for value in mapper.row.values())
        assert mapper.not_found


def test_schema_is_cached_per_app(test_app):
    with test_app.app_context():
        assert table_schema("files") is table_schema("files")


def test_insert_then_load_and_update(test_app):
    with test_app.app_context():
        mapper = Mapper("files")
        mapper.set(_file_row())
        assert mapper.save()
        assert mapper.found
        new_id = mapper.id

        loaded = Mapper("files")
        loaded.load(filename="abcd1234", filetype="html")
        assert loaded.id == new_id
        assert loaded.row["hash"] == "a" * 40

        loaded.set({"bytes": 99})
        assert loaded.save()
        assert db.session.get(FileRecord, new_id).bytes == 99


def test_load_miss_resets_row(test_app):
    with test_app.app_context():
        mapper = Mapper("files")
        mapper.set(_file_row())
        mapper.save()

        mapper.load(filename="missing", filetype="html")
        assert mapper.not_found
        assert all(value is None for value in mapper.row.values())


def test_filter_values_are_bound(test_app):
    with test_app.app_context():
        mapper = Mapper("files")
        mapper.set(_file_row())
        mapper.save()

        probe = Mapper("files")
        probe.load(filename="x' OR '1'='1", filetype="html")
        assert probe.not_found


def test_unknown_field_rejected(test_app):
    with test_app.app_context():
        mapper = Mapper("files")
        with pytest.raises(ValueError):
            mapper.set({"owner": 1})
        with pytest.raises(ValueError):
            mapper.load(nope="x")
        with pytest.raises(ValueError):
            mapper.load()
