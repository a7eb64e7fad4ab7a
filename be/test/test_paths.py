import os

from services.paths import Paths


def test_note_path_and_urls(tmp_path):
    paths = Paths(str(tmp_path), "https://notes.example.com/", folder_prefix=2)
    folder, file_path = paths.full_file_path("ab1234", "html")
    assert folder == os.path.join(str(tmp_path), "userfiles", "notes", "ab")
    assert file_path == os.path.join(str(tmp_path), "userfiles", "notes", "ab", "ab1234.html")
    assert paths.display_url("ab1234", "html") == "https://notes.example.com/ab1234"
    assert paths.file_url("ab1234", "html") == "https://notes.example.com/notes/ab/ab1234.html"


def test_buckets():
    assert Paths.bucket("html") == "notes"
    assert Paths.bucket("css") == "css"
    for ext in ("png", "woff2", "svg"):
        assert Paths.bucket(ext) == "files"


def test_asset_display_url_is_file_url(tmp_path):
    paths = Paths(str(tmp_path), "https://notes.example.com", folder_prefix=2)
    assert paths.display_url("xy99", "png") == "https://notes.example.com/files/xy/xy99.png"
    assert paths.display_url("xy99", "css") == "https://notes.example.com/css/xy/xy99.css"


def test_no_sharding(tmp_path):
    paths = Paths(str(tmp_path), "https://notes.example.com", folder_prefix=0)
    assert paths.folder_path("ab1234", "html") == "notes"
    folder, file_path = paths.full_file_path("ab1234", "png")
    assert folder == os.path.join(str(tmp_path), "userfiles", "files")
    assert file_path.endswith(os.path.join("files", "ab1234.png"))
    assert paths.file_url("ab1234", "png") == "https://notes.example.com/files/ab1234.png"
