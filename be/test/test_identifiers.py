import re

from utils.hash import sha1_bytes, short_hash
from utils.identifiers import BASE36_DIGITS, deterministic_identifier, random_identifier


def test_random_identifier_length_and_alphabet():
    for length in (1, 8, 20):
        value = random_identifier(length)
        assert len(value) == length
        assert re.fullmatch(r"[a-z0-9]+", value)


def test_random_identifier_reaches_whole_alphabet():
    seen = set()
    for _ in range(200):
        seen.update(random_identifier(20))
    assert seen == set(BASE36_DIGITS)


def test_deterministic_identifier_is_stable():
    first = deterministic_identifier("salt", "user-uid")
    assert first == deterministic_identifier("salt", "user-uid")
    assert len(first) == 32
    assert re.fullmatch(r"[a-f0-9]{32}", first)
    assert first == short_hash("saltuser-uid")


def test_deterministic_identifier_depends_on_salt_and_identity():
    base = deterministic_identifier("salt", "user-uid")
    assert base != deterministic_identifier("pepper", "user-uid")
    assert base != deterministic_identifier("salt", "other-uid")


def test_sha1_bytes():
    assert sha1_bytes(b"hello") == "aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d"
