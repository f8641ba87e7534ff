import errno
import json
import os

import pytest

from tokenstore.domain.exceptions import DecodeError, PublishError
from tokenstore.domain.token import Token
from tokenstore.infrastructure import persist
from tokenstore.infrastructure.token_storage import JsonFileTokenStorage


def test_read_tokens_returns_none_when_missing(tmp_path):
    storage = JsonFileTokenStorage(tmp_path / "tokens.json")

    assert storage.read_tokens() is None


def test_save_and_read_tokens_round_trip(tmp_path):
    path = tmp_path / "nested" / "tokens.json"
    storage = JsonFileTokenStorage(path)

    payload = {"access_token": "abc", "refresh_token": "def"}
    assert storage.save_tokens(payload) is True

    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    assert data["access_token"] == "abc"
    assert data["refresh_token"] == "def"

    assert storage.read_tokens() == Token(**payload)


@pytest.mark.skipif(os.name == "nt", reason="POSIX file permissions only")
def test_save_tokens_sets_restrictive_permissions(tmp_path):
    path = tmp_path / "tokens.json"
    storage = JsonFileTokenStorage(path)

    storage.save_tokens(Token(access_token="abc"))

    mode = path.stat().st_mode & 0o777
    assert mode == 0o600


@pytest.mark.skipif(os.name == "nt", reason="POSIX file permissions only")
def test_save_tokens_uses_configured_mode(tmp_path):
    path = tmp_path / "tokens.json"
    storage = JsonFileTokenStorage(path, mode=0o640)

    storage.save_tokens(Token(access_token="abc"))

    assert path.stat().st_mode & 0o777 == 0o640


def test_save_tokens_reports_degraded_permissions(tmp_path, monkeypatch, read_log):
    def _fail(path, mode):
        raise OSError(errno.EPERM, "Operation not permitted")

    monkeypatch.setattr(persist.os, "chmod", _fail)
    path = tmp_path / "tokens.json"
    storage = JsonFileTokenStorage(path)

    assert storage.save_tokens(Token(access_token="abc")) is False

    assert storage.read_tokens().access_token == "abc"
    log = read_log()
    assert "[WARNING] [STORE]" in log
    assert "could not set permissions" in log


def test_save_tokens_propagates_publish_failure(tmp_path, monkeypatch, read_log):
    def _fail(src, dst):
        raise OSError(errno.EACCES, "Permission denied")

    monkeypatch.setattr(persist.os, "replace", _fail)
    storage = JsonFileTokenStorage(tmp_path / "tokens.json")

    with pytest.raises(PublishError):
        storage.save_tokens(Token(access_token="abc"))

    assert "Failed to save token" in read_log()


def test_read_tokens_propagates_decode_errors(tmp_path, read_log):
    path = tmp_path / "tokens.json"
    path.write_text("not json", encoding="utf-8")
    storage = JsonFileTokenStorage(path)

    with pytest.raises(DecodeError):
        storage.read_tokens()

    assert "Failed to read token" in read_log()
