import asyncio
import json
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import aiohttp
import pytest

from bananaforge_cli.api import ConfigError, GameBananaAPIConfig, GameBananaAPIError, GameBananaClient
from bananaforge_cli.api.gamebanana import parse_mods
from helpers import file_record, mod_record


class _FakeResponse:
    def __init__(self, status: int, body: bytes):
        self.status = status
        self.body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self, content_type=None):
        return json.loads(self.body)

    async def read(self):
        return self.body


class _FakeSession:
    def __init__(self, status: int = 200, body: bytes = b"[]", error: Exception | None = None):
        self.status = status
        self.body = body
        self.error = error
        self.urls: list[str] = []

    def get(self, url):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return _FakeResponse(self.status, self.body)


def test_search_url() -> None:
    url = GameBananaAPIConfig().search("foo bar", 7, 2, 25)
    parts = urlsplit(url)
    query = parse_qs(parts.query)

    assert url.startswith("https://gamebanana.com/apiv6/Mod/ByName?")
    assert query["_sName"] == ["*foo bar*"]
    assert query["_idGameRow"] == ["7"]
    assert query["_nPage"] == ["2"]
    assert query["_nPerpage"] == ["25"]
    assert "_aModManagerIntegrations" in query["_csvProperties"][0].split(",")


def test_config_file_overrides_defaults(tmp_path: Path) -> None:
    path = tmp_path / "gamebanana_api.json"
    path.write_text(json.dumps({"base_url": "https://example.test/api/", "max_concurrent_downloads": 2}))

    api = GameBananaAPIConfig(path)
    assert api.settings.max_concurrent_downloads == 2
    assert api.settings.loader_url_prefix == "r2:"
    assert api.search("x", 1, 1, 1).startswith("https://example.test/api/Mod/ByName?")


def test_missing_config_file_uses_defaults(tmp_path: Path) -> None:
    api = GameBananaAPIConfig(tmp_path / "absent.json")
    assert api.settings.max_metadata_file_size == 512 * 1024


def test_invalid_config_file(tmp_path: Path) -> None:
    path = tmp_path / "gamebanana_api.json"
    path.write_text(json.dumps({"max_concurrent_downloads": "lots"}))
    with pytest.raises(ConfigError):
        GameBananaAPIConfig(path)


def test_parse_mods_drops_malformed_records() -> None:
    mods = parse_mods([{"_sName": "no id"}, mod_record(3, "Good", files=[file_record(30, "good.zip")])])
    assert [m.name for m in mods] == ["Good"]
    assert mods[0].files[0].file_name == "good.zip"

    assert parse_mods({"error": "nope"}) is None
    assert parse_mods(None) is None


def test_client_search_mods() -> None:
    session = _FakeSession(body=json.dumps([mod_record(5, "Five")]).encode())
    client = GameBananaClient(session, GameBananaAPIConfig())

    mods = asyncio.run(client.search_mods("five", 7, 1, 50))
    assert [m.id for m in mods] == [5]
    assert "_nPage=1" in session.urls[0]


@pytest.mark.parametrize(
    "session",
    [
        _FakeSession(status=500),
        _FakeSession(body=b"<html>"),
        _FakeSession(error=aiohttp.ClientConnectionError("down")),
    ],
)
def test_client_search_errors(session: _FakeSession) -> None:
    client = GameBananaClient(session, GameBananaAPIConfig())
    with pytest.raises(GameBananaAPIError):
        asyncio.run(client.search_mods("five", 7, 1, 50))


def test_client_fetch_bytes() -> None:
    client = GameBananaClient(_FakeSession(body=b"{}"), GameBananaAPIConfig())
    assert asyncio.run(client.fetch_bytes("https://gamebanana.com/dl/1")) == b"{}"

    failing = GameBananaClient(_FakeSession(status=404), GameBananaAPIConfig())
    with pytest.raises(GameBananaAPIError):
        asyncio.run(failing.fetch_bytes("https://gamebanana.com/dl/1"))


def test_parse_mods_keeps_mod_with_empty_preview_media() -> None:
    mods = parse_mods([mod_record(1, "Keep Me", files=[file_record(10, "keep.zip")], _aPreviewMedia=[])])
    assert [m.name for m in mods] == ["Keep Me"]
    assert mods[0].preview_media is None


def test_parse_mods_drops_only_the_malformed_file() -> None:
    record = mod_record(1, "Keep Me")
    record["_aFiles"] = {"10": file_record(10, "good.zip"), "11": {"_sFile": "noid.zip"}}

    mods = parse_mods([record])
    assert [m.name for m in mods] == ["Keep Me"]
    assert [f.file_name for f in mods[0].files] == ["good.zip"]
