import asyncio
import json
from typing import Any, Dict, List, Optional

from bananaforge_cli.core import FetchError, GameBananaMod


class FakeModSource:
    """In-memory stand-in for the GameBanana client."""

    def __init__(self, mods: Optional[List[Dict[str, Any]]], files: Optional[Dict[str, bytes]] = None):
        self.mods = None if mods is None else [GameBananaMod.model_validate(m) for m in mods]
        self.files = files or {}
        self.searches: List[tuple] = []
        self.fetched: List[str] = []

    async def search_mods(self, text, game_id, page, per_page):
        self.searches.append((text, game_id, page, per_page))
        return self.mods

    async def fetch_bytes(self, url):
        self.fetched.append(url)
        await asyncio.sleep(0)
        if url not in self.files:
            raise FetchError(f"404 for {url}")
        return self.files[url]


def mod_record(mod_id: int = 1, name: str = "Foo Mod", files: Optional[List[Dict[str, Any]]] = None, **extra) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "_idRow": mod_id,
        "_sName": name,
        "_sText": "<p>A <b>cool</b> mod</p>",
        "_aCredits": {"Key Authors": [{"_sName": "Alice"}]},
    }
    if files is not None:
        record["_aFiles"] = {str(f["_idRow"]): f for f in files}
    record.update(extra)
    return record


def file_record(file_id: int, file_name: str, size: int = 1024, url: Optional[str] = None, **extra) -> Dict[str, Any]:
    record = {
        "_idRow": file_id,
        "_sFile": file_name,
        "_nFilesize": size,
        "_sDownloadUrl": url if url is not None else f"https://gamebanana.com/dl/{file_id}",
    }
    record.update(extra)
    return record


def manifest_bytes(releases: List[tuple], extra_data: Any = None) -> bytes:
    return json.dumps(
        {
            "Releases": [{"Version": v, "FileName": f} for v, f in releases],
            "ExtraData": extra_data,
        }
    ).encode()
