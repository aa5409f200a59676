"""
GameBanana API access: endpoint configuration and a thin async client.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import urlencode

import aiohttp
from pydantic import BaseModel, ValidationError

from bananaforge_cli.core.models import DEFAULT_LOADER_URL_PREFIX, GameBananaMod
from bananaforge_cli.core.provider import FetchError

logger = logging.getLogger(__name__)

DEFAULT_PROPERTIES = [
    "_idRow",
    "_sName",
    "_sText",
    "_aFiles",
    "_aCredits",
    "_aPreviewMedia",
    "_aModManagerIntegrations",
]


class GameBananaAPIError(FetchError):
    pass


class ConfigError(ValueError):
    pass


class APISettings(BaseModel):
    base_url: str = "https://gamebanana.com/apiv6"
    record_schema: str = "FileDownloader"
    properties: List[str] = DEFAULT_PROPERTIES
    loader_url_prefix: str = DEFAULT_LOADER_URL_PREFIX
    request_timeout: float = 60
    connect_timeout: float = 10
    max_metadata_file_size: int = 512 * 1024
    max_concurrent_downloads: int = 4


class GameBananaAPIConfig:
    """
    Endpoint settings, optionally overridden by a JSON file.

    Keys missing from the file keep their defaults.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path
        self.settings = APISettings()

        if config_path is not None and config_path.exists():
            try:
                self.settings = APISettings.model_validate_json(config_path.read_text())
            except ValidationError as e:
                raise ConfigError(f"Invalid API config {config_path}: {e}") from e

    def search(self, text: str, game_id: int, page: int, per_page: int) -> str:
        """Build the mod search URL (GameBanana pages are 1-based)."""
        params = {
            "_sName": f"*{text}*",
            "_idGameRow": game_id,
            "_nPage": page,
            "_nPerpage": per_page,
        }
        if self.settings.properties:
            params["_csvProperties"] = ",".join(self.settings.properties)
        else:
            params["_sRecordSchema"] = self.settings.record_schema

        return f"{self.settings.base_url.rstrip('/')}/Mod/ByName?{urlencode(params)}"


def parse_mods(payload: Any) -> Optional[List[GameBananaMod]]:
    """
    Validate a search payload record by record.

    Anything other than a JSON array means "no results". Records that do not
    validate are dropped.
    """
    if not isinstance(payload, list):
        return None

    mods: List[GameBananaMod] = []
    for record in payload:
        try:
            mods.append(GameBananaMod.model_validate(record))
        except ValidationError as e:
            logger.warning("Dropping malformed mod record: %s", e.errors()[0].get("msg", e))
    return mods


class GameBananaClient:
    def __init__(self, session: aiohttp.ClientSession, config: GameBananaAPIConfig):
        self.session = session
        self.config = config

    async def search_mods(self, text: str, game_id: int, page: int, per_page: int) -> Optional[List[GameBananaMod]]:
        url = self.config.search(text, game_id, page, per_page)
        logger.debug("GET %s", url)

        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    raise GameBananaAPIError(f"Search failed with status {response.status}")
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise GameBananaAPIError(f"Failed to reach GameBanana: {e}") from e
        except json.JSONDecodeError as e:
            raise GameBananaAPIError(f"GameBanana returned invalid JSON: {e}") from e

        return parse_mods(payload)

    async def fetch_bytes(self, url: str) -> bytes:
        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    raise GameBananaAPIError(f"Download of {url} failed with status {response.status}")
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise GameBananaAPIError(f"Download of {url} failed: {e}") from e
