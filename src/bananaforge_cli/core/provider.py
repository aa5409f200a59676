"""
GameBanana package provider - turns raw search results into downloadable
packages.

Two strategies, tried in order for a whole batch of results:
1. Release metadata: a .json manifest uploaded among the mod's files names
   the newest release and the file that holds it.
2. Raw files: files the uploader linked to the mod loader through a manager
   integration.
"""

import asyncio
import logging
from typing import List, Optional, Protocol

from bananaforge_cli.core.metadata import (
    MAX_METADATA_FILE_SIZE,
    MetadataError,
    get_extra_data,
    get_file_name_starts,
    is_acceptable,
    is_metadata_candidate,
    parse_release_metadata,
)
from bananaforge_cli.core.models import (
    DEFAULT_LOADER_URL_PREFIX,
    SOURCE_NAME,
    DownloadablePackage,
    GameBananaMod,
    GameBananaModFile,
    ReleaseMetadata,
)
from bananaforge_cli.core.normalize import get_authors, get_images, html_to_markdown, html_to_plain_text
from bananaforge_cli.core.versions import get_highest_release

logger = logging.getLogger(__name__)


class MissingFileError(LookupError):
    pass


class FetchError(RuntimeError):
    """Raised by a ModSource when a file cannot be downloaded."""


class ModSource(Protocol):
    async def search_mods(self, text: str, game_id: int, page: int, per_page: int) -> Optional[List[GameBananaMod]]: ...

    async def fetch_bytes(self, url: str) -> bytes: ...


def get_download_file_for_name(file_name: str, files: List[GameBananaModFile]) -> Optional[GameBananaModFile]:
    """
    Find the uploaded file for a release's declared file name.

    Matches on a case-insensitive prefix, trying each expected start in turn.
    """
    for expected in get_file_name_starts(file_name):
        expected_lower = expected.lower()
        for file in files:
            if file.file_name and file.file_name.lower().startswith(expected_lower):
                return file
    return None


def apply_extra_data(package: DownloadablePackage, metadata: ReleaseMetadata) -> None:
    """Non-empty ExtraData fields override what the API gave us."""
    extra = get_extra_data(metadata)
    if extra is None:
        return

    if extra.mod_id:
        package.id = extra.mod_id
    if extra.mod_name:
        package.name = extra.mod_name
    if extra.mod_description:
        package.description = extra.mod_description
    if extra.readme:
        package.markdown_readme = extra.readme


class GameBananaPackageProvider:
    """Searches GameBanana for downloadable mods of a single game."""

    def __init__(
        self,
        game_id: int,
        client: ModSource,
        *,
        loader_url_prefix: str = DEFAULT_LOADER_URL_PREFIX,
        max_metadata_file_size: int = MAX_METADATA_FILE_SIZE,
        max_concurrent_downloads: int = 4,
    ):
        self.game_id = game_id
        self.client = client
        self.loader_url_prefix = loader_url_prefix
        self.max_metadata_file_size = max_metadata_file_size
        self.max_concurrent_downloads = max(1, max_concurrent_downloads)

    async def search(self, text: str, skip: int = 0, take: int = 50) -> List[DownloadablePackage]:
        """
        Search for packages.

        GameBanana pages rather than offsets, so the page is approximated as
        skip // take + 1. This is only exact when skip is a multiple of take.
        When a page has no manifest-backed results the raw-file results are
        returned instead, so page sizes seen by the caller can vary.
        """
        if take <= 0:
            raise ValueError(f"take must be a positive page size, got {take}")

        page = (skip // take) + 1
        mods = await self.client.search_mods(text, self.game_id, page, take)
        results: List[DownloadablePackage] = []

        if not mods:
            return results

        if not await self._try_add_results_from_release_metadata(mods, results):
            self._add_results_from_raw_files(mods, results)

        logger.debug("Search %r page %d produced %d package(s)", text, page, len(results))
        return results

    # ---------- release metadata ----------

    async def _try_add_results_from_release_metadata(
        self, mods: List[GameBananaMod], results: List[DownloadablePackage]
    ) -> bool:
        result_count = len(results)

        candidates = [
            (mod, file)
            for mod in mods
            if mod.files
            for file in mod.files
            if is_metadata_candidate(file.file_name, file.file_size, file.download_url, self.max_metadata_file_size)
        ]

        semaphore = asyncio.Semaphore(self.max_concurrent_downloads)
        tasks = [asyncio.ensure_future(self._read_metadata(file, semaphore)) for _, file in candidates]
        try:
            metadata = await asyncio.gather(*tasks)
        except BaseException:
            # No fetch may outlive the search, whatever ended it.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        for (mod, _), release_metadata in zip(candidates, metadata):
            if release_metadata is None:
                continue

            package = self._package_from_metadata(mod, release_metadata)
            if package is not None:
                results.append(package)

        return len(results) > result_count

    async def _read_metadata(self, file: GameBananaModFile, semaphore: asyncio.Semaphore) -> Optional[ReleaseMetadata]:
        async with semaphore:
            try:
                data = await self.client.fetch_bytes(file.download_url or "")
            except FetchError as e:
                logger.debug("Skipping metadata file %s: %s", file.file_name, e)
                return None

        try:
            release_metadata = parse_release_metadata(data)
        except MetadataError as e:
            logger.debug("Skipping metadata file %s: %s", file.file_name, e)
            return None

        if not is_acceptable(release_metadata):
            logger.debug("Skipping metadata file %s: no releases or extra data", file.file_name)
            return None

        return release_metadata

    def _package_from_metadata(self, mod: GameBananaMod, release_metadata: ReleaseMetadata) -> Optional[DownloadablePackage]:
        highest = get_highest_release(release_metadata.releases)
        if highest is None:
            return None

        newest_release = release_metadata.get_release(highest.version)
        if newest_release is None:
            return None

        mod_file = get_download_file_for_name(newest_release.file_name, mod.files or [])
        if mod_file is None or not mod_file.download_url:
            logger.debug("No uploaded file for release %s of %s", newest_release.file_name, mod.name)
            return None

        name = mod.name or ""
        package = DownloadablePackage(
            id=name,
            name=name,
            description=html_to_plain_text(mod.description),
            authors=get_authors(mod),
            file_size=mod_file.file_size or 0,
            source=SOURCE_NAME,
            version=newest_release.version,
            url=mod_file.download_url,
        )

        apply_extra_data(package, release_metadata)

        if not package.markdown_readme:
            package.markdown_readme = html_to_markdown(mod.description)

        package.images = get_images(mod)
        return package

    # ---------- raw files ----------

    def _add_results_from_raw_files(self, mods: List[GameBananaMod], results: List[DownloadablePackage]) -> None:
        for mod in mods:
            if mod.manager_integrations is None or mod.files is None:
                continue

            text_description = html_to_plain_text(mod.description)
            readme = html_to_markdown(mod.description)
            authors = get_authors(mod)
            images = get_images(mod)
            mod_name = mod.name or ""

            counter = 0
            for file_id, integrations in mod.manager_integrations.items():
                file = next((f for f in mod.files if f.id == file_id), None)
                if file is None:
                    raise MissingFileError(f"Mod {mod.id} has an integration for unknown file {file_id}")

                file_label = file.description or file.file_name or ""

                for integration in integrations:
                    if not integration.is_loader_download_url(self.loader_url_prefix):
                        continue

                    name = f"{mod_name} [{counter}]" if counter > 0 else mod_name
                    counter += 1

                    results.append(
                        DownloadablePackage(
                            id=mod_name,
                            name=name,
                            description=f"[{file_label}] {text_description}",
                            authors=authors,
                            file_size=file.file_size or 0,
                            source=SOURCE_NAME,
                            markdown_readme=readme,
                            url=integration.get_loader_download_url(self.loader_url_prefix),
                            images=images,
                        )
                    )
