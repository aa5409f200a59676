from .metadata import MetadataError, get_file_name_starts, parse_release_metadata
from .models import (
    DownloadableImage,
    DownloadableImageThumbnail,
    DownloadablePackage,
    GameBananaMod,
    GameBananaModFile,
    ReleaseMetadata,
)
from .normalize import get_authors, get_images, html_to_markdown, html_to_plain_text
from .provider import FetchError, GameBananaPackageProvider, MissingFileError, ModSource
from .utils import ensure_config_file, get_api_session, setup_crash_logging
from .versions import get_highest_release

__all__ = [
    "DownloadableImage",
    "DownloadableImageThumbnail",
    "DownloadablePackage",
    "FetchError",
    "GameBananaMod",
    "GameBananaModFile",
    "GameBananaPackageProvider",
    "MetadataError",
    "MissingFileError",
    "ModSource",
    "ReleaseMetadata",
    "ensure_config_file",
    "get_api_session",
    "get_authors",
    "get_file_name_starts",
    "get_highest_release",
    "get_images",
    "html_to_markdown",
    "html_to_plain_text",
    "parse_release_metadata",
    "setup_crash_logging",
]
