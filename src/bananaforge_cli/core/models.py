import logging
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

SOURCE_NAME = "GameBanana"
DEFAULT_LOADER_URL_PREFIX = "r2:"


def _valid_entries(model: Type[BaseModel], entries: Any) -> Any:
    """Validate list entries one by one, dropping the ones that do not fit."""
    if not isinstance(entries, list):
        return entries

    kept = []
    for entry in entries:
        try:
            kept.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning("Dropping malformed %s entry: %s", model.__name__, e.errors()[0].get("msg", e))
    return kept


class RemoteModel(BaseModel):
    # Remote records are untrusted: ignore unknown keys, never mutate.
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class GameBananaModFile(RemoteModel):
    id: int = Field(alias="_idRow")
    file_name: Optional[str] = Field(default=None, alias="_sFile")
    description: Optional[str] = Field(default=None, alias="_sDescription")
    file_size: Optional[int] = Field(default=None, alias="_nFilesize")
    download_url: Optional[str] = Field(default=None, alias="_sDownloadUrl")


class GameBananaManagerIntegration(RemoteModel):
    installer_name: Optional[str] = Field(default=None, alias="_sInstallerName")
    download_url: Optional[str] = Field(default=None, alias="_sDownloadUrl")

    def is_loader_download_url(self, prefix: str = DEFAULT_LOADER_URL_PREFIX) -> bool:
        if not self.download_url:
            return False
        return self.download_url.lower().startswith(prefix.lower())

    def get_loader_download_url(self, prefix: str = DEFAULT_LOADER_URL_PREFIX) -> str:
        """Strip the loader protocol prefix, leaving a plain http(s) URL."""
        return (self.download_url or "")[len(prefix):]


class GameBananaCredit(RemoteModel):
    name: Optional[str] = Field(default=None, alias="_sName")


class GameBananaPreviewImage(RemoteModel):
    base_url: Optional[str] = Field(default=None, alias="_sBaseUrl")
    file: Optional[str] = Field(default=None, alias="_sFile")
    caption: Optional[str] = Field(default=None, alias="_sCaption")
    file_width_100: Optional[str] = Field(default=None, alias="_sFile100")
    file_width_220: Optional[str] = Field(default=None, alias="_sFile220")
    file_width_530: Optional[str] = Field(default=None, alias="_sFile530")

    @property
    def base_dir(self) -> str:
        """Base URL with exactly one trailing slash, for resolving file names."""
        return (self.base_url or "").rstrip("/") + "/"

    @property
    def image_url(self) -> str:
        base = (self.base_url or "").rstrip("/")
        return f"{base}/{self.file}" if self.file else base


class GameBananaPreviewMedia(RemoteModel):
    images: Optional[List[GameBananaPreviewImage]] = Field(default=None, alias="_aImages")

    @field_validator("images", mode="before")
    @classmethod
    def _drop_bad_images(cls, value: Any) -> Any:
        return _valid_entries(GameBananaPreviewImage, value)


class GameBananaMod(RemoteModel):
    id: int = Field(alias="_idRow")
    name: Optional[str] = Field(default=None, alias="_sName")
    description: Optional[str] = Field(default=None, alias="_sText")
    credits: Optional[Dict[str, List[GameBananaCredit]]] = Field(default=None, alias="_aCredits")
    files: Optional[List[GameBananaModFile]] = Field(default=None, alias="_aFiles")
    manager_integrations: Optional[Dict[int, List[GameBananaManagerIntegration]]] = Field(
        default=None, alias="_aModManagerIntegrations"
    )
    preview_media: Optional[GameBananaPreviewMedia] = Field(default=None, alias="_aPreviewMedia")

    @field_validator("files", mode="before")
    @classmethod
    def _files_as_list(cls, value: Any) -> Any:
        # The API keys files by their id; only the values matter.
        if isinstance(value, dict):
            value = list(value.values())
        return _valid_entries(GameBananaModFile, value)

    @field_validator("credits", "manager_integrations", "preview_media", mode="before")
    @classmethod
    def _empty_list_as_none(cls, value: Any) -> Any:
        # PHP serializes an empty map as [].
        if isinstance(value, list) and not value:
            return None
        return value


# ---------- release metadata ----------


class ReleaseItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: str = Field(alias="Version")
    file_name: str = Field(alias="FileName")


class ReleaseMetadataExtraData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    mod_id: Optional[str] = Field(default=None, alias="ModId")
    mod_name: Optional[str] = Field(default=None, alias="ModName")
    mod_description: Optional[str] = Field(default=None, alias="ModDescription")
    readme: Optional[str] = Field(default=None, alias="Readme")


class ReleaseMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    releases: List[ReleaseItem] = Field(default_factory=list, alias="Releases")
    extra_data: Optional[Any] = Field(default=None, alias="ExtraData")

    def get_release(self, version: str) -> Optional[ReleaseItem]:
        return next((r for r in self.releases if r.version == version), None)


# ---------- normalized output ----------


class DownloadableImageThumbnail(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    width_hint: Optional[int] = None


class DownloadableImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    caption: Optional[str] = None
    thumbnails: Optional[List[DownloadableImageThumbnail]] = None


class DownloadablePackage(BaseModel):
    id: str = ""
    name: str = ""
    authors: str = ""
    description: str = ""
    markdown_readme: Optional[str] = None
    source: str = SOURCE_NAME
    version: Optional[str] = None
    file_size: int = 0
    url: str
    images: Optional[List[DownloadableImage]] = None

    @property
    def long_description(self) -> str:
        return self.markdown_readme or self.description
