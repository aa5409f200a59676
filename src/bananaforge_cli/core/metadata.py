"""
Release metadata - the small JSON manifest mod authors upload next to their
release files. It lists every published release and may carry an ExtraData
block with id/name/description/readme overrides.
"""

import logging
import re
from pathlib import PurePosixPath
from typing import List, Optional

from pydantic import ValidationError

from bananaforge_cli.core.models import ReleaseMetadata, ReleaseMetadataExtraData

logger = logging.getLogger(__name__)

METADATA_EXTENSION = ".json"
MAX_METADATA_FILE_SIZE = 512 * 1024


class MetadataError(ValueError):
    pass


def parse_release_metadata(data: bytes) -> ReleaseMetadata:
    """Parse manifest bytes. Raises MetadataError on bad JSON or shape."""
    try:
        return ReleaseMetadata.model_validate_json(data)
    except ValidationError as e:
        raise MetadataError(f"Invalid release metadata: {e.error_count()} error(s)") from e


def is_acceptable(metadata: ReleaseMetadata) -> bool:
    return metadata.extra_data is not None and len(metadata.releases) > 0


def get_extra_data(metadata: ReleaseMetadata) -> Optional[ReleaseMetadataExtraData]:
    """Typed view of the ExtraData blob, or None if it has the wrong shape."""
    if metadata.extra_data is None:
        return None
    try:
        return ReleaseMetadataExtraData.model_validate(metadata.extra_data)
    except ValidationError:
        logger.debug("ExtraData present but not readable, ignoring")
        return None


def is_metadata_candidate(file_name: Optional[str], file_size: Optional[int], download_url: Optional[str],
                          max_size: int = MAX_METADATA_FILE_SIZE) -> bool:
    """
    Cheap filter applied before downloading anything:
    - name ends with .json
    - declared size within the cap
    - has a download URL
    """
    if not file_name or not file_name.endswith(METADATA_EXTENSION):
        return False
    if (file_size or 0) > max_size:
        return False
    return bool(download_url)


def get_file_name_starts(file_name: str) -> List[str]:
    """
    Expected prefixes of an uploaded file, given the name a release declares.

    GameBanana renames uploads (spaces to underscores, odd characters dropped)
    and appends a hash, so the extension is stripped and only the start of
    the name is compared.

    Examples:
        "My Mod.zip" -> ["My Mod", "My_Mod"]
        "Foo (v2).7z" -> ["Foo (v2)", "Foo_(v2)", "Foo_v2"]
    """
    stem = PurePosixPath(file_name).stem if "." in file_name else file_name
    underscored = re.sub(r"\s+", "_", stem)
    sanitized = re.sub(r"[^A-Za-z0-9_.\-]", "", underscored)

    starts: List[str] = []
    for candidate in (stem, underscored, sanitized):
        if candidate and candidate not in starts:
            starts.append(candidate)
    return starts

