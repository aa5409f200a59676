import logging
import re
from typing import Iterable, NamedTuple, Optional, TypeVar

import semver

from bananaforge_cli.core.models import ReleaseItem

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=ReleaseItem)

# major[.minor[.patch[.revision]]][-prerelease][+build], NuGet style.
VERSION_PATTERN = re.compile(
    r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


class ReleaseVersion(NamedTuple):
    """Sortable version: numeric parts first, then prerelease precedence."""

    release: semver.Version
    revision: int
    prerelease: semver.Version


def parse_version(version: str) -> Optional[ReleaseVersion]:
    """
    Parse a semantic-version-like string.

    Accepts up to four numeric parts ("1.0.0.1") with leading zeros allowed.
    Missing parts count as zero ("1.2" -> 1.2.0.0). Build metadata is
    ignored for ordering. Returns None when the string cannot be parsed.
    """
    if not isinstance(version, str):
        return None

    match = VERSION_PATTERN.match(version.strip())
    if match is None:
        return None

    major, minor, patch, revision, prerelease = match.groups()
    return ReleaseVersion(
        release=semver.Version(int(major), int(minor or 0), int(patch or 0)),
        revision=int(revision or 0),
        # A release sorts above any prerelease of the same numbers.
        prerelease=semver.Version(0, 0, 0, prerelease=prerelease),
    )


def get_highest_release(releases: Iterable[T]) -> Optional[T]:
    """
    Pick the release with the greatest version.

    Releases with unparseable versions are skipped. On ties the release
    seen first is kept.
    """
    best: Optional[T] = None
    best_version: Optional[ReleaseVersion] = None

    for release in releases:
        parsed = parse_version(release.version)
        if parsed is None:
            logger.debug("Skipping release with invalid version %r", release.version)
            continue

        if best_version is None or parsed > best_version:
            best, best_version = release, parsed

    return best
