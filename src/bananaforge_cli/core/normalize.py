from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from markdownify import markdownify

from bananaforge_cli.core.models import (
    DownloadableImage,
    DownloadableImageThumbnail,
    GameBananaMod,
)

THUMBNAIL_WIDTHS = (100, 220, 530)


def html_to_plain_text(html: Optional[str]) -> str:
    """Rich-text description -> plain text for short display fields."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    return soup.get_text(separator=" ", strip=True)


def html_to_markdown(html: Optional[str]) -> str:
    """Rich-text description -> Markdown for readme fields."""
    if not html:
        return ""
    return markdownify(html, heading_style="ATX").strip()


def get_authors(mod: GameBananaMod) -> str:
    """
    Short display summary of the credits, not the full list.

    Examples:
        [] -> ""
        ["A"] -> "A"
        ["A", "B"] -> "A, B"
        ["A", "B", "C"] -> "A, B, ..."
    """
    if not mod.credits:
        return ""

    authors = [
        credit.name
        for credits in mod.credits.values()
        for credit in credits
        if credit.name
    ]

    if len(authors) >= 3:
        return f"{authors[0]}, {authors[1]}, ..."
    if len(authors) == 2:
        return f"{authors[0]}, {authors[1]}"
    return authors[0] if authors else ""


def get_images(mod: GameBananaMod) -> Optional[List[DownloadableImage]]:
    if mod.preview_media is None or not mod.preview_media.images:
        return None

    images: List[DownloadableImage] = []
    for gb_image in mod.preview_media.images:
        if not gb_image.base_url:
            continue

        base_uri = gb_image.image_url
        paths = (gb_image.file_width_100, gb_image.file_width_220, gb_image.file_width_530)

        thumbs = [
            DownloadableImageThumbnail(uri=urljoin(gb_image.base_dir, path), width_hint=width)
            for path, width in zip(paths, THUMBNAIL_WIDTHS)
            if path
        ]

        images.append(
            DownloadableImage(
                uri=base_uri,
                caption=gb_image.caption,
                thumbnails=thumbs or None,
            )
        )

    return images or None
