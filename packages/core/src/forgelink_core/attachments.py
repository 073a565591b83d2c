"""Download inline image attachments referenced from issue/PR comments.

Attachments uploaded to a private repository are not downloadable from the
URL written in the Markdown body. The platform's rendered HTML for the same
comment embeds a resolvable URL (on GitHub, a short-lived signed URL carrying
a ``jwt`` query parameter). Resolution therefore runs in four steps:

1. Scan each Markdown body for image links under the attachment prefix.
2. For comments with matches, fetch the rendered HTML and collect the
   resolvable URLs from it.
3. Pair the two ordered lists by position, up to the shorter length.
4. Download each pair not already present in the map.

Step 3 has no identifier linking a Markdown URL to its rendered counterpart.
It relies on both representations listing the same images in the same order.
"""

from __future__ import annotations

import html
import logging
import re
import time
from pathlib import Path
from urllib.parse import urlparse

from forgelink_core.errors import AttachmentIOError, PlatformRequestError, UnsupportedCapabilityError
from forgelink_core.models import CommentWithImages
from forgelink_core.platform.base import PlatformClient

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOADS_DIR = "/tmp/github-images"

_GITHUB_SIGNED_URL_RE = re.compile(r"https://private-user-images\.githubusercontent\.com/[^\"]+\?jwt=[^\"]+")

_IMAGE_EXTENSION_RE = re.compile(r"\.(png|jpg|jpeg|gif|webp|svg)$", re.IGNORECASE)
_DEFAULT_EXTENSION = ".png"


def build_image_pattern(server_url: str, platform_kind: str) -> re.Pattern:
    """Return the pattern matching Markdown images hosted under the attachment prefix.

    Group 1 is the attachment URL. GitHub stores uploads under
    ``/user-attachments/assets/``; Gitea under ``/attachments/``.
    """
    prefix = re.escape(server_url.rstrip("/"))
    if platform_kind == "gitea":
        return re.compile(rf"!\[[^\]]*\]\(({prefix}/attachments/[^)]+)\)")
    return re.compile(rf"!\[[^\]]*\]\(({prefix}/user-attachments/assets/[^)]+)\)")


def build_signed_url_pattern(server_url: str, platform_kind: str) -> re.Pattern:
    """Return the pattern matching resolvable attachment URLs in rendered HTML.

    Gitea has no signed form: the rendered ``<img src>`` points back at the
    attachment URL, which the client downloads with its token.
    """
    if platform_kind == "gitea":
        prefix = re.escape(server_url.rstrip("/"))
        return re.compile(rf"<img[^>]*\ssrc=\"({prefix}/attachments/[^\"]+)\"")
    return _GITHUB_SIGNED_URL_RE


def extract_image_urls(body: str, pattern: re.Pattern) -> list[str]:
    return [m.group(1) for m in pattern.finditer(body)]


def extract_signed_urls(body_html: str, pattern: re.Pattern) -> list[str]:
    """Return resolvable URLs in document order, with HTML entities decoded."""
    urls = []
    for m in pattern.finditer(body_html):
        url = m.group(1) if pattern.groups else m.group(0)
        urls.append(html.unescape(url))
    return urls


def get_image_extension(url: str) -> str:
    """Return the image extension of the URL's last path segment, or ".png"."""
    filename = urlparse(url).path.rstrip("/").rsplit("/", 1)[-1]
    match = _IMAGE_EXTENSION_RE.search(filename)
    return match.group(0) if match else _DEFAULT_EXTENSION


def _local_path(downloads_dir: Path, index: int, extension: str) -> Path:
    # Two pairs can land in the same millisecond with the same index when
    # they come from different comments; advance the clock part until free.
    millis = int(time.time() * 1000)
    path = downloads_dir / f"image-{millis}-{index}{extension}"
    while path.exists():
        millis += 1
        path = downloads_dir / f"image-{millis}-{index}{extension}"
    return path


def _download_one(client: PlatformClient, signed_url: str, local_path: Path) -> None:
    try:
        data = client.download(signed_url)
        local_path.write_bytes(data)
    except (PlatformRequestError, OSError) as e:
        raise AttachmentIOError(str(e)) from e


def download_comment_images(
    client: PlatformClient,
    owner: str,
    repo: str,
    comments: list[CommentWithImages],
    server_url: str,
    downloads_dir: str = DEFAULT_DOWNLOADS_DIR,
    url_map: dict[str, str] | None = None,
) -> dict[str, str]:
    """Download every attachment referenced by ``comments``.

    Returns a mapping of original attachment URL to local file path. Passing
    an existing ``url_map`` extends it in place; URLs already present are
    never downloaded again or overwritten.

    Comments and images are processed one at a time. A comment whose HTML
    cannot be rendered, or an image that fails to download, is logged and
    skipped without affecting the others.
    """
    url_to_path = url_map if url_map is not None else {}
    target_dir = Path(downloads_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    image_pattern = build_image_pattern(server_url, client.platform_kind)
    signed_pattern = build_signed_url_pattern(server_url, client.platform_kind)

    with_images: list[tuple[CommentWithImages, list[str]]] = []
    for comment in comments:
        urls = extract_image_urls(comment.body, image_pattern)
        if urls:
            with_images.append((comment, urls))
            logger.info("Found %d image(s) in %s %s", len(urls), comment.kind, comment.ref)

    for comment, urls in with_images:
        try:
            body_html = client.render_body_html(owner, repo, comment)
        except UnsupportedCapabilityError as e:
            logger.info("Skipping images in %s %s: %s", comment.kind, comment.ref, e)
            continue
        except PlatformRequestError as e:
            logger.error("Failed to process images for %s %s: %s", comment.kind, comment.ref, e)
            continue

        if not body_html:
            logger.warning("No HTML body found for %s %s", comment.kind, comment.ref)
            continue

        signed_urls = extract_signed_urls(body_html, signed_pattern)
        if len(signed_urls) != len(urls):
            logger.debug(
                "%s %s: %d image link(s) but %d resolved URL(s); pairing the first %d",
                comment.kind,
                comment.ref,
                len(urls),
                len(signed_urls),
                min(len(urls), len(signed_urls)),
            )

        for i, (original_url, signed_url) in enumerate(zip(urls, signed_urls)):
            if original_url in url_to_path:
                continue

            local_path = _local_path(target_dir, i, get_image_extension(original_url))
            logger.info("Downloading %s...", original_url)
            try:
                _download_one(client, signed_url, local_path)
            except AttachmentIOError as e:
                logger.error("Failed to download %s: %s", original_url, e)
                continue

            url_to_path[original_url] = str(local_path)
            logger.info("Saved: %s", local_path)

    return url_to_path
