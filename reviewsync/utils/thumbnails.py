"""
Reviewer thumbnail pipeline.

Downloads a reviewer's avatar once per stable user id and stores it as two
square WebP files: a base size and a 2x variant for high-density displays.
"""

import io
import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlparse

from PIL import Image, ImageOps

from reviewsync.utils.exceptions import TransportError
from reviewsync.utils.transport import HttpResponse, Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePaths:
    directory: str
    path_1x: str
    path_2x: str

    def exist(self) -> bool:
        return os.path.exists(self.path_1x) and os.path.exists(self.path_2x)


class ThumbnailPipeline:
    """
    Fetch, resize and encode reviewer avatars.

    acquire() never raises: any failure is logged and reported as False so
    the review itself can still be saved without a thumbnail.
    """

    def __init__(
        self,
        images_dir: str,
        transport: Transport,
        timeout_seconds: float = 30,
        size: int = 48,
        size_2x: int = 96,
        quality: int = 80,
        max_redirects: int = 5
    ):
        """
        Initialize thumbnail pipeline.

        Args:
            images_dir: Output directory for <userId>.webp / <userId>@2x.webp
            transport: Network transport (redirects are handled here)
            timeout_seconds: Per-request timeout
            size: Base edge length in pixels
            size_2x: High-density edge length in pixels
            quality: WebP quality (0-100)
            max_redirects: Redirect hops before giving up
        """
        self.images_dir = str(images_dir)
        self.transport = transport
        self.timeout_seconds = timeout_seconds
        self.size = size
        self.size_2x = size_2x
        self.quality = quality
        self.max_redirects = max_redirects

    def image_paths(self, user_id: str) -> ImagePaths:
        return ImagePaths(
            directory=self.images_dir,
            path_1x=os.path.join(self.images_dir, f"{user_id}.webp"),
            path_2x=os.path.join(self.images_dir, f"{user_id}@2x.webp"),
        )

    def acquire(self, photo_url: Optional[str], user_id: Optional[str]) -> bool:
        """
        Make sure both thumbnails exist for a user.

        Args:
            photo_url: Source avatar URL
            user_id: Stable user id (used as the file name)

        Returns:
            True if both files exist afterwards
        """
        if not photo_url or not user_id:
            return False

        paths = self.image_paths(user_id)
        if paths.exist():
            return True

        if not self._is_fetchable(photo_url):
            logger.debug(f"Unusable photo URL for {user_id}: {photo_url!r}")
            return False

        try:
            content = self._download(photo_url)
        except (TransportError, ValueError) as e:
            logger.warning(f"Failed to download image for {user_id}: {e}")
            return False

        if content is None:
            return False

        try:
            os.makedirs(paths.directory, exist_ok=True)
            self.process_image(content, paths)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning(f"Failed to process image for {user_id}: {e}")
            self._remove_partial(paths)
            return False

        return True

    def process_image(self, content: bytes, paths: ImagePaths) -> None:
        """Decode image bytes and write both resized WebP files."""
        with Image.open(io.BytesIO(content)) as image:
            image.load()
            image = self._normalize_mode(image)
            for edge, path in ((self.size, paths.path_1x), (self.size_2x, paths.path_2x)):
                resized = ImageOps.fit(image, (edge, edge), method=Image.LANCZOS)
                resized.save(path, format="WEBP", quality=self.quality)

    def _download(self, url: str) -> Optional[bytes]:
        """
        GET the image, following redirects up to max_redirects hops.

        Returns:
            Body bytes, or None on a non-2xx status, a malformed redirect,
            or too many redirects
        """
        current = url
        for _ in range(self.max_redirects + 1):
            response: HttpResponse = self.transport.get(current, self.timeout_seconds)
            if response.is_redirect:
                try:
                    current = urljoin(current, response.location)
                except ValueError:
                    logger.warning(f"Invalid redirect location from {current}: {response.location!r}")
                    return None
                continue
            if not response.ok:
                logger.debug(f"Image request returned HTTP {response.status_code}: {current}")
                return None
            return response.content

        logger.warning(f"Too many redirects fetching {url}")
        return None

    @staticmethod
    def _is_fetchable(url: str) -> bool:
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    @staticmethod
    def _normalize_mode(image: Image.Image) -> Image.Image:
        if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
            return image.convert("RGBA")
        return image.convert("RGB")

    @staticmethod
    def _remove_partial(paths: ImagePaths) -> None:
        for path in (paths.path_1x, paths.path_2x):
            if os.path.exists(path):
                os.remove(path)
