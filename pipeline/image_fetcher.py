"""
Listing image fetcher

Downloads listing images one at a time and encodes them as inline base64
blocks for the Claude Messages API. Images that exceed the API size limit
are shrunk with Pillow; images that fail to download are skipped.
"""

import base64
import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from PIL import Image

from config import ImageConfig

logger = logging.getLogger(__name__)


@dataclass
class FetchedImage:
    """Container for a fetched image"""
    url: str
    data: str  # base64 encoded
    media_type: str
    success: bool
    error: Optional[str] = None

    def to_content_block(self) -> Dict[str, Any]:
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": self.media_type,
                "data": self.data,
            },
        }


def detect_media_type(content_type: Optional[str]) -> str:
    """Map a Content-Type header to a media type the model accepts."""
    content_type = (content_type or "").lower()
    if "png" in content_type:
        return "image/png"
    if "gif" in content_type:
        return "image/gif"
    if "webp" in content_type:
        return "image/webp"
    return "image/jpeg"


def compress_image(image_data: bytes, media_type: str, max_bytes: int) -> Tuple[bytes, str]:
    """
    Compress image if it exceeds max_bytes.
    Returns (compressed_data, media_type)
    """
    if len(image_data) <= max_bytes:
        return image_data, media_type

    try:
        original_size = len(image_data)
        img = Image.open(io.BytesIO(image_data))

        # JPEG has no alpha channel
        if img.mode == 'RGBA':
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[3])
            img = background
        elif img.mode != 'RGB':
            img = img.convert('RGB')

        for scale in [1.0, 0.75, 0.6, 0.5, 0.4, 0.3]:
            new_width = int(img.width * scale)
            new_height = int(img.height * scale)

            # Logos need detail; stop shrinking below 600px on the longest side
            if max(new_width, new_height) < 600 and scale < 1.0:
                break

            resized = img if scale == 1.0 else img.resize((new_width, new_height), Image.Resampling.LANCZOS)
            for quality in [85, 70, 55, 40]:
                buffer = io.BytesIO()
                resized.save(buffer, format='JPEG', quality=quality, optimize=True)
                compressed_data = buffer.getvalue()

                if len(compressed_data) <= max_bytes:
                    logger.info(f"[IMAGES] Compressed {original_size/1024/1024:.1f}MB -> "
                                f"{len(compressed_data)/1024/1024:.1f}MB ({new_width}x{new_height}, q={quality})")
                    return compressed_data, 'image/jpeg'

        logger.warning(f"[IMAGES] Could not compress {original_size/1024/1024:.1f}MB image under limit")
        return image_data, media_type

    except Exception as e:
        logger.error(f"[IMAGES] Compression failed: {e}")
        return image_data, media_type


async def fetch_single_image(client: httpx.AsyncClient, url: str, config: ImageConfig) -> FetchedImage:
    """Fetch one image, compressing if too large"""
    try:
        response = await client.get(url, timeout=config.timeout)
        response.raise_for_status()

        media_type = detect_media_type(response.headers.get('content-type'))
        image_data = response.content
        if not image_data:
            return FetchedImage(url=url, data="", media_type="", success=False, error="Empty body")

        if len(image_data) > config.max_raw_bytes:
            image_data, media_type = compress_image(image_data, media_type, config.max_raw_bytes)

        img_data = base64.b64encode(image_data).decode('utf-8')

        if len(img_data) > config.max_base64_bytes:
            return FetchedImage(url=url, data="", media_type="", success=False,
                                error="Too large even after compression")

        return FetchedImage(url=url, data=img_data, media_type=media_type, success=True)

    except httpx.TimeoutException:
        return FetchedImage(url=url, data="", media_type="", success=False, error="Timeout")
    except httpx.HTTPStatusError as e:
        return FetchedImage(url=url, data="", media_type="", success=False,
                            error=f"HTTP {e.response.status_code}")
    except httpx.HTTPError as e:
        return FetchedImage(url=url, data="", media_type="", success=False, error=str(e)[:80])
    except (httpx.InvalidURL, ValueError) as e:
        return FetchedImage(url=url, data="", media_type="", success=False,
                            error=f"Invalid URL: {e}"[:80])


async def fetch_listing_images(
    client: httpx.AsyncClient,
    urls: Sequence[str],
    config: ImageConfig,
    max_images: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch up to max_images listing images sequentially.

    Returns list of Claude-compatible image dicts:
    [{"type": "image", "source": {"type": "base64", "media_type": "...", "data": "..."}}]
    """
    if max_images is None:
        max_images = config.max_images
    valid_urls = []
    for url in urls:
        if not isinstance(url, str):
            continue
        if url.startswith('//'):
            url = 'https:' + url
        if url.startswith('http'):
            valid_urls.append(url)
    valid_urls = valid_urls[:max_images]

    images = []
    for url in valid_urls:
        result = await fetch_single_image(client, url, config)
        if result.success:
            images.append(result.to_content_block())
        else:
            logger.debug(f"[IMAGES] Failed: {url} - {result.error}")

    if valid_urls:
        logger.info(f"[IMAGES] Fetched {len(images)}/{len(valid_urls)} images")
    return images
