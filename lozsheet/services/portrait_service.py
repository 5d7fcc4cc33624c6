"""
Portrait ingest: shrink an uploaded image to a data URL small enough to
live in local storage. The rest of the sheet treats the result as an
opaque string.
"""

import base64
import io
import logging
import mimetypes
from pathlib import Path
from typing import Protocol, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from lozsheet.config import PORTRAIT_MAX_DIMENSION, PORTRAIT_QUALITY

logger = logging.getLogger(__name__)


class NotAnImageError(ValueError):
    """The chosen file is not an image."""


class ImageIngestor(Protocol):
    def ingest(self, source: Union[str, Path]) -> str: ...


def to_data_url(raw: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


class PortraitIngestor:
    def __init__(
        self,
        max_dimension: int = PORTRAIT_MAX_DIMENSION,
        quality: float = PORTRAIT_QUALITY,
    ):
        self.max_dimension = max_dimension
        self.quality = quality

    def ingest(self, source: Union[str, Path]) -> str:
        """
        Return a size-bounded data URL for the image at `source`.
        Falls back to the original bytes when decoding/encoding fails.
        Raises NotAnImageError for files that are clearly not images.
        """
        path = Path(source)
        mime = mimetypes.guess_type(path.name)[0] or ""
        if not mime.startswith("image/"):
            raise NotAnImageError(f"{path.name} is not an image")

        raw = path.read_bytes()
        try:
            return self._shrink(raw)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Portrait resize failed for {path.name}, keeping original: {e}")
            return to_data_url(raw, mime)

    def _shrink(self, raw: bytes) -> str:
        with Image.open(io.BytesIO(raw)) as img:
            img = ImageOps.exif_transpose(img)
            img.thumbnail(
                (self.max_dimension, self.max_dimension),
                Image.Resampling.LANCZOS,
            )

            buf = io.BytesIO()
            try:
                if _has_alpha(img):
                    # JPEG would flatten transparency onto black.
                    img.save(buf, format="PNG", optimize=True)
                    mime = "image/png"
                else:
                    if img.mode != "RGB":
                        img = img.convert("RGB")
                    img.save(buf, format="JPEG", quality=int(round(self.quality * 100)))
                    mime = "image/jpeg"
                return to_data_url(buf.getvalue(), mime)
            finally:
                buf.close()


def _has_alpha(img: Image.Image) -> bool:
    if img.mode in ("RGBA", "LA"):
        return True
    return img.mode == "P" and "transparency" in img.info
