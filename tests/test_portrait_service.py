import base64
import io

import pytest
from PIL import Image

from lozsheet.services.portrait_service import NotAnImageError, PortraitIngestor


def decode(data_url):
    header, payload = data_url.split(",", 1)
    return header, base64.b64decode(payload)


def test_large_photo_is_shrunk_to_jpeg(tmp_path):
    path = tmp_path / "hero.jpg"
    Image.new("RGB", (1000, 500), (30, 120, 60)).save(path, format="JPEG")

    header, raw = decode(PortraitIngestor().ingest(path))

    assert header == "data:image/jpeg;base64"
    with Image.open(io.BytesIO(raw)) as img:
        assert img.size == (420, 210)


def test_transparent_image_stays_png(tmp_path):
    path = tmp_path / "fairy.png"
    Image.new("RGBA", (600, 600), (255, 0, 255, 128)).save(path, format="PNG")

    header, raw = decode(PortraitIngestor().ingest(path))

    assert header == "data:image/png;base64"
    with Image.open(io.BytesIO(raw)) as img:
        assert img.size == (420, 420)
        assert img.mode == "RGBA"


def test_small_image_is_not_enlarged(tmp_path):
    path = tmp_path / "tiny.png"
    Image.new("RGB", (40, 30)).save(path, format="PNG")

    header, raw = decode(PortraitIngestor().ingest(path))

    assert header == "data:image/jpeg;base64"
    with Image.open(io.BytesIO(raw)) as img:
        assert img.size == (40, 30)


def test_undecodable_image_falls_back_to_original_bytes(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"definitely not a png")

    header, raw = decode(PortraitIngestor().ingest(path))

    assert header == "data:image/png;base64"
    assert raw == b"definitely not a png"


def test_non_image_is_rejected(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    with pytest.raises(NotAnImageError):
        PortraitIngestor().ingest(path)
