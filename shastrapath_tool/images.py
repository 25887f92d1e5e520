"""Image attachments for table rows: validation and cropping with Pillow."""
from __future__ import annotations

import io
import logging
import mimetypes
import uuid
from dataclasses import replace

from PIL import Image, UnidentifiedImageError

from .errors import WorkbenchInputError
from .models import CropRegion, ImageRecord

LOGGER = logging.getLogger(__name__)


def _infer_mime_from_name(name: str) -> str:
    return mimetypes.guess_type(name or "")[0] or "image/png"


def load_image(data: bytes, filename: str) -> ImageRecord:
    """Build an :class:`ImageRecord` from uploaded bytes after checking they decode."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise WorkbenchInputError(f"{filename or 'image'} is not a readable image: {exc}") from exc
    return ImageRecord(
        image_id=uuid.uuid4().hex,
        filename=filename or "image",
        mime=_infer_mime_from_name(filename),
        original_data=bytes(data),
    )


def _pixel_box(region: CropRegion, width: int, height: int) -> tuple[int, int, int, int]:
    if region.unit == "%":
        x, y = region.x * width / 100.0, region.y * height / 100.0
        w, h = region.width * width / 100.0, region.height * height / 100.0
    elif region.unit == "px":
        x, y, w, h = region.x, region.y, region.width, region.height
    else:
        raise WorkbenchInputError(f"Unknown crop unit: {region.unit!r}")
    left = max(0, min(int(round(x)), width))
    top = max(0, min(int(round(y)), height))
    right = max(left, min(int(round(x + w)), width))
    bottom = max(top, min(int(round(y + h)), height))
    return left, top, right, bottom


def crop_bytes(data: bytes, region: CropRegion) -> bytes:
    """Crop ``data`` to ``region`` (clamped to the image) and return PNG bytes."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            box = _pixel_box(region, img.width, img.height)
            if box[2] <= box[0] or box[3] <= box[1]:
                raise WorkbenchInputError("Crop region is empty")
            cropped = img.crop(box)
            out = io.BytesIO()
            cropped.save(out, format="PNG")
    except (UnidentifiedImageError, OSError) as exc:
        raise WorkbenchInputError(f"Cannot crop image: {exc}") from exc
    LOGGER.debug("Cropped image to box %s", box)
    return out.getvalue()


def crop_image(record: ImageRecord, region: CropRegion) -> ImageRecord:
    """Return ``record`` with a committed crop; the original bytes are kept."""
    return replace(record, cropped_data=crop_bytes(record.original_data, region), crop_region=region)
