"""Utility functions for turning stored images into thumbnails"""

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

THUMBNAIL_FORMAT = "JPEG"
THUMBNAIL_CONTENT_TYPE = "image/jpeg"


def build_thumbnail(
    image_data: bytes, fill: bool, width: int | None, height: int | None, quality: int = 85
) -> bytes | None:
    """
    Resize the image to the requested box and encode it as JPEG.

    With only a width or a height, the other side follows the aspect ratio.
    With both, the image is fit inside the box, or if fill is True, scaled and center-cropped to exactly fill it.
    Returns None if the data is not an image we can read.
    Raises ValueError if the image has more pixels than Pillow allows to decode (Image.MAX_IMAGE_PIXELS).
    """
    img = _load_image_from_bytes(image_data)
    if img is None:
        return None

    if width and height:
        if fill:
            img = ImageOps.fit(img, (width, height), method=Image.Resampling.LANCZOS)
        else:
            img = ImageOps.contain(img, (width, height), method=Image.Resampling.LANCZOS)
    elif width or height:
        img = img.resize(_scaled_size(img.size, width, height), Image.Resampling.LANCZOS)

    return _encode(img, THUMBNAIL_FORMAT, quality)


def _scaled_size(size: tuple[int, int], width: int | None, height: int | None) -> tuple[int, int]:
    src_width, src_height = size
    if width:
        return width, max(1, round(src_height * width / src_width))
    if height:
        return max(1, round(src_width * height / src_height)), height
    return size


def _load_image_from_bytes(image_data: bytes) -> Image.Image | None:
    """Loads an image from raw binary data into a PIL Image object."""
    try:
        img = Image.open(io.BytesIO(image_data))
        img.load()
    except Image.DecompressionBombError as e:
        raise ValueError(f"Image dimensions exceed the maximum of {Image.MAX_IMAGE_PIXELS} pixels") from e
    except (UnidentifiedImageError, OSError) as e:
        logging.info(f"Cannot read image data: {e}")
        return None

    # Respect the camera orientation, the EXIF data is lost when re-encoding
    img = ImageOps.exif_transpose(img)

    # Convert to RGB to ensure compatibility with JPEG compression (handles transparency)
    if img.mode != "RGB":
        img = img.convert("RGB")

    return img


def _encode(img: Image.Image, format: str, quality: int) -> bytes:
    output_buffer = io.BytesIO()
    img.save(output_buffer, format=format, quality=quality, optimize=True)
    return output_buffer.getvalue()
