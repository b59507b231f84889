"""
Image processing for uploads.
Normalizes orientation, re-encodes to progressive JPEG and bounds the size.
"""
import io
import logging
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
HEIC_CONTENT_TYPES = {"image/heic", "image/heif"}

# Admin gallery uploads favour speed, the generic image upload favours quality
GALLERY_MAX_DIMENSION = 1200
GALLERY_JPEG_QUALITY = 75
IMAGE_MAX_DIMENSION = 1920
IMAGE_JPEG_QUALITY = 85


class ImageProcessingError(ValueError):
    """Raised when an upload cannot be decoded or re-encoded."""


def is_heic(filename: Optional[str], content_type: Optional[str]) -> bool:
    if content_type and content_type.lower() in HEIC_CONTENT_TYPES:
        return True
    return bool(filename) and filename.lower().endswith((".heic", ".heif"))


def validate_upload(filename: Optional[str], content_type: Optional[str], size: int, max_size: int) -> None:
    """
    Check size and type of an upload before decoding it.

    Raises:
        ImageProcessingError: If the file is too large, HEIC, or not JPEG/PNG/WebP
    """
    if size > max_size:
        raise ImageProcessingError(
            f"File size exceeds {max_size // (1024 * 1024)}MB limit. "
            f"Current size: {size / 1024 / 1024:.2f}MB"
        )
    if size == 0:
        raise ImageProcessingError("Uploaded file is empty")
    if is_heic(filename, content_type):
        raise ImageProcessingError(
            "HEIC files are not supported. Convert the photo to JPEG on the client or upload JPG/PNG/WebP."
        )
    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise ImageProcessingError(
            "Unsupported file type. Only JPG, PNG, and WebP are allowed."
        )


def process_image(
    image_bytes: bytes,
    max_dimension: int = IMAGE_MAX_DIMENSION,
    quality: int = IMAGE_JPEG_QUALITY,
) -> bytes:
    """
    Re-encode image bytes as a progressive JPEG.

    Args:
        image_bytes: Original image file bytes
        max_dimension: Longest side after downscaling; smaller images are not enlarged
        quality: JPEG quality (0-100)

    Returns:
        bytes: JPEG bytes

    Raises:
        ImageProcessingError: If the image cannot be identified or encoded
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except Image.DecompressionBombError as e:
        logger.warning(f"Rejected oversized image: {str(e)}")
        raise ImageProcessingError("Image dimensions are too large") from e
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Cannot identify image format: {str(e)}")
        raise ImageProcessingError("Image could not be decoded") from e

    try:
        # Rotate according to the EXIF orientation tag
        image = ImageOps.exif_transpose(image)

        # JPEG has no alpha channel: flatten transparency onto white
        if image.mode in ("RGBA", "LA", "P"):
            image = image.convert("RGBA")
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.getchannel("A"))
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")

        width, height = image.size
        if width > max_dimension or height > max_dimension:
            if width >= height:
                new_width = max_dimension
                new_height = max(1, int(height * (max_dimension / width)))
            else:
                new_height = max_dimension
                new_width = max(1, int(width * (max_dimension / height)))

            logger.info(
                f"Downscaling image from {width}x{height} to {new_width}x{new_height} "
                f"(max dimension: {max_dimension})"
            )
            image = image.resize((new_width, new_height), Image.Resampling.LANCZOS)

        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality, progressive=True, optimize=True)
        jpeg_bytes = buffer.getvalue()
    except (OSError, ValueError) as e:
        logger.error(f"Error re-encoding image to JPEG: {str(e)}", exc_info=True)
        raise ImageProcessingError(f"Image processing failed: {str(e)}") from e

    logger.info(
        f"Processed image to JPEG: {len(image_bytes):,} bytes → {len(jpeg_bytes):,} bytes "
        f"(quality={quality})"
    )
    return jpeg_bytes
