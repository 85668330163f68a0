"""
Preprocessing for the OpenAI edit endpoint: center the photo on a transparent
square canvas and build a matching fully transparent mask.
A transparent mask pixel means "edit here", so an all-transparent mask edits the whole image.
"""
import base64
import binascii
import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from app.services.image_generation.normalizer import IMAGE_PNG, split_data_uri, to_data_uri

logger = logging.getLogger(__name__)

# Largest square canvas built server-side (two RGBA buffers of this size per request)
MAX_CANVAS_DIM = 4096


class ImagePreprocessError(ValueError):
    """Source image could not be decoded or target size is invalid."""


@dataclass
class PreparedEditInputs:
    image: str  # PNG data URI, max_dim x max_dim
    mask: str  # PNG data URI, fully transparent
    size: int
    content_box: tuple[int, int, int, int]  # (left, top, width, height) of the pasted photo


def fit_within(width: int, height: int, max_dim: int) -> tuple[int, int]:
    """
    Scale (width, height) so the longest edge is at most max_dim, keeping aspect ratio.
    Never upscales.
    """
    ratio = width / height
    if width > height:
        if width > max_dim:
            width = max_dim
            height = max(1, round(max_dim / ratio))
    else:
        if height > max_dim:
            height = max_dim
            width = max(1, round(max_dim * ratio))
    return width, height


def _encode_png(img: Image.Image) -> str:
    buf = io.BytesIO()
    img.save(buf, "PNG")
    return to_data_uri(IMAGE_PNG, base64.b64encode(buf.getvalue()).decode("ascii"))


def decode_image(source: str) -> Image.Image:
    """Decode a data URI or bare base64 string into an RGBA image."""
    _, payload = split_data_uri(source or "")
    try:
        raw = base64.b64decode(payload, validate=True)
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (binascii.Error, ValueError, UnidentifiedImageError, OSError) as e:
        raise ImagePreprocessError(f"Failed to decode source image: {e}") from e
    return img.convert("RGBA")


def prepare_square_edit_inputs(source: str, max_dim: int = 1024) -> PreparedEditInputs:
    """
    Pad the source into a transparent max_dim x max_dim canvas (centered, aspect preserved)
    and create a transparent mask of the same size.

    Raises:
        ImagePreprocessError: source undecodable or max_dim outside 1..MAX_CANVAS_DIM
    """
    if max_dim <= 0:
        raise ImagePreprocessError(f"Target dimension must be positive, got {max_dim}")
    if max_dim > MAX_CANVAS_DIM:
        raise ImagePreprocessError(f"Target dimension {max_dim} exceeds {MAX_CANVAS_DIM}")

    img = decode_image(source)
    src_w, src_h = img.size
    w, h = fit_within(src_w, src_h, max_dim)
    if (w, h) != (src_w, src_h):
        img = img.resize((w, h), Image.LANCZOS)

    canvas = Image.new("RGBA", (max_dim, max_dim), (0, 0, 0, 0))
    x = (max_dim - w) // 2
    y = (max_dim - h) // 2
    canvas.paste(img, (x, y), img)

    mask = Image.new("RGBA", (max_dim, max_dim), (0, 0, 0, 0))

    logger.info(
        "edit_inputs_prepared",
        extra={"size": max_dim},
    )
    return PreparedEditInputs(
        image=_encode_png(canvas),
        mask=_encode_png(mask),
        size=max_dim,
        content_box=(x, y, w, h),
    )
