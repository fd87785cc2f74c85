from __future__ import annotations

from io import BytesIO

from PIL import Image, UnidentifiedImageError

from src.domain.errors import ValidationError


def ensure_image(data: bytes, max_bytes: int) -> None:
    """Raise ValidationError unless ``data`` decodes as an image."""
    # Oversized uploads are classified by the storage layer
    if len(data) > max_bytes:
        return
    try:
        Image.open(BytesIO(data)).verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValidationError(f"Invalid image file: {exc}") from exc
