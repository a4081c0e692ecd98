import base64
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

COVER_SIZE = (600, 900)
COVER_QUALITY = 85


def encode_cover(image_bytes: Optional[bytes]) -> Optional[str]:
    """Shrink an embedded cover and return it as an inline data URI."""
    if not image_bytes:
        return None
    try:
        img = Image.open(BytesIO(image_bytes)).convert("RGB")
    except (UnidentifiedImageError, OSError):
        return None
    img.thumbnail(COVER_SIZE)
    out = BytesIO()
    img.save(out, "JPEG", quality=COVER_QUALITY, optimize=True)
    return "data:image/jpeg;base64," + base64.b64encode(out.getvalue()).decode("ascii")

