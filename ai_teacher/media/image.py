"""作业照片的压缩与编码。

所有图片统一重新编码为 JPEG，压缩质量固定，不提供配置项。
"""

import base64
import io

from PIL import Image, UnidentifiedImageError

from ai_teacher.domain.exceptions import InvalidImageError

JPEG_MIME_TYPE = "image/jpeg"
JPEG_QUALITY = 50


def compress_to_jpeg(image_bytes: bytes) -> bytes:
    """把任意 Pillow 可识别的图片转为 JPEG 字节。"""

    if not image_bytes:
        raise InvalidImageError(code="INVALID_IMAGE", message="empty image")
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            # JPEG 不支持透明通道
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(code="INVALID_IMAGE", message=str(e))
    out = io.BytesIO()
    rgb.save(out, format="JPEG", quality=JPEG_QUALITY)
    return out.getvalue()


def encode_jpeg_base64(image_bytes: bytes) -> str:
    """压缩后做 base64 编码，返回 ASCII 字符串。"""

    return base64.b64encode(compress_to_jpeg(image_bytes)).decode("ascii")


def jpeg_data_url(b64: str) -> str:
    return f"data:{JPEG_MIME_TYPE};base64,{b64}"
