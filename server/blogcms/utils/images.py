"""
图片处理工具 (Pillow)

- resize_if_needed: 超过最大边长时等比缩小
- fit_to_target: 最长边缩放到目标尺寸 (Logo)
- encode_image: 按扩展名编码
- convert_image: 转换已有图片的格式
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# 扩展名 -> Pillow 格式
PIL_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
    "bmp": "BMP",
}


def decode_image(data: bytes) -> Optional[Image.Image]:
    """解码图片，非光栅格式 (如 SVG) 返回 None"""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"图片解码失败: {e}")
        return None


def resize_if_needed(image: Image.Image, max_size: int) -> Image.Image:
    """宽或高超过 max_size 时按 min(max/w, max/h) 等比缩小"""
    width, height = image.size
    if width <= max_size and height <= max_size:
        return image
    scale = min(max_size / width, max_size / height)
    new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return image.resize(new_size, Image.Resampling.LANCZOS)


def fit_to_target(image: Image.Image, target_size: int) -> Image.Image:
    """最长边缩放到 target_size (可放大)，保持宽高比"""
    width, height = image.size
    if width > height:
        new_size = (target_size, max(1, int(height / width * target_size)))
    else:
        new_size = (max(1, int(width / height * target_size)), target_size)
    if new_size == (width, height):
        return image
    return image.resize(new_size, Image.Resampling.LANCZOS)


def encode_image(image: Image.Image, extension: str) -> bytes:
    """按扩展名编码，未知扩展名沿用原格式"""
    fmt = PIL_FORMATS.get(extension.lower().lstrip("."), image.format or "PNG")
    if fmt == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def process_image(
    data: bytes,
    extension: str,
    max_size: Optional[int] = None,
    target_size: Optional[int] = None,
) -> Tuple[bytes, Optional[Tuple[int, int]]]:
    """
    缩放并重新编码图片

    Args:
        data: 原始字节
        extension: 输出扩展名
        max_size: 最大边长 (只缩小)
        target_size: 目标边长 (缩放到该尺寸)

    Returns:
        (输出字节, (宽, 高))；无法解码时原样返回字节，尺寸为 None
    """
    image = decode_image(data)
    if image is None:
        return data, None

    if target_size:
        image = fit_to_target(image, target_size)
    elif max_size:
        image = resize_if_needed(image, max_size)

    try:
        return encode_image(image, extension), image.size
    except (OSError, ValueError, KeyError) as e:
        logger.warning(f"图片编码失败，保存原始数据: {e}")
        return data, image.size


def convert_image(data: bytes, extension: str) -> Optional[bytes]:
    """重新编码为 extension 对应格式，无法解码时返回 None"""
    image = decode_image(data)
    if image is None:
        return None
    return encode_image(image, extension)
