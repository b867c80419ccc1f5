"""QR image renderer for PIX payloads."""
from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from typing import Callable

import qrcode
from PIL import Image

from .config import settings


@dataclass(frozen=True)
class QRRenderOptions:
    type: str = "png"
    quality: float = 0.92
    margin: int = 1
    dark: str = "#000000"
    light: str = "#FFFFFF"
    width: int = 256

    @classmethod
    def from_settings(cls) -> "QRRenderOptions":
        return cls(margin=settings.qr_margin, width=settings.qr_width)


Renderer = Callable[[str, QRRenderOptions], str]

_FORMATS = {"png": ("PNG", "image/png"), "jpeg": ("JPEG", "image/jpeg"), "webp": ("WEBP", "image/webp")}


def generate_qr_image(data: str, options: QRRenderOptions) -> Image.Image:
    """Generate a square QR image of ``options.width`` pixels."""

    qr = qrcode.QRCode(version=None, error_correction=qrcode.constants.ERROR_CORRECT_M, box_size=10, border=options.margin)
    qr.add_data(data)
    qr.make(fit=True)

    image = qr.make_image(fill_color=options.dark, back_color=options.light).convert("RGB")
    return image.resize((options.width, options.width), Image.Resampling.NEAREST)


def qr_image_to_bytes(image: Image.Image, options: QRRenderOptions) -> bytes:
    image_format, _ = _FORMATS[options.type]
    buffer = io.BytesIO()
    if image_format == "PNG":
        image.save(buffer, format=image_format)
    else:
        image.save(buffer, format=image_format, quality=round(options.quality * 100))
    return buffer.getvalue()


def render_qr_payload(payload: str, options: QRRenderOptions | None = None) -> str:
    """Render payload into a base64 data URL."""

    options = options or QRRenderOptions()
    if options.type not in _FORMATS:
        raise ValueError(f"Unsupported image type {options.type!r}")
    image = generate_qr_image(payload, options)
    _, mime = _FORMATS[options.type]
    encoded = base64.b64encode(qr_image_to_bytes(image, options)).decode("ascii")
    return f"data:{mime};base64,{encoded}"
