"""
Receipt QR decoding with image-enhancement fallbacks.

Receipt photos are often dim or low contrast. Each stage re-opens the
original image, applies one fixed enhancement and tries to decode. The
first stage that yields a payload wins; a failing stage never stops the
ones after it. Everything happens in memory.
"""

from collections.abc import Callable
from dataclasses import dataclass
from io import BytesIO

import cv2
import numpy as np
from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from ..logging import get_logger

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = (
    "QR код не найден ни одним из методов обработки. "
    "Сфотографируйте чек четче, при хорошем освещении "
    "и так, чтобы QR код целиком попал в кадр."
)

EDGE_KERNEL = (-1, -1, -1, -1, 8, -1, -1, -1, -1)


@dataclass(frozen=True)
class DecodeStage:
    name: str
    transform: Callable[[Image.Image], Image.Image]


@dataclass
class DecodeResult:
    success: bool
    data: str | None = None
    method: int | None = None
    method_name: str | None = None
    error: str | None = None


def _threshold(image: Image.Image, level: int) -> Image.Image:
    return image.point(lambda p: 255 if p >= level else 0)


def original(image: Image.Image) -> Image.Image:
    return image


def contrast_sharpen(image: Image.Image) -> Image.Image:
    image = image.convert("RGB")
    image = ImageEnhance.Brightness(image).enhance(1.1)
    image = ImageEnhance.Color(image).enhance(0.8)
    return image.filter(ImageFilter.SHARPEN)


def binary_threshold(image: Image.Image) -> Image.Image:
    return _threshold(image.convert("L"), 128)


def adaptive_normalize(image: Image.Image) -> Image.Image:
    """Stretch the grey levels to the full range."""
    return ImageOps.autocontrast(image.convert("L"))


def edge_enhance(image: Image.Image) -> Image.Image:
    return image.convert("L").filter(ImageFilter.Kernel((3, 3), EDGE_KERNEL, scale=1))


def blur_threshold(image: Image.Image) -> Image.Image:
    blurred = image.convert("L").filter(ImageFilter.GaussianBlur(radius=0.5))
    return _threshold(blurred, 100)


# Cheap and most likely to succeed first
DEFAULT_STAGES: list[DecodeStage] = [
    DecodeStage("Оригинал", original),
    DecodeStage("Контраст + резкость", contrast_sharpen),
    DecodeStage("Черно-белое пороговое", binary_threshold),
    DecodeStage("Адаптивное пороговое", adaptive_normalize),
    DecodeStage("Улучшение краев", edge_enhance),
    DecodeStage("Морфологические операции", blur_threshold),
]


def decode_qr(image: Image.Image) -> str | None:
    """Locate and decode one QR symbol with OpenCV."""
    pixels = np.asarray(image.convert("L"))
    data, _points, _straight = cv2.QRCodeDetector().detectAndDecode(pixels)
    return data or None


class QrDecoder:
    """Runs the enhancement stages in order until one decodes."""

    def __init__(
        self,
        stages: list[DecodeStage] | None = None,
        decode: Callable[[Image.Image], str | None] = decode_qr,
    ):
        self.stages = list(stages) if stages is not None else list(DEFAULT_STAGES)
        self.decode = decode

    def decode_bytes(self, data: bytes, filename: str = "") -> DecodeResult:
        logger.info(f"Decoding QR image {filename or '<upload>'} ({len(data)} bytes)")

        for index, stage in enumerate(self.stages, start=1):
            try:
                with Image.open(BytesIO(data)) as image:
                    image.load()
                    payload = self.decode(stage.transform(image.copy()))
            except Exception as e:
                logger.debug(f"Stage {index}/{len(self.stages)} ({stage.name}) failed: {e}")
                continue

            if payload and payload.strip():
                logger.info(f"QR decoded by stage {index} ({stage.name})")
                return DecodeResult(
                    success=True,
                    data=payload,
                    method=index,
                    method_name=stage.name,
                )
            logger.debug(f"Stage {index}/{len(self.stages)} ({stage.name}) found no QR code")

        logger.info("No stage could decode a QR code")
        return DecodeResult(success=False, error=NOT_FOUND_MESSAGE)
