from __future__ import annotations

import logging
from pathlib import Path

import pytesseract
from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

OCR_THRESHOLD = 128

# Symbologies printed on shelf labels and packaging
BARCODE_SYMBOLS = ("EAN13", "EAN8", "UPCA", "UPCE", "CODE128")


class CaptureError(RuntimeError):
    pass


def load_image(path: str | Path) -> Image.Image:
    p = Path(path)
    if not p.exists():
        raise CaptureError(f"Image not found: {p}")
    try:
        with Image.open(p) as im:
            im.load()
            return im.copy()
    except (UnidentifiedImageError, OSError) as exc:
        raise CaptureError(f"Cannot read image {p}: {exc}") from exc


def enhance_for_ocr(image: Image.Image, *, scale: float = 1.0, threshold: int = OCR_THRESHOLD) -> Image.Image:
    """Prepare a captured frame for text recognition.

    Optional upscale, grayscale (ITU-R 601 luma: 0.299 R + 0.587 G + 0.114 B),
    linear contrast stretch, then binarization at *threshold*.
    """
    im = image
    if scale and scale != 1.0:
        w, h = im.size
        im = im.resize((max(1, round(w * scale)), max(1, round(h * scale))), Image.LANCZOS)

    gray = im.convert("RGB").convert("L")
    stretched = ImageOps.autocontrast(gray, cutoff=0)
    return stretched.point(lambda v: 255 if v > threshold else 0)


def recognize_text(image: Image.Image, *, lang: str = "fra+eng") -> str:
    """Run Tesseract over *image* and return the raw text."""
    try:
        text = pytesseract.image_to_string(image, lang=lang)
    except pytesseract.TesseractNotFoundError as exc:
        raise CaptureError("Tesseract is not installed or not on PATH") from exc
    except pytesseract.TesseractError as exc:
        raise CaptureError(f"Text recognition failed: {exc}") from exc
    logger.debug("recognized %d chars", len(text))
    return text


def _decode_symbols(image: Image.Image) -> list:
    # pyzbar loads the zbar shared library at import time
    try:
        from pyzbar.pyzbar import ZBarSymbol, decode
    except ImportError as exc:
        raise CaptureError("Barcode decoding needs pyzbar and the zbar library") from exc

    symbols = [getattr(ZBarSymbol, name) for name in BARCODE_SYMBOLS]
    return decode(image, symbols=symbols)


def decode_barcode(image: Image.Image) -> str | None:
    """Return the first EAN/UPC/Code128 payload found in *image*."""
    for result in _decode_symbols(image):
        data = (result.data or b"").decode("utf-8", errors="ignore").strip()
        if data:
            logger.debug("decoded %s barcode %s", result.type, data)
            return data
    return None
