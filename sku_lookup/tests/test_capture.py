from types import SimpleNamespace

import pytest
import pytesseract
from PIL import Image

from sku_lookup import capture
from sku_lookup.capture import CaptureError, decode_barcode, enhance_for_ocr, load_image, recognize_text


def _two_tone(left, right, size=(20, 10)):
    im = Image.new("RGB", size, left)
    im.paste(Image.new("RGB", (size[0] // 2, size[1]), right), (size[0] // 2, 0))
    return im


def test_enhance_is_binary_grayscale():
    out = enhance_for_ocr(_two_tone((10, 10, 10), (240, 240, 240)))
    assert out.mode == "L"
    assert set(out.getdata()) == {0, 255}


def test_enhance_stretches_low_contrast():
    # both halves are below the threshold before stretching
    out = enhance_for_ocr(_two_tone((100, 100, 100), (120, 120, 120)))
    assert out.getpixel((0, 0)) == 0
    assert out.getpixel((19, 0)) == 255


def test_enhance_upscales():
    out = enhance_for_ocr(Image.new("RGB", (30, 10), "white"), scale=2.0)
    assert out.size == (60, 20)


def test_recognize_text(monkeypatch):
    seen = {}

    def fake(image, lang):
        seen["lang"] = lang
        return "UGS 1234567\n"

    monkeypatch.setattr(pytesseract, "image_to_string", fake)
    assert recognize_text(Image.new("L", (5, 5)), lang="fra") == "UGS 1234567\n"
    assert seen["lang"] == "fra"


def test_recognize_text_without_tesseract(monkeypatch):
    def fake(image, lang):
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(pytesseract, "image_to_string", fake)
    with pytest.raises(CaptureError):
        recognize_text(Image.new("L", (5, 5)))


def test_decode_barcode_first_payload(monkeypatch):
    results = [
        SimpleNamespace(type="EAN13", data=b""),
        SimpleNamespace(type="EAN13", data=b"0123456789012"),
        SimpleNamespace(type="CODE128", data=b"ABC-1"),
    ]
    monkeypatch.setattr(capture, "_decode_symbols", lambda image: results)
    assert decode_barcode(Image.new("L", (5, 5))) == "0123456789012"


def test_decode_barcode_nothing(monkeypatch):
    monkeypatch.setattr(capture, "_decode_symbols", lambda image: [])
    assert decode_barcode(Image.new("L", (5, 5))) is None


def test_load_image(tmp_path):
    path = tmp_path / "label.png"
    Image.new("RGB", (8, 4), "white").save(path)
    assert load_image(path).size == (8, 4)


def test_load_image_errors(tmp_path):
    with pytest.raises(CaptureError):
        load_image(tmp_path / "missing.png")
    bad = tmp_path / "bad.png"
    bad.write_text("not an image")
    with pytest.raises(CaptureError):
        load_image(bad)
