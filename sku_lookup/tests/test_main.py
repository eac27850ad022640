import json

from sku_lookup import main as cli
from sku_lookup.models import NavigationIntent, ProductRecord, StoreEntry
from sku_lookup.report import summary_text, write_json
from sku_lookup.stocktrack import FetchError


def _record(stores=True):
    return ProductRecord(
        name="Cahier Hilroy",
        sku="998877",
        price="$4.29",
        image_url="",
        stores=(
            StoreEntry(address="10 Rue Principale", distance="2 km", stock_level="7"),
            StoreEntry(address="1 Boul. Laurier", distance="12 km", stock_level=""),
        ) if stores else (),
    )


def test_version(capsys):
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == cli.__version__


def test_extract_prints_code(capsys):
    assert cli.main(["extract", "123456789012 UGS1234567"]) == 0
    assert capsys.readouterr().out.strip() == "1234567"


def test_extract_nothing_found(capsys):
    assert cli.main(["extract", "Prix $9.99"]) == 1
    assert "No product code found" in capsys.readouterr().out


def test_extract_from_file_with_candidates(tmp_path, capsys):
    f = tmp_path / "ocr.txt"
    f.write_text("Réf ABC12345\n4567\n", encoding="utf-8")
    assert cli.main(["extract", "--file", str(f), "--candidates"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0].startswith("1. ABC12345")
    assert out.strip().endswith("ABC12345")


def test_lookup(monkeypatch, capsys):
    monkeypatch.setattr(cli, "resolve", lambda code, *, client, lang: NavigationIntent(url=f"https://x/p/{code}", direct=True))
    assert cli.main(["lookup", "998877"]) == 0
    assert capsys.readouterr().out.strip() == "product: https://x/p/998877"


def test_stock_text(monkeypatch, capsys):
    monkeypatch.setattr(cli, "fetch_stock", lambda code, *, client: _record())
    assert cli.main(["stock", "998877"]) == 0
    out = capsys.readouterr().out
    assert "Cahier Hilroy" in out
    assert "10 Rue Principale" in out


def test_stock_json(monkeypatch, capsys):
    monkeypatch.setattr(cli, "fetch_stock", lambda code, *, client: _record())
    assert cli.main(["stock", "998877", "--json"]) == 0
    assert json.loads(capsys.readouterr().out)["sku"] == "998877"


def test_stock_not_found(monkeypatch, capsys):
    monkeypatch.setattr(cli, "fetch_stock", lambda code, *, client: None)
    assert cli.main(["stock", "000"]) == 1


def test_stock_fetch_error(monkeypatch, capsys):
    def boom(code, *, client):
        raise FetchError(500)

    monkeypatch.setattr(cli, "fetch_stock", boom)
    assert cli.main(["stock", "998877"]) == 2
    assert "500" in capsys.readouterr().err


def test_scan_missing_image(tmp_path, capsys):
    assert cli.main(["scan", str(tmp_path / "nope.jpg")]) == 2


def test_summary_text():
    text = summary_text(_record())
    assert "SKU: 998877  Price: $4.29" in text
    assert "Stores (2):" in text
    assert "stock: ?" in text


def test_summary_text_without_stores():
    assert "No store inventory listed." in summary_text(_record(stores=False))


def test_write_json(tmp_path):
    path = write_json(_record(), str(tmp_path / "out" / "stock.json"))
    data = json.loads(open(path, encoding="utf-8").read())
    assert data["stores"][1] == {"address": "1 Boul. Laurier", "distance": "12 km", "stock": ""}
