from __future__ import annotations

import logging
import re
from urllib.parse import urlencode, urljoin

import requests
from bs4 import BeautifulSoup, Tag

from .config import STOCK_ORIGIN, Config
from .http import HttpClient
from .models import ProductRecord, StoreEntry

logger = logging.getLogger(__name__)

STOCK_PATH = "/st/index.php"

_SKU_LABEL = "SKU:"
_PRICE_COLOR = "#ff0000"


class FetchError(RuntimeError):
    """The stock page could not be fetched. ``status`` is None on network errors."""

    def __init__(self, status: int | None, detail: str = ""):
        self.status = status
        msg = f"Failed to fetch data from stocktrack, status: {status}" if status else "Failed to fetch data from stocktrack"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


def stock_client(cfg: Config) -> HttpClient:
    return HttpClient(base_url=cfg.stock_origin, timeout_s=cfg.timeout_s, accept="text/html")


def stock_url(sku: str, *, origin: str = STOCK_ORIGIN) -> str:
    return f"{origin.rstrip('/')}{STOCK_PATH}?{urlencode({'s': 'st', 'sku': sku})}"


def _text(el: Tag | None) -> str:
    if el is None:
        return ""
    return el.get_text(" ", strip=True)


def _absolute(src: str, origin: str) -> str:
    if not src or re.match(r"^[a-z][a-z0-9+.\-]*:", src, re.IGNORECASE):
        return src
    return urljoin(origin.rstrip("/") + "/", src)


def _parse_price(container: Tag) -> str:
    # Prices are the red <font> inside a <b>
    for font in container.select("b > font[color]"):
        if (font.get("color") or "").strip().lower() == _PRICE_COLOR:
            return _text(font)
    return ""


def _parse_sku(container: Tag) -> str:
    node = container.find(string=re.compile(re.escape(_SKU_LABEL)))
    if node is None:
        return ""
    value = str(node).replace(_SKU_LABEL, "", 1).strip()
    if not value:
        # label and value in separate elements: <div><b>SKU:</b> 123</div>
        holder = node.find_parent("div") or node.parent
        if holder is not None:
            value = _text(holder).replace(_SKU_LABEL, "", 1).strip()
    return value


def _parse_stores(soup: BeautifulSoup) -> tuple[StoreEntry, ...]:
    stores: list[StoreEntry] = []
    for row in soup.select("#tblInventory tr"):
        cells = row.find_all("td", recursive=False)
        if len(cells) < 4:
            continue
        address = _text(cells[1])
        if not address:
            continue
        stores.append(StoreEntry(address=address, distance=_text(cells[2]), stock_level=_text(cells[3])))
    return tuple(stores)


def parse_stock_page(html: str, *, origin: str = STOCK_ORIGIN) -> ProductRecord | None:
    """Extract product and inventory data from a stocktrack search page.

    Returns None when the page has no product result (unknown SKU). Missing
    fields inside a result are left empty.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    container = soup.select_one("#divProductSearchResults")
    if container is None:
        return None

    img = container.find("img")
    image_url = _absolute((img.get("src") or "").strip(), origin) if img else ""

    return ProductRecord(
        name=_text(container.find("a")),
        sku=_parse_sku(container),
        price=_parse_price(container),
        image_url=image_url,
        stores=_parse_stores(soup),
    )


def fetch_stock(sku: str, *, client: HttpClient) -> ProductRecord | None:
    """Fetch and parse the stock page for *sku*.

    Raises FetchError on a network failure or a non-success status.
    """
    try:
        resp = client.get(STOCK_PATH, params={"s": "st", "sku": sku})
    except requests.RequestException as exc:
        raise FetchError(None, str(exc)) from exc

    if not resp.ok:
        raise FetchError(resp.status_code)

    record = parse_stock_page(resp.text, origin=client.base_url)
    if record is None:
        logger.info("stock page for %s has no product result", sku)
    else:
        logger.info("stock for %s: %s (%d stores)", sku, record.name, len(record.stores))
    return record
