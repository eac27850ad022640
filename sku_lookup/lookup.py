from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode, urljoin

import requests

from .config import VENDOR_ORIGIN, Config
from .http import HttpClient
from .models import NavigationIntent

logger = logging.getLogger(__name__)

SEARCH_API_PATH = "/proxy/product-search/v2/products/search"


def vendor_client(cfg: Config) -> HttpClient:
    return HttpClient(base_url=cfg.vendor_origin, timeout_s=cfg.timeout_s)


def search_url(identifier: str, *, origin: str = VENDOR_ORIGIN) -> str:
    """Generic site search page for *identifier*."""
    return f"{origin.rstrip('/')}/search?{urlencode({'q': identifier})}"


def _single_product_url(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data") or {}
    products = data.get("products") if isinstance(data, dict) else None
    if not isinstance(products, list) or len(products) != 1:
        return None
    product = products[0]
    url = product.get("productUrl") if isinstance(product, dict) else None
    return url or None


def resolve(identifier: str, *, client: HttpClient, lang: str = "fr") -> NavigationIntent:
    """Turn a product identifier into the page the user should land on.

    One request to the vendor's product search API. A single match goes
    straight to its product page; anything else (no match, several matches,
    a failed request) lands on the site search page instead.
    """
    origin = client.base_url.rstrip("/")
    fallback = NavigationIntent(url=search_url(identifier, origin=origin), direct=False)

    try:
        resp = client.get(SEARCH_API_PATH, params={"q": identifier, "lang": lang})
    except requests.RequestException as exc:
        logger.warning("product search failed for %s, using search page: %s", identifier, exc)
        return fallback

    if not resp.ok:
        logger.warning("product search returned %s for %s, using search page", resp.status_code, identifier)
        return fallback

    try:
        payload = resp.json()
    except ValueError as exc:
        logger.warning("product search returned invalid JSON for %s: %s", identifier, exc)
        return fallback

    product_url = _single_product_url(payload)
    if product_url is None:
        logger.info("no unique product for %s, using search page", identifier)
        return fallback

    url = urljoin(origin + "/", product_url)
    logger.info("resolved %s -> %s", identifier, url)
    return NavigationIntent(url=url, direct=True)
