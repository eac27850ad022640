from __future__ import annotations

from pathlib import Path

from playwright.sync_api import sync_playwright

from .models import NavigationIntent


def browser_ws_endpoint(*, base_url: str, token: str = "") -> str:
    """Compose a remote-browser CDP websocket endpoint.

    Accepts ws://, wss://, http:// or https:// base URLs and appends the
    token as a query parameter when one is given.
    """
    base = base_url.strip()
    if base.startswith("http://"):
        base = "ws://" + base.removeprefix("http://")
    if base.startswith("https://"):
        base = "wss://" + base.removeprefix("https://")

    if not token or "token=" in base:
        return base
    sep = "&" if "?" in base else "?"
    return base + sep + "token=" + token


def open_intent(
    intent: NavigationIntent,
    *,
    ws_endpoint: str | None = None,
    out_path: str = "artifacts/lookup.png",
) -> str:
    """Follow a lookup result in a browser and save a screenshot of the page.

    Uses a remote browser over CDP when *ws_endpoint* is given, a local
    headless Chromium otherwise.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    with sync_playwright() as p:
        if ws_endpoint:
            browser = p.chromium.connect_over_cdp(ws_endpoint)
        else:
            browser = p.chromium.launch(headless=True)
        try:
            context = browser.new_context(ignore_https_errors=True, locale="fr-CA")
            page = context.new_page()
            page.goto(intent.url, wait_until="domcontentloaded", timeout=45_000)
            page.wait_for_timeout(1500)
            page.screenshot(path=str(out), full_page=True)
        finally:
            browser.close()

    return str(out)
