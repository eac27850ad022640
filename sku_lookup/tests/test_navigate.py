import pytest

from sku_lookup import navigate
from sku_lookup.models import NavigationIntent


class _Page:
    def __init__(self, log, fail_goto=False):
        self.log = log
        self.fail_goto = fail_goto

    def goto(self, url, **kw):
        self.log.append(("goto", url))
        if self.fail_goto:
            raise TimeoutError("page load timed out")

    def wait_for_timeout(self, ms):
        pass

    def screenshot(self, path, full_page):
        self.log.append(("screenshot", path))


class _Browser:
    def __init__(self, log, fail_goto=False):
        self.log = log
        self.fail_goto = fail_goto

    def new_context(self, **kw):
        return self

    def new_page(self):
        return _Page(self.log, self.fail_goto)

    def close(self):
        self.log.append(("close",))


class _Chromium:
    def __init__(self, browser):
        self.browser = browser

    def launch(self, headless):
        self.browser.log.append(("launch", headless))
        return self.browser

    def connect_over_cdp(self, endpoint):
        self.browser.log.append(("cdp", endpoint))
        return self.browser


class _Playwright:
    def __init__(self, browser):
        self.chromium = _Chromium(browser)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _fake(monkeypatch, fail_goto=False):
    log = []
    browser = _Browser(log, fail_goto)
    monkeypatch.setattr(navigate, "sync_playwright", lambda: _Playwright(browser))
    return log


def test_open_intent_local_browser(monkeypatch, tmp_path):
    log = _fake(monkeypatch)
    out = tmp_path / "shots" / "lookup.png"
    intent = NavigationIntent(url="https://www.bureauengros.com/p/998877", direct=True)

    assert navigate.open_intent(intent, out_path=str(out)) == str(out)
    assert out.parent.is_dir()
    assert log == [
        ("launch", True),
        ("goto", "https://www.bureauengros.com/p/998877"),
        ("screenshot", str(out)),
        ("close",),
    ]


def test_open_intent_remote_browser(monkeypatch, tmp_path):
    log = _fake(monkeypatch)
    intent = NavigationIntent(url="https://www.bureauengros.com/search?q=1234", direct=False)
    navigate.open_intent(intent, ws_endpoint="wss://chrome.example?token=t", out_path=str(tmp_path / "a.png"))
    assert log[0] == ("cdp", "wss://chrome.example?token=t")


def test_open_intent_closes_browser_on_failure(monkeypatch, tmp_path):
    log = _fake(monkeypatch, fail_goto=True)
    intent = NavigationIntent(url="https://www.bureauengros.com/p/1", direct=True)
    with pytest.raises(TimeoutError):
        navigate.open_intent(intent, out_path=str(tmp_path / "a.png"))
    assert log[-1] == ("close",)
    assert not any(entry[0] == "screenshot" for entry in log)
