from __future__ import annotations

from dataclasses import dataclass
import requests


@dataclass(frozen=True)
class HttpClient:
    base_url: str
    timeout_s: float = 30.0
    accept: str = "application/json"
    user_agent: str = "sku-lookup/0.1"

    def url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def get(self, path: str, *, params: dict | None = None) -> requests.Response:
        return requests.get(
            self.url(path),
            params=params,
            headers={
                "Accept": self.accept,
                "User-Agent": self.user_agent,
            },
            timeout=self.timeout_s,
        )
