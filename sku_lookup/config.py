from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


VENDOR_ORIGIN = "https://www.bureauengros.com"
STOCK_ORIGIN = "https://stocktrack.ca"

# (variable, default) pairs read by Config.load_from_env
ENV_KEYS = [
    ("SKU_LOOKUP_VENDOR_ORIGIN", VENDOR_ORIGIN),
    ("SKU_LOOKUP_STOCK_ORIGIN", STOCK_ORIGIN),
    ("SKU_LOOKUP_LANG", "fr"),
    ("SKU_LOOKUP_OCR_LANG", "fra+eng"),
    ("SKU_LOOKUP_TIMEOUT", "30"),
    ("SKU_LOOKUP_BROWSER_URL", ""),
    ("SKU_LOOKUP_BROWSER_TOKEN", ""),
    ("LOG_LEVEL", "INFO"),
]


@dataclass(frozen=True)
class Config:
    vendor_origin: str = VENDOR_ORIGIN
    stock_origin: str = STOCK_ORIGIN
    lang: str = "fr"
    ocr_lang: str = "fra+eng"
    timeout_s: float = 30.0
    browser_url: str = ""
    browser_token: str = ""
    log_level: str = "INFO"

    @staticmethod
    def load_from_env(env: Mapping[str, str] | None = None) -> "Config":
        src = os.environ if env is None else env
        values = {k: (src.get(k) or default).strip() for k, default in ENV_KEYS}

        raw_timeout = values["SKU_LOOKUP_TIMEOUT"]
        try:
            timeout_s = float(raw_timeout)
        except ValueError:
            raise RuntimeError(f"SKU_LOOKUP_TIMEOUT must be a number of seconds, got {raw_timeout!r}")
        if timeout_s <= 0:
            raise RuntimeError("SKU_LOOKUP_TIMEOUT must be positive")

        return Config(
            vendor_origin=values["SKU_LOOKUP_VENDOR_ORIGIN"].rstrip("/"),
            stock_origin=values["SKU_LOOKUP_STOCK_ORIGIN"].rstrip("/"),
            lang=values["SKU_LOOKUP_LANG"],
            ocr_lang=values["SKU_LOOKUP_OCR_LANG"],
            timeout_s=timeout_s,
            browser_url=values["SKU_LOOKUP_BROWSER_URL"].rstrip("/"),
            browser_token=values["SKU_LOOKUP_BROWSER_TOKEN"],
            log_level=values["LOG_LEVEL"].upper(),
        )

    def describe(self) -> list[str]:
        # Never print the token itself
        return [
            f"vendor_origin: {self.vendor_origin}",
            f"stock_origin:  {self.stock_origin}",
            f"lang:          {self.lang}",
            f"ocr_lang:      {self.ocr_lang}",
            f"timeout_s:     {self.timeout_s:g}",
            f"browser_url:   {self.browser_url or '(local chromium)'}",
            f"browser_token: {'set' if self.browser_token else 'unset'}",
            f"log_level:     {self.log_level}",
        ]
