from __future__ import annotations

import argparse
import json
import logging
import sys

from .capture import CaptureError, load_image
from .config import ENV_KEYS, Config
from .extract import extract_identifier, rank_candidates
from .lookup import resolve, vendor_client
from .navigate import browser_ws_endpoint, open_intent
from .report import summary_text, write_json
from .session import ScanSession, ScanState
from .stocktrack import FetchError, fetch_stock, stock_client

__version__ = "0.1.0"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sku-lookup")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = p.add_subparsers(dest="cmd", required=False)

    p_config = sub.add_parser("config", help="Config commands")
    sub_config = p_config.add_subparsers(dest="config_cmd", required=True)
    sub_config.add_parser("keys", help="List environment variables and defaults")
    sub_config.add_parser("show", help="Print the resolved configuration")

    p_extract = sub.add_parser("extract", help="Pick the product code out of recognized text")
    p_extract.add_argument("text", nargs="?", help="Text to analyze (default: read stdin)")
    p_extract.add_argument("--file", help="Read text from a file")
    p_extract.add_argument("--candidates", action="store_true", help="Also list ranked candidates")

    p_lookup = sub.add_parser("lookup", help="Resolve a code to a product or search page")
    p_lookup.add_argument("code", help="SKU, UGS or UPC")
    p_lookup.add_argument("--open", action="store_true", help="Open the page in a browser and save a screenshot")
    p_lookup.add_argument("--out", default="artifacts/lookup.png")

    p_stock = sub.add_parser("stock", help="Scrape product and store inventory for a SKU")
    p_stock.add_argument("code", help="SKU")
    p_stock.add_argument("--json", action="store_true", help="Print JSON instead of text")
    p_stock.add_argument("--out", help="Also write the JSON record to this path")

    p_scan = sub.add_parser("scan", help="Scan an image: barcode first, then text recognition")
    p_scan.add_argument("image", help="Image file (photo of a label or package)")
    mode = p_scan.add_mutually_exclusive_group()
    mode.add_argument("--barcode", action="store_true", help="Barcode only")
    mode.add_argument("--ocr", action="store_true", help="Text recognition only")
    p_scan.add_argument("--stock", action="store_true", help="Show stock data instead of a lookup URL")
    p_scan.add_argument("--scale", type=float, default=2.0, help="Upscale factor before OCR")

    p_serve = sub.add_parser("serve", help="Run the stock web endpoint")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=5000)
    p_serve.add_argument("--debug", action="store_true")

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    if args.cmd is None:
        p.print_help()
        return 0

    cfg = Config.load_from_env()
    logging.basicConfig(
        level="DEBUG" if args.verbose else cfg.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "config":
        if args.config_cmd == "keys":
            for k, default in ENV_KEYS:
                print(f"{k}={default}")
            return 0

        if args.config_cmd == "show":
            for line in cfg.describe():
                print(line)
            return 0

    if args.cmd == "extract":
        return _run_extract(args)

    if args.cmd == "lookup":
        intent = resolve(args.code, client=vendor_client(cfg), lang=cfg.lang)
        tag = "product" if intent.direct else "search"
        print(f"{tag}: {intent.url}")
        if args.open:
            ws = browser_ws_endpoint(base_url=cfg.browser_url, token=cfg.browser_token) if cfg.browser_url else None
            out = open_intent(intent, ws_endpoint=ws, out_path=args.out)
            print(f"OK: wrote {out}")
        return 0

    if args.cmd == "stock":
        try:
            record = fetch_stock(args.code, client=stock_client(cfg))
        except FetchError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 2
        if record is None:
            print("Product not found or invalid SKU.")
            return 1
        if args.json:
            print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
        else:
            print(summary_text(record))
        if args.out:
            print(f"\nRecord written to {write_json(record, args.out)}")
        return 0

    if args.cmd == "scan":
        return _run_scan(args, cfg)

    if args.cmd == "serve":
        from .server import create_app

        create_app(cfg).run(host=args.host, port=args.port, debug=args.debug)
        return 0

    raise RuntimeError("unreachable")


def _run_extract(args) -> int:
    if args.file:
        with open(args.file, encoding="utf-8") as fh:
            text = fh.read()
    elif args.text is not None:
        text = args.text
    else:
        text = sys.stdin.read()

    if args.candidates:
        for i, c in enumerate(rank_candidates(text), 1):
            print(f"{i}. {c.normalized}  (score {c.score}, from {c.original!r})")
        print()

    code = extract_identifier(text)
    if code is None:
        print("No product code found.")
        return 1
    print(code)
    return 0


def _run_scan(args, cfg: Config) -> int:
    try:
        image = load_image(args.image)
    except CaptureError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    session = ScanSession(cfg, stock_mode=args.stock, ocr_scale=args.scale)

    if not args.ocr:
        session.scan_barcode(image)
        if session.identifier is None and not args.barcode:
            print(f"barcode: {session.error}")
    # text recognition only when no barcode was read
    if not args.barcode and session.identifier is None:
        session.scan_text(image)
        if session.detected_text:
            print("Detected text:")
            print(session.detected_text.strip())
            print()

    if session.state is ScanState.ERROR:
        print(f"ERROR: {session.error}", file=sys.stderr)
        return 1

    print(f"code: {session.identifier}")
    if session.record is not None:
        print(summary_text(session.record))
    elif session.intent is not None:
        tag = "product" if session.intent.direct else "search"
        print(f"{tag}: {session.intent.url}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
