from __future__ import annotations

import logging
import time

from flask import Flask, jsonify, request

from .config import Config
from .extract import extract_identifier, rank_candidates
from .lookup import resolve, vendor_client
from .stocktrack import fetch_stock, stock_client

logger = logging.getLogger(__name__)


def create_app(cfg: Config | None = None) -> Flask:
    cfg = cfg or Config.load_from_env()
    app = Flask(__name__)
    app.config["SKU_LOOKUP"] = cfg
    started = time.time()

    @app.route("/api/stock")
    def api_stock():
        sku = (request.args.get("sku") or "").strip()
        if not sku:
            return jsonify({"error": "SKU parameter is required"}), 400

        try:
            record = fetch_stock(sku, client=stock_client(cfg))
        except Exception as exc:
            logger.exception("stock scrape failed for %s", sku)
            return jsonify({"error": "Failed to scrape stock data.", "details": str(exc)}), 500

        if record is None:
            return jsonify({"error": "Product not found or invalid SKU"}), 404
        return jsonify(record.to_dict())

    @app.route("/api/lookup")
    def api_lookup():
        code = (request.args.get("q") or "").strip()
        if not code:
            return jsonify({"error": "Query is required"}), 400
        intent = resolve(code, client=vendor_client(cfg), lang=cfg.lang)
        return jsonify({"url": intent.url, "direct": intent.direct})

    @app.route("/api/extract", methods=["POST"])
    def api_extract():
        payload = request.get_json(silent=True) or {}
        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            return jsonify({"error": "JSON body with a 'text' string is required"}), 400
        return jsonify({
            "identifier": extract_identifier(text),
            "candidates": [
                {"text": c.original, "code": c.normalized, "score": c.score}
                for c in rank_candidates(text)
            ],
        })

    @app.route("/health")
    def health():
        return {
            "status": "ok",
            "uptime_sec": int(time.time() - started),
        }

    return app
