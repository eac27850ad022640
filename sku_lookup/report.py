from __future__ import annotations

import json
from pathlib import Path

from .models import ProductRecord


def summary_text(record: ProductRecord) -> str:
    lines = [
        f"{record.name or '—'}",
        f"SKU: {record.sku or '—'}  Price: {record.price or 'N/A'}",
    ]
    if record.image_url:
        lines.append(f"Image: {record.image_url}")
    lines.append("")

    if not record.stores:
        lines.append("No store inventory listed.")
        return "\n".join(lines)

    lines.append(f"Stores ({len(record.stores)}):")
    width = max(len(s.address) for s in record.stores)
    for s in record.stores:
        lines.append(f"  {s.address.ljust(width)}  {s.distance:>8}  stock: {s.stock_level or '?'}")
    return "\n".join(lines)


def write_json(record: ProductRecord, path: str = "artifacts/stock.json") -> str:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    return str(out)
