#!/usr/bin/env python3
"""Regenerate the bundled fallback pricing snapshot.

Downloads the public CSV price list, merges the small emissions-factor table
below, and writes a ``{model: PricingEntry}`` JSON map.

Usage:
    python scripts/fetch_data.py                        # writes prompt_info/data/llm-data.json
    python scripts/fetch_data.py --out /tmp/prices.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import httpx

PRICE_LIST_URL = "https://gist.githubusercontent.com/t3dotgg/a4bb252e590320e223e71c595e60e6be/raw"
DEFAULT_OUT = Path(__file__).resolve().parent.parent / "prompt_info" / "data" / "llm-data.json"

# g CO2e per token
CO2E_FACTORS: dict[str, float] = {
    "gpt-4": 0.005,
    "gpt-4-32k": 0.005,
    "gpt-3.5-turbo": 0.002,
}


def _price(cell: str) -> float | None:
    try:
        return float(cell.strip().replace("$", ""))
    except ValueError:
        return None


def parse_price_list(text: str) -> dict[str, dict[str, float | None]]:
    """Parse ``name,$input,$output`` lines, skipping the header row."""
    prices: dict[str, dict[str, float | None]] = {}
    lines = text.strip().splitlines()
    for line in lines[1:]:
        cells = line.split(",")
        if len(cells) < 3 or not cells[0].strip():
            continue
        prices[cells[0].strip()] = {"input": _price(cells[1]), "output": _price(cells[2])}
    return prices


def build_snapshot(prices: dict[str, dict[str, float | None]]) -> dict[str, dict]:
    return {
        model: {"pricing": pricing, "co2eFactor": CO2E_FACTORS.get(model, 0)}
        for model, pricing in prices.items()
    }


def main():
    parser = argparse.ArgumentParser(description="Regenerate the bundled pricing snapshot")
    parser.add_argument("--url", default=PRICE_LIST_URL, help="CSV price list URL")
    parser.add_argument("--out", default=str(DEFAULT_OUT), help="Output JSON path")
    args = parser.parse_args()

    print("Fetching pricing data...")
    try:
        resp = httpx.get(args.url, timeout=30, follow_redirects=True)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        print(f"Error fetching data: {e}", file=sys.stderr)
        sys.exit(1)

    snapshot = build_snapshot(parse_price_list(resp.text))
    if not snapshot:
        print("Price list was empty; leaving the snapshot untouched", file=sys.stderr)
        sys.exit(1)

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(snapshot, indent=2) + "\n", encoding="utf-8")
    print(f"Wrote {len(snapshot)} models to {out}")


if __name__ == "__main__":
    main()
