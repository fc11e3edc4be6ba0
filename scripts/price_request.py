#!/usr/bin/env python
"""
Price a quote request from a JSON file and print the breakdown.

Usage:
    python scripts/price_request.py request.json
    python scripts/price_request.py request.json --json
"""
import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from quote_tool.engine import QuoteEngine, QuoteRequest, QuoteEngineError


def main():
    parser = argparse.ArgumentParser(description="Price a quote request JSON file")
    parser.add_argument('request', type=Path, help="JSON file with services / goods / custom_items")
    parser.add_argument('--json', action='store_true', help="Print the full result as JSON")
    parser.add_argument('-v', '--verbose', action='store_true', help="Log pricing steps")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with open(args.request, 'r', encoding='utf-8') as f:
        raw = json.load(f)

    engine = QuoteEngine()
    try:
        result = engine.calculate(QuoteRequest.from_dict(raw))
    except QuoteEngineError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    print("=" * 60)
    print("QUOTE BREAKDOWN")
    print("=" * 60)
    for line in result.lines:
        print(f"{line.description:<40} {line.quantity:>4} × {line.unit_price:>10.2f} = {line.total_price:>10.2f}")
        if line.detail:
            print(f"    {line.detail}")
    print("-" * 60)

    totals = result.totals
    currency = engine.policy.currency
    print(f"  Subtotal:       {totals.sub_total:>12.2f} {currency}")
    print(f"  Tax ({totals.tax_rate:.0%}):      {totals.tax:>12.2f} {currency}")
    print(f"  Total with tax: {totals.total_with_tax:>12.2f} {currency}")
    if totals.minimum_applied:
        print(f"  Minimum charge: {totals.minimum_charge:>12.2f} {currency}")
    print(f"  Final price:    {totals.final_price:>12.2f} {currency}")
    if result.final_price_override is not None:
        print(f"  Override:       {result.final_price_override:>12.2f} {currency}")

    for warning in result.warnings:
        print(f"  WARNING: {warning}")


if __name__ == "__main__":
    main()
