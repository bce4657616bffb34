"""
Rice Storefront — Main Entry Point

Run as an API server:
    python -m rice_storefront serve
    # or: uvicorn rice_storefront.api:app --reload --port 8000

Quote a price from the command line:
    python -m rice_storefront quote --base 200 --tier-10 170 --qty 12 --loyalty 3

Or import and run programmatically:
    from rice_storefront.main import quote
    result = quote(base=200, qty=12, tier_10=170)
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from rice_storefront.config import get_settings
from rice_storefront.models.schemas import PricingResult, Product
from rice_storefront.pricing import price_line, validate_quantity
from rice_storefront.utils.logger import setup_logging


def quote(
    base: float,
    qty: float,
    tier_2: Optional[float] = None,
    tier_5: Optional[float] = None,
    tier_10: Optional[float] = None,
    loyalty: float = 0.0,
) -> PricingResult:
    """Price an ad-hoc product and log the breakdown."""
    setup_logging(get_settings().log_level)
    logger = logging.getLogger(__name__)

    product = Product(
        id="cli",
        name="CLI quote",
        base_price_per_kg=base,
        has_tier_pricing=any(t is not None for t in (tier_2, tier_5, tier_10)),
        tier_2_4kg_price=tier_2,
        tier_5_9kg_price=tier_5,
        tier_10kg_up_price=tier_10,
    )
    validate_quantity(qty)
    result = price_line(product, qty, loyalty)

    _print_breakdown(result)
    return result


def _print_breakdown(result: PricingResult) -> None:
    logger = logging.getLogger(__name__)
    currency = get_settings().currency

    logger.info("-" * 60)
    logger.info("  PRICE BREAKDOWN")
    logger.info("-" * 60)
    logger.info(f"  Quantity:       {result.quantity_kg:g} kg")
    logger.info(f"  Base price:     {currency} {result.base_price_per_kg:,.2f}/kg")
    logger.info(f"  Applied price:  {currency} {result.price_per_kg:,.2f}/kg ({result.tier_applied.value})")
    logger.info(f"  Original:       {currency} {result.original_price:,.2f}")
    logger.info(f"  Subtotal:       {currency} {result.subtotal:,.2f}")
    if result.loyalty_discount_percent:
        logger.info(
            f"  Loyalty:        -{currency} {result.discount_amount:,.2f} "
            f"({result.loyalty_discount_percent:g}%)"
        )
    logger.info(f"  Total:          {currency} {result.total_after_discount:,.2f}")
    logger.info(f"  You save:       {currency} {result.savings:,.2f} ({result.savings_percentage:.1f}%)")
    logger.info("-" * 60)


def serve(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Start the FastAPI server."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    host = host or settings.host
    port = port or settings.port
    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run("rice_storefront.api:app", host=host, port=port, reload=settings.debug)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rice_storefront", description="Rice storefront pricing & orders")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_cmd = sub.add_parser("serve", help="Run the HTTP API")
    serve_cmd.add_argument("--host", default=None)
    serve_cmd.add_argument("--port", type=int, default=None)

    quote_cmd = sub.add_parser("quote", help="Price a quantity against a tier ladder")
    quote_cmd.add_argument("--base", type=float, required=True, help="Base price per kg")
    quote_cmd.add_argument("--tier-2", type=float, default=None, help="2-4kg price per kg")
    quote_cmd.add_argument("--tier-5", type=float, default=None, help="5-9kg price per kg")
    quote_cmd.add_argument("--tier-10", type=float, default=None, help="10kg+ price per kg")
    quote_cmd.add_argument("--qty", type=float, required=True, help="Quantity in kg")
    quote_cmd.add_argument("--loyalty", type=float, default=0.0, help="Loyalty discount percent")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    if args.command == "serve":
        serve(args.host, args.port)
    else:
        quote(
            base=args.base,
            qty=args.qty,
            tier_2=args.tier_2,
            tier_5=args.tier_5,
            tier_10=args.tier_10,
            loyalty=args.loyalty,
        )


if __name__ == "__main__":
    main()
