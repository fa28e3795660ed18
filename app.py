#!/usr/bin/env python3
"""
VibeGuard - Command Line Entry Point.

============================================================
COMMANDS
============================================================
insights  Full sentiment snapshot for one token
multi     Sentiment snapshots for several tokens at once
check     Sentiment score + AI risk verdict for one token
models    Gemini models that support generateContent

All commands print JSON on stdout. Logs go to stderr.

============================================================
USAGE
============================================================
    python app.py insights BTC --window 4H
    python app.py multi BTC ETH SOL
    python app.py check BTC --price 64000 --volume 2.1e10 --change -4.2
    python app.py models

Configuration comes from the environment (and ``.env``),
see ``core.config.PipelineConfig``.

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional

from core.config import PipelineConfig
from core.exceptions import PipelineError
from core.http import JsonHttpClient, format_http_error
from risk_analysis import (
    GeminiClient,
    ModelRouter,
    RiskAnalyzer,
    StaticPriceProvider,
    coin_id_for,
)
from sentiment import CryptoracleSource, SentimentService, SentimentWindow


logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    windows = [w.value for w in SentimentWindow]

    parser = argparse.ArgumentParser(
        prog="vibeguard",
        description="Crypto sentiment aggregation and AI risk analysis",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    insights = subparsers.add_parser("insights", help="Sentiment snapshot for one token")
    insights.add_argument("token", help="Token symbol, e.g. BTC")
    insights.add_argument("--window", "-w", choices=windows, default="Daily")

    multi = subparsers.add_parser("multi", help="Sentiment snapshots for several tokens")
    multi.add_argument("tokens", nargs="*", help="Token symbols (default: built-in set)")
    multi.add_argument("--window", "-w", choices=windows, default="Daily")

    check = subparsers.add_parser("check", help="Sentiment score and AI risk verdict")
    check.add_argument("token", help="Token symbol, e.g. BTC")
    check.add_argument("--price", type=float, required=True, help="Current price")
    check.add_argument("--volume", type=float, default=0.0, help="24h volume")
    check.add_argument("--change", type=float, default=0.0, help="24h price change in percent")

    subparsers.add_parser("models", help="List Gemini generateContent models")

    return parser


# ============================================================
# LOGGING
# ============================================================

def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


# ============================================================
# COMMANDS
# ============================================================

async def run_insights(config: PipelineConfig, http: JsonHttpClient, args: argparse.Namespace) -> Any:
    service = SentimentService(CryptoracleSource(config.sentiment, http=http))
    insight = await service.get_snapshot(args.token, args.window)
    return insight.to_dict()


async def run_multi(config: PipelineConfig, http: JsonHttpClient, args: argparse.Namespace) -> Any:
    service = SentimentService(CryptoracleSource(config.sentiment, http=http))
    result = await service.get_many(args.tokens, args.window)
    return result.to_dict()


async def run_check(config: PipelineConfig, http: JsonHttpClient, args: argparse.Namespace) -> Any:
    service = SentimentService(CryptoracleSource(config.sentiment, http=http))
    router = ModelRouter.from_config(config, http=http)
    analyzer = RiskAnalyzer(router, GeminiClient(config.inference, http=http))

    prices = StaticPriceProvider()
    coin_id = coin_id_for(args.token)
    prices.set_price(coin_id, price=args.price, volume_24h=args.volume, price_change_24h=args.change)

    try:
        sentiment = await service.get_simple_score(args.token)
        price = await prices.get_price(coin_id)
        analysis = await analyzer.analyze(sentiment, price)
    finally:
        await router.drain()

    return {
        "token": sentiment.token,
        "coinId": coin_id,
        "sentiment": sentiment.to_dict(),
        "price": price.to_dict(),
        "analysis": analysis.to_dict(),
    }


async def run_models(config: PipelineConfig, http: JsonHttpClient, args: argparse.Namespace) -> Any:
    client = GeminiClient(config.inference, http=http)
    return {"models": await client.list_generate_content_models()}


COMMANDS = {
    "insights": run_insights,
    "multi": run_multi,
    "check": run_check,
    "models": run_models,
}


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(config: PipelineConfig, args: argparse.Namespace) -> int:
    """
    Run one command with a shared HTTP client.

    Returns:
        Exit code
    """
    async with JsonHttpClient() as http:
        try:
            result = await COMMANDS[args.command](config, http, args)
        except PipelineError as e:
            logger.error(f"{args.command} failed: {format_http_error(e)}")
            print(json.dumps({"ok": False, "error": format_http_error(e)}, indent=2))
            return 1

    print(json.dumps(result, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    config = PipelineConfig.from_env()
    setup_logging(args.log_level or config.log_level)

    for problem in config.validate():
        logger.warning(problem)

    try:
        return asyncio.run(async_main(config, args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
