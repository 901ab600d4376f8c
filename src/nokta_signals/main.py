from __future__ import annotations

import argparse
import logging

from .config import load_settings
from .message_formatter import format_signal_message, strip_html
from .service import SignalService


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="nokta-signals", description="Futures confluence signal scanner")
    parser.add_argument("--symbol", help="analyze a single symbol once (e.g. BTCUSDT) and exit")
    parser.add_argument("--log-level", default="INFO", help="logging level (default: INFO)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    settings = load_settings()
    service = SignalService(settings)

    if args.symbol:
        symbol = args.symbol.replace("/", "").upper()
        signal = service.run_once(symbol)
        if signal is None:
            print(f"{symbol}: no signal")
        else:
            print(strip_html(format_signal_message(signal)))
            if settings.telegram_bot_token and settings.telegram_chat_id:
                service.dispatch(signal)
        return

    try:
        service.run_forever()
    except KeyboardInterrupt:
        logging.info("Shutting down")


if __name__ == "__main__":
    main()
