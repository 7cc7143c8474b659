import csv
import sys
import logging
from decimal import Decimal
from typing import Iterable, Optional, TextIO

from pydantic import ValidationError

from config import get_settings
from ledger_engine import LedgerEngine
from models import ClientAccount, LedgerError

logger = logging.getLogger(__name__)

HEADER = ["client", "available", "held", "total", "locked"]


def configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format=settings.log_format,
        stream=sys.stderr,
    )


def format_decimal(value: Decimal) -> str:
    """Format an already rounded decimal without exponent, keeping its trailing zeros."""
    return f"{value:f}"


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(HEADER)
    for account in accounts:
        writer.writerow([
            account.client_id,
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ])


def run(filepath: str, stream: Optional[TextIO] = None) -> int:
    """Replay filepath and write the report to stream. Returns the exit status."""
    settings = get_settings()
    engine = LedgerEngine()
    try:
        engine.process_file(filepath)
    except LedgerError as e:
        logger.error(f"Error: {e}")
        return 1
    except OSError as e:
        logger.error(f"Error: cannot read {filepath}: {e}")
        return 1

    stream = stream if stream is not None else sys.stdout
    write_accounts(engine.snapshot(settings.display_scale), stream)
    stream.flush()
    return 0


def main():
    if len(sys.argv) != 2:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        sys.exit(1)

    try:
        configure_logging()
    except ValidationError as e:
        print(f"Error: invalid settings: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(run(sys.argv[1]))


if __name__ == "__main__":
    main()
