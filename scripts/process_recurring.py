import argparse
import sys
from datetime import date
from pathlib import Path

# Ensure project backend root is on sys.path
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from app.database import engine, init_db
from app.logging_config import configure_logging
from app.services.recurring import process_due
from sqlmodel import Session


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Materialize due recurring transactions for all users.")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Treat this ISO date as today (default: the current date)",
    )
    args = parser.parse_args(argv)

    configure_logging()
    init_db()
    with Session(engine) as session:
        result = process_due(session, today=args.date)

    print(f"Processed {result.processed} recurring transaction(s).")
    for failure in result.failures:
        print(f"  failed {failure.template_id}: {failure.error}")
    return 1 if result.failures else 0


if __name__ == "__main__":
    sys.exit(main())
