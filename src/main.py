import argparse
import json
import logging
import sys
from pathlib import Path

# Add the src directory to the Python path
src_path = str(Path(__file__).parent)
if src_path not in sys.path:
    sys.path.append(src_path)

from config import LOG_LEVEL, METRICS_PORT  # noqa: E402

logger = logging.getLogger(__name__)


def setup_logging():
    Path('data/logs').mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler('data/logs/engine.log', encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )


def load_candidates(path: Path):
    """Read candidates from a JSON array or a JSON-lines file"""
    text = path.read_text(encoding='utf-8')
    if path.suffix == '.jsonl':
        return [json.loads(line) for line in text.splitlines() if line.strip()]
    data = json.loads(text)
    return data if isinstance(data, list) else [data]


def log_alert(saved_search, listings):
    logger.info(
        f"Alert for {saved_search.user_id} / {saved_search.name!r}: "
        f"{', '.join(listing.id for listing in listings)}"
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Listing identity, merge and alert matching engine')
    parser.add_argument('inputs', nargs='*', type=Path, help='JSON or JSONL files of scraped candidates')
    parser.add_argument('--alerts', action='store_true', help='run an alert pass after ingestion')
    parser.add_argument('--mark-inactive', action='store_true', help='flag listings not seen recently')
    parser.add_argument('--metrics', action='store_true', help='serve Prometheus metrics while running')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging()

    from database.session import engine, initialize_database
    from database.store import ListingStore
    from ingestion.coordinator import IngestionCoordinator
    from ingestion.lifecycle import mark_inactive_listings
    from ingestion.metrics import start_metrics_server
    from matching.alerts import AlertProcessor

    try:
        initialize_database()
        if args.metrics:
            start_metrics_server(METRICS_PORT)

        store = ListingStore()
        coordinator = IngestionCoordinator(store=store)

        failed = 0
        for path in args.inputs:
            candidates = load_candidates(path)
            logger.info(f"Ingesting {len(candidates)} candidates from {path}")
            results = coordinator.ingest_many(candidates)
            failed += len([r for r in results if not r.ok])

        if args.mark_inactive:
            mark_inactive_listings(store)

        if args.alerts:
            result = AlertProcessor(store, notify=log_alert).process_alerts()
            logger.info(f"Alert job complete: {result}")

        return 1 if failed else 0

    except Exception as e:
        logger.error(f"Main process error: {e}")
        raise
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
