import time
import logging
import signal
import sys
import argparse

from core.app_context import AppContext
from core.config_loader import load_config
from core.exceptions import PlacementError
from core.recommendations import ingest_opportunity
from database.init_db import init_db
from database.models import utcnow
from database.uow import placement_uow
from pipeline.runner import run_once

logger = logging.getLogger(__name__)

# Global flag for graceful shutdown
running = True


def signal_handler(sig, frame):
    global running
    logger.info("Shutdown signal received")
    running = False


def configure_logging(config):
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
    )


def cmd_run_once(ctx, args) -> int:
    result = run_once(ctx, source="cli")
    if result.skipped:
        logger.info("Another scheduler cycle holds the lock; nothing done")
        return 0
    if result.discover.failed_scanners:
        logger.warning(f"Failed scanners: {', '.join(result.discover.failed_scanners)}")
    return 0


def cmd_loop(ctx, args) -> int:
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    interval = args.interval
    cycle_count = 0
    while running:
        cycle_count += 1
        cycle_start = time.time()
        logger.info(f"=== Starting Cycle #{cycle_count} ===")
        try:
            run_once(ctx, source="loop")
        except PlacementError as e:
            logger.error(f"Error in scheduler cycle: {e}", exc_info=True)

        cycle_elapsed = time.time() - cycle_start
        if running:
            logger.info(f"=== Cycle #{cycle_count} completed in {cycle_elapsed:.2f}s. Sleeping for {interval} seconds... ===")
            # Sleep in chunks to allow responsive shutdown
            for _ in range(max(1, interval // 5)):
                if not running:
                    break
                time.sleep(5)
    return 0


def cmd_ingest(ctx, args) -> int:
    with placement_uow(ctx.session_factory) as repo:
        result = ingest_opportunity(repo, args.opportunity_id, utcnow(), ctx.config.matching)
    logger.info(
        f"Opportunity {result.opportunity_id}: {result.scheduled} recommendation(s) scheduled, "
        f"{result.failed} failure(s)"
    )
    return 0 if result.failed == 0 else 1


def cmd_init_db(ctx, args) -> int:
    init_db()
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Placement engine scheduler")
    parser.add_argument('--config', default='config.yaml', help='Path to config.yaml')
    subparsers = parser.add_subparsers(dest='command')

    subparsers.add_parser('run-once', help='Flush, discover and route once, then exit (cron)')

    loop_parser = subparsers.add_parser('loop', help='Run scheduler cycles until interrupted')
    loop_parser.add_argument('--interval', type=int, default=300, help='Seconds between cycles')

    ingest_parser = subparsers.add_parser('ingest-opportunity', help='Fan a new opportunity out to candidates')
    ingest_parser.add_argument('opportunity_id', type=int)

    subparsers.add_parser('init-db', help='Create database tables')

    args = parser.parse_args(argv)
    command = args.command or 'run-once'

    config = load_config(args.config)
    configure_logging(config)
    logger.info(f"Placement scheduler starting: {command}")

    ctx = AppContext.build(config)
    handlers = {
        'run-once': cmd_run_once,
        'loop': cmd_loop,
        'ingest-opportunity': cmd_ingest,
        'init-db': cmd_init_db,
    }
    try:
        if command != 'init-db':
            # Initialize DB (with retry logic)
            init_db()
        return handlers[command](ctx, args)
    except PlacementError as e:
        logger.error(f"{command} failed: {e}")
        return 1
    except Exception as e:
        logger.critical(f"{command} aborted: {e}", exc_info=True)
        return 2


if __name__ == "__main__":
    sys.exit(main())
