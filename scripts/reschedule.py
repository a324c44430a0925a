"""
Reschedule pass entry point.
Compacts all open tasks on the configured calendar into the earliest free
working-hour slots. Run it on a timer or after calendar changes.
"""

import argparse
import sys
import time
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Imports
from caltodo.core.config_manager import Config
from caltodo.core.exceptions import CalTodoError
from caltodo.services.service_factory import ServiceFactory
from caltodo.utils.logger import setup_logger

logger = setup_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reschedule open CalTodo tasks.")
    parser.add_argument(
        "--first",
        action="append",
        default=[],
        metavar="EVENT_ID",
        help="Place this task first (repeatable, in order)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main execution function.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = parse_args(argv)
    start_time = time.time()

    logger.info("=" * 60)
    logger.info("Starting CalTodo reschedule")
    logger.info("=" * 60)

    try:
        if not Config.validate():
            logger.error("Configuration validation failed")
            logger.error("Check your .env file and token.json")
            return 1

        orchestrator = ServiceFactory.create_orchestrator()
        summary = orchestrator.reschedule_user_tasks(priority_ids=args.first)

        if summary.failed:
            logger.error(f"Reschedule finished with {summary.failed} failed moves")
            return 1

        logger.info(f"Reschedule completed: {summary}")
        return 0

    except ConnectionError as e:
        logger.error("Authentication failed", exc_info=True)
        logger.error(str(e))
        return 1

    except CalTodoError as e:
        logger.error(f"Reschedule failed: {e}", exc_info=True)
        return 1

    except KeyboardInterrupt:
        logger.warning("Reschedule interrupted by user")
        return 1

    finally:
        elapsed = time.time() - start_time
        logger.info(f"Total execution time: {elapsed:.2f} seconds")


if __name__ == "__main__":
    sys.exit(main())
