# src/taskboard/cli/main.py

"""
CLI entrypoint: logging, AppState, console REPL, then store shutdown.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _close_stores(state: AppState) -> None:
    # Shutdown must not mask the reason we are exiting.
    for store in (state.tasks, state.users):
        close = getattr(store, "close", None)
        if close is None:
            continue
        try:
            close()
        except Exception:
            logger.debug("Closing %s failed.", type(store).__name__, exc_info=True)


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(
        log_dir=settings.data_dir,
        console_level=getattr(logging, settings.log_level, logging.INFO),
    )
    logger.info("Starting %s (db=%s, log=%s)", settings.app_name, settings.db_path, log_file)

    state = create_initial_state(settings=settings)
    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.warning("Console disabled; set TASKBOARD_CONSOLE_ENABLED=true to use the board.")
    finally:
        _close_stores(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
