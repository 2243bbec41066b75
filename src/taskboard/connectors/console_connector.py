# src/taskboard/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_api import subscribe_board
from ..views.board import BoardSnapshot

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type /help for commands, /list to see tasks, /exit to quit.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    # Live counter: the bus re-runs the list query after every committed change.
    last_total: dict[str, int] = {}

    def on_board(snap: BoardSnapshot) -> None:
        prev = last_total.get("n")
        last_total["n"] = snap.total
        if prev is not None and prev != snap.total:
            emit(f"[LIVE] {snap.total} task(s) match the current filters.")

    sub = subscribe_board(state, on_board)

    try:
        while True:
            try:
                user_input = input(">>> ").strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            if not user_input.startswith("/"):
                _print_ts("Commands start with '/'. Use /help to list them.")
                continue

            try:
                reply = command_registry.handle(state, user_input, emit=emit)
            except Exception:
                # Mutation failures leave the previous state in place; tell the user.
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command; nothing was changed by the failed step."

            if reply is not None:
                print(f"[{_ts_local()}] {reply}")
    finally:
        sub.cancel()

    logger.info("Console connector finished.")
