# src/smart_tasks/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def run_console_loop(state: AppState) -> None:
    """
    Read commands until /exit or EOF.

    input() runs in a worker thread so suggestion calls started by /add keep
    progressing on the event loop while the user types.
    """
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "smart-tasks"))
    logger.info("Console connector started.")
    _print_ts(f"[{app_name}] Type /help for commands, /exit to quit. Plain text adds a task.\n")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
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

        # Plain text is a shortcut for /add.
        line = user_input if user_input.startswith("/") else f"/add {user_input}"

        try:
            response = await command_registry.handle(state, line, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            _print_ts(response)

    logger.debug("Waiting for in-flight suggestions before exit.")
    await state.store.wait_for_suggestions()
    logger.info("Console connector finished.")
