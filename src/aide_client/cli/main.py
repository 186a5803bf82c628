# src/aide_client/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, restores a saved session, then runs the
console REPL until /exit.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleConfirmer, ConsoleRenderer, run_console_loop
from ..dispatcher import Dispatcher
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(settings) -> None:
    state = create_initial_state(settings=settings, confirmer=ConsoleConfirmer())
    state.bus.subscribe(ConsoleRenderer(app_name=settings.app_name))
    dispatcher = Dispatcher(state)

    try:
        await dispatcher.start()
        await run_console_loop(state, dispatcher)
    finally:
        await state.aclose()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
