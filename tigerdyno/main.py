"""Process entry point for tigerdyno.

``run`` is the ``tigerdyno`` console script. It starts logging with
defaults, loads settings, reconfigures logging from them and serves
Discord until the connection ends or SIGTERM/SIGINT arrives.
"""

import asyncio
import signal
from typing import Callable

import structlog

from .logging_config import setup_logging


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, on_signal: Callable[[signal.Signals], None]
) -> None:
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, on_signal, sig)
        except NotImplementedError:
            # No loop signal handlers on Windows; Ctrl+C still works this way
            if sig == signal.SIGINT:
                signal.signal(signal.SIGINT, lambda s, f: on_signal(signal.SIGINT))


async def _serve_until(bot_task: asyncio.Task, shutdown: asyncio.Event) -> None:
    """Wait for the bot to finish or for a shutdown request."""
    waiter = asyncio.create_task(shutdown.wait())
    try:
        done, _ = await asyncio.wait({bot_task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if bot_task in done:
            # Re-raises start-up failures such as a missing token
            bot_task.result()
            return
        bot_task.cancel()
        try:
            await bot_task
        except asyncio.CancelledError:
            pass
    finally:
        waiter.cancel()


async def main():
    setup_logging()
    logger = structlog.get_logger("tigerdyno.bot")
    logger.info("tigerdyno_starting")

    # Imported late so module-level loggers see the configured structlog
    from .bot import DynoBot
    from .config import get_config

    config = get_config()
    config.validate()
    setup_logging(config)

    bot = DynoBot(config)
    shutdown = asyncio.Event()

    def request_shutdown(sig: signal.Signals) -> None:
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown.set()

    _install_signal_handlers(asyncio.get_running_loop(), request_shutdown)

    try:
        await _serve_until(asyncio.create_task(bot.run()), shutdown)
    except Exception as e:
        logger.error("bot_error", error=str(e), error_type=type(e).__name__)
        raise
    finally:
        await bot.stop()
        logger.info("tigerdyno_stopped")


def run():
    """Synchronous wrapper for the ``tigerdyno`` console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
