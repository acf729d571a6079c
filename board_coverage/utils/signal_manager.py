# board_coverage/utils/signal_manager.py
"""
Provides an asynchronous context manager that turns SIGINT/SIGTERM into a shutdown event.

The tracker polls forever, so the only way a console run ends cleanly is through
this event: the game stream checks it at every suspension point and returns.
"""

import asyncio
import signal
from typing import Set

import structlog

logger = structlog.get_logger(__name__)


class AsyncSignalManager:
    """
    Sets `shutdown_event` when the process receives SIGINT or SIGTERM.

    Usage:
        shutdown_event = asyncio.Event()
        async with AsyncSignalManager(shutdown_event):
            await orchestrator.run()
    """

    def __init__(self, shutdown_event: asyncio.Event):
        self._shutdown_event = shutdown_event
        self._signals: Set[signal.Signals] = {signal.SIGINT, signal.SIGTERM}
        self._registered: Set[signal.Signals] = set()

    def _on_signal(self, sig: signal.Signals) -> None:
        if self._shutdown_event.is_set():
            logger.info("Shutdown already in progress.", signal_name=sig.name)
            return
        logger.warning("Shutdown signal received, stopping the tracker.", signal_name=sig.name)
        self._shutdown_event.set()

    async def __aenter__(self) -> "AsyncSignalManager":
        loop = asyncio.get_running_loop()
        for sig in self._signals:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (ValueError, NotImplementedError, RuntimeError) as e:
                # Windows event loops do not support add_signal_handler.
                logger.warning("Could not register signal handler.", signal_name=sig.name, error=str(e))
            else:
                self._registered.add(sig)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._registered:
            loop.remove_signal_handler(sig)
        self._registered.clear()
