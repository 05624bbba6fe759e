"""
Worker process entry point.

Configures logging, builds the pipeline and runs the worker pool until
SIGINT/SIGTERM. Jobs still running at shutdown keep their lease and are
recovered by the next worker process.

Usage:
    python -m edugen.main

Dependencies: asyncio, edugen.dependencies, edugen.observability
System role: Worker process initialization
"""

import asyncio
import logging
import signal

from edugen.configs import get_settings
from edugen.dependencies import running_pipeline
from edugen.observability.logger import configure_logging

logger = logging.getLogger(__name__)


async def run_worker() -> None:
    """Run the worker pool until a stop signal arrives."""
    settings = get_settings()
    configure_logging(settings.log_level)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support.
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop_event.set))

    async with running_pipeline(settings) as pipeline:
        logger.info(
            f"{__name__}:run_worker - Worker started "
            f"(env={settings.environment}, workers={settings.job_queue.max_workers}, "
            f"model={settings.llm.model_version})"
        )
        await stop_event.wait()
        logger.info(f"{__name__}:run_worker - Shutdown requested")
        counts = await pipeline.job_store.count_by_status()
        logger.info(
            f"{__name__}:run_worker - Job counts at shutdown: "
            f"{ {status.value: count for status, count in counts.items()} }"
        )


def main() -> None:
    """Console script entry point."""
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
