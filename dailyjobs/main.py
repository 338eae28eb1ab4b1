"""Daily jobs entry point.

The HPP Actual job runs only with a cost calculator. Point ``HPP_CALCULATOR``
at an async ``calculate(periode, recalculate_existing=False)`` function, e.g.
``HPP_CALCULATOR=myerp.hpp:calculate_hpp_actual``, or call
``dailyjobs.app.run(cost_calculator=...)`` from your own entry point.
"""

import asyncio
import logging

from dailyjobs.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run the job schedulers and the HTTP control server."""
    from dailyjobs.app import run

    logger.info("Starting daily jobs (tz=%s)...", settings.scheduler_timezone)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")


if __name__ == "__main__":
    main()
