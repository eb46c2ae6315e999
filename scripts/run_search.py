"""
Run one city search from the CLI and print the event stream.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from app.domain.search import UnsupportedRegionError
from app.scraping.regions import supported_regions
from app.services.background_tasks import drain_background_tasks
from app.services.event_sink import EventSink
from app.services.search_orchestrator import get_search_orchestrator


async def _run(city: str) -> int:
    orchestrator = get_search_orchestrator()
    try:
        session = orchestrator.prepare(city)
    except UnsupportedRegionError:
        cities = ", ".join(sorted(supported_regions()))
        print(f"Unsupported city {city!r}. Choose one of: {cities}", file=sys.stderr)
        return 2

    sink = EventSink()
    task = asyncio.create_task(orchestrator.run(session, sink))
    async for frame in sink.frames():
        sys.stdout.write(frame.decode("utf-8"))
        sys.stdout.flush()
    summary = await task
    await drain_background_tasks()
    return 0 if summary.succeeded > 0 else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Search motorbike rentals for one city.")
    parser.add_argument("city", help="City key, e.g. hcmc, hanoi, danang, nhatrang.")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="INFO",
        help="Logging level for progress output on stderr.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )
    return asyncio.run(_run(args.city))


if __name__ == "__main__":
    raise SystemExit(main())
