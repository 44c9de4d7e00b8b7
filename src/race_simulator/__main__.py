import argparse
import asyncio
import sys
from typing import Optional, Sequence

import structlog

from .application.delivery_tracker import DeliveryTracker
from .application.dispatcher import Dispatcher
from .application.pacing import PacingScheduler
from .application.replay_service import ReplayService
from .application.timeline import Timeline
from .config import SimulatorSettings, get_settings
from .domain.errors import RaceFileError, RecordParseError, TransportError
from .domain.events import ReplayCompleted
from .domain.models import Demozone, SimulationContext
from .infrastructure.http_transport import AiohttpEventSender
from .infrastructure.logging import setup_logging

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_FAILURE = 1


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid race id: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"race id must be a positive integer, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="race-simulator",
        description="IoT Racing Race Simulator. Race simulator for IoTCS testing & stressing.",
    )
    parser.add_argument("--racefile", "-r", required=True, metavar="FILE",
                        help="Race data used for simulation")
    parser.add_argument("--raceid", "-i", required=True, type=positive_int, metavar="NUMBER",
                        help="Race ID used for the simulation")
    parser.add_argument("--demozone", "-d", required=True, choices=[z.value for z in Demozone],
                        help="Demozone used for the simulation")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose logging.")
    return parser


async def run_simulation(
    timeline: Timeline,
    context: SimulationContext,
    settings: SimulatorSettings,
    verbose: bool = False,
) -> ReplayCompleted:
    tracker = DeliveryTracker()
    scheduler = PacingScheduler(speed=settings.speed)

    async with AiohttpEventSender(
        connect_timeout=settings.connect_timeout_sec,
        request_timeout=settings.request_timeout_sec,
    ) as sender:
        dispatcher = Dispatcher(
            sender,
            context,
            tracker,
            base_url=settings.base_url,
            data_path=settings.data_path,
            alert_path=settings.alert_path,
        )
        service = ReplayService(
            timeline,
            context,
            scheduler,
            dispatcher,
            tracker,
            show_progress=not verbose,
        )
        return await service.run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    # argparse exits 2 on bad flags and 0 on --help, before the race file is touched
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(settings.env, verbose=args.verbose)

    context = SimulationContext(race_id=args.raceid, demozone=Demozone(args.demozone))

    try:
        timeline = Timeline.from_file(args.racefile)
    except RaceFileError as e:
        logger.error("race_file_error", path=e.path, reason=e.reason)
        return EXIT_FAILURE

    logger.info("race_file_loaded", path=timeline.source, entries=timeline.raw_line_count, records=len(timeline))
    logger.info("simulating_race", race_id=context.race_id, demozone=context.demozone.value,
                target=settings.base_url)

    try:
        asyncio.run(run_simulation(timeline, context, settings, verbose=args.verbose))
    except RecordParseError as e:
        logger.error("record_parse_error", line=e.line_number, reason=e.reason)
        return EXIT_FAILURE
    except TransportError as e:
        logger.error("dispatch_transport_error", url=e.url, reason=e.reason)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("simulation_interrupted")
        return EXIT_FAILURE

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
