import argparse
import asyncio

import config
from demo.scenarios import SCENARIOS
from eventhub.bus import create_pubsub


def load_scenario(key: str):
    return SCENARIOS.get(key, SCENARIOS["1"])


async def run_scenario(key: str):
    hub = create_pubsub()
    return await load_scenario(key)(hub)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run a pub/sub demo scenario")
    parser.add_argument(
        "--scenario", "-s",
        help="scenario key (1=greet, 2=once, 3=faulty listener)",
        choices=sorted(SCENARIOS),
        default="1",
    )
    parser.add_argument(
        "--log-level",
        help="log level for the eventhub loggers",
        default=config.LOG_LEVEL,
    )
    args = parser.parse_args(argv)

    config.configure_logging(args.log_level)

    for line in asyncio.run(run_scenario(args.scenario)):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
