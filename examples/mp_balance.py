import argparse
import logging

from ndncc.logger import SimulationFileLogger
from ndncc.name import Name
from ndncc.network import ShaperMode
from ndncc.scenario import DEFAULT_DURATION, MultipathBalanceScenario

if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Multipath balancing over two bottlenecks"
    )
    parser.add_argument(
        "--consumer",
        choices=["window", "aimd", "rate"],
        default="window",
        help="the consumer pacing policy",
    )
    parser.add_argument(
        "--shaper",
        choices=[mode.value for mode in ShaperMode],
        default=ShaperMode.DROPTAIL.value,
        help="the interest shaper, None disables shaping and NACKs",
    )
    parser.add_argument(
        "--strategy",
        choices=["best-route", "congestion-aware"],
        default="congestion-aware",
        help="the forwarding strategy used when shaping is enabled",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=DEFAULT_DURATION,
        help="the simulated duration in seconds",
    )
    parser.add_argument("--seed", type=int, help="seed the random generators")
    parser.add_argument(
        "--trace-dir",
        type=str,
        help="write event traces to the specified directory",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="increase logging verbosity"
    )
    args = parser.parse_args()

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    simulation_logger = None
    if args.trace_dir:
        simulation_logger = SimulationFileLogger(args.trace_dir)

    scenario = MultipathBalanceScenario(
        consumer=args.consumer,
        shaper=args.shaper,
        strategy=args.strategy,
        seed=args.seed,
        simulation_logger=simulation_logger,
    )
    scenario.run(args.duration)

    fib_entry = scenario.nodes[1].strategy.fib[Name.parse("/prefix1")]
    for path in fib_entry.paths:
        logging.info("/prefix1 via %s: cwnd %d", path.face.name, path.cwnd)
