"""Unified entry point for smartbot commands."""

import logging
import sys

log = logging.getLogger(__name__)


def main():
    if len(sys.argv) < 2:
        logging.basicConfig(level=logging.INFO)
        log.error("Usage: python -m smartbot <command> [args...]")
        log.error("Available commands:")
        log.error("  evaluate    - Run one consensus evaluation over the configured symbols")
        log.error("  strategies  - List registered strategies")
        sys.exit(1)

    command = sys.argv[1]

    if command == "evaluate":
        import argparse
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s  %(levelname)-8s  %(message)s",
            datefmt="%H:%M:%S",
        )
        p = argparse.ArgumentParser(description="Run one consensus evaluation")
        p.add_argument("--config", required=True, help="Path to YAML config file")
        p.add_argument("--run-id", default=None, help="Override the generated run id")
        p.add_argument("--debug", action="store_true", help="Log strategy opinions and phases")
        args = p.parse_args(sys.argv[2:])
        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        from smartbot.engine.runner import run_evaluation
        run_id = run_evaluation(args.config, args.run_id)
        log.info("Finished: run_id %s", run_id)
    elif command == "strategies":
        from smartbot.strategy.registry import default_roster
        for strategy, specs in default_roster():
            cols = sorted({c for spec in specs for c in spec.base.columns})
            print(f"{strategy.name:<22} min_bars={strategy.min_bars:<4} {', '.join(cols)}")
    else:
        logging.basicConfig(level=logging.INFO)
        log.error("Unknown command: %s", command)
        sys.exit(1)


if __name__ == "__main__":
    main()
