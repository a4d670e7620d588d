"""
Session Generator - CLI Entry Point
Writes simulated behavioral sessions to CSV for replay through the anomaly ensemble
"""

import argparse
import dataclasses
import sys

import pandas as pd
import structlog

from src.core.logger import LOG_LEVELS, resolve_level, setup_logging
from src.generator import (
    CHAOS_CONFIG,
    DEV_CONFIG,
    DRIFT_CONFIG,
    NORMAL_CONFIG,
    GeneratorConfig,
    SessionAnomalyType,
    SessionGenerator,
)

logger = structlog.get_logger(__name__)


# Predefined configurations
CONFIGS = {
    "normal": NORMAL_CONFIG,
    "chaos": CHAOS_CONFIG,
    "dev": DEV_CONFIG,
    "drift": DRIFT_CONFIG,
}


def parse_arguments(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Behavioral session generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
            Examples:
            # 1000 sessions with the normal preset
            python -m src.generator.generate --config normal --count 1000 --output sessions.csv

            # Habit change after 300 sessions
            python -m src.generator.generate --config drift --drift-at 300 --output drift.csv

            # Only tab storms, 10% of the time
            python -m src.generator.generate --anomalies tab_storm --anomaly-prob 0.1 --output x.csv
        """,
    )

    # Predefined config
    parser.add_argument(
        "--config", choices=list(CONFIGS.keys()), help="Use a predefined configuration"
    )

    # Generation settings
    parser.add_argument("--count", type=int, default=1000, help="Sessions to generate (default: 1000)")
    parser.add_argument("--users", type=int, help="Number of users to simulate")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--output", required=True, help="CSV file to write")

    # Anomaly settings
    parser.add_argument(
        "--anomaly-prob", type=float, help="Probability of anomaly injection (0.0 to 1.0)"
    )
    parser.add_argument(
        "--anomalies",
        nargs="+",
        choices=[a.value for a in SessionAnomalyType],
        help="Specific anomaly types to enable",
    )

    # Drift settings
    parser.add_argument("--drift-at", type=int, help="Shift every user's baseline after N sessions")
    parser.add_argument("--drift-factor", type=float, help="Baseline scale factor for the shift")

    # Logging
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=list(LOG_LEVELS),
        default="INFO",
        help="Logging level (default: INFO)",
    )

    return parser.parse_args(argv)


def build_config_from_args(args) -> GeneratorConfig:
    """Build a GeneratorConfig from command-line arguments"""

    # Start with predefined config if specified
    if args.config:
        config = CONFIGS[args.config]
        logger.info("Using predefined configuration", config_name=args.config)
    else:
        config = GeneratorConfig()
        logger.info("Using default configuration")

    # Override with command-line arguments
    overrides = {}
    if args.users:
        overrides["num_users"] = args.users
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.anomaly_prob is not None:
        overrides["anomaly_probability"] = args.anomaly_prob
    if args.anomalies:
        overrides["enabled_anomalies"] = [SessionAnomalyType(a) for a in args.anomalies]
    if args.drift_at is not None:
        overrides["drift_at"] = args.drift_at
    if args.drift_factor is not None:
        overrides["drift_factor"] = args.drift_factor

    return dataclasses.replace(config, **overrides)


def main(argv=None):
    """Main entry point"""
    args = parse_arguments(argv)

    # Setup logging
    setup_logging(level=resolve_level(args.log_level))

    logger.info("Starting session generator")

    try:
        config = build_config_from_args(args)
        generator = SessionGenerator(config)

        df = pd.DataFrame([sample.to_dict() for sample in generator.generate(args.count)])
        # Feature columns must be the only numeric ones for replay
        df = df.drop(columns=["index"])
        df["anomaly"] = df["anomaly"].fillna("none")
        df.to_csv(args.output, index=False)

        logger.info(
            "Generator completed successfully",
            sessions=len(df),
            anomalies_injected=generator.anomalies_injected,
            output=args.output,
        )
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Generator failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
