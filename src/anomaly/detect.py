"""
CLI for replaying session feature vectors through the fusion ensemble.

Usage:
    python -m src.anomaly.detect --input sessions.csv [options]
    python -m src.anomaly.detect --simulate 1000 --preset drift [options]
"""

import argparse
import dataclasses
import json
import math
import os
import sys

import pandas as pd
import structlog

from src.core.logger import LOG_LEVELS, resolve_level, setup_logging
from src.drift import DriftEvent
from src.generator import CHAOS_CONFIG, DEV_CONFIG, DRIFT_CONFIG, NORMAL_CONFIG, SessionGenerator

from .ensemble import FusionEnsemble
from .methods import HotellingT2Monitor
from .models import EnsembleConfig

logger = structlog.get_logger(__name__)


# Generator presets for --simulate
PRESETS = {
    "normal": NORMAL_CONFIG,
    "chaos": CHAOS_CONFIG,
    "dev": DEV_CONFIG,
    "drift": DRIFT_CONFIG,
}


def parse_arguments(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Replay session feature vectors through the anomaly fusion ensemble",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        # Replay a CSV export (numeric columns are used in order)
        python -m src.anomaly.detect --input sessions.csv

        # Simulate 2000 sessions with a habit change midway
        python -m src.anomaly.detect --simulate 2000 --preset drift --seed 7

        # Stricter fusion
        python -m src.anomaly.detect --input sessions.csv --threshold 0.8 --spc-weight 0.3
        """,
    )

    # Input
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", help="CSV file with one session feature vector per row")
    source.add_argument("--simulate", type=int, help="Generate N synthetic sessions")
    parser.add_argument(
        "--preset",
        choices=list(PRESETS.keys()),
        default="normal",
        help="Generator preset for --simulate (default: normal)",
    )
    parser.add_argument("--seed", type=int, help="Random seed for --simulate")

    # Fusion
    parser.add_argument(
        "--threshold",
        type=float,
        default=float(os.getenv("ENSEMBLE_THRESHOLD", "0.5")),
        help="Combined score threshold (default: 0.5 or ENSEMBLE_THRESHOLD env var)",
    )
    parser.add_argument(
        "--spc-weight",
        type=float,
        default=float(os.getenv("ENSEMBLE_SPC_WEIGHT", "0.5")),
        help="Weight of the SPC vote (default: 0.5)",
    )
    parser.add_argument(
        "--if-weight",
        type=float,
        default=float(os.getenv("ENSEMBLE_IF_WEIGHT", "0.5")),
        help="Weight of the novelty vote (default: 0.5)",
    )

    # Collaborators
    parser.add_argument("--window-size", type=int, default=100, help="SPC window size (default: 100)")
    parser.add_argument("--sigma", type=float, default=3.0, help="SPC sigma multiplier (default: 3.0)")
    parser.add_argument("--n-trees", type=int, default=15, help="Isolation forest trees (default: 15)")
    parser.add_argument(
        "--subsample-size", type=int, default=64, help="Isolation forest subsample (default: 64)"
    )
    parser.add_argument(
        "--buffer-size", type=int, default=200, help="Feature buffer capacity (default: 200)"
    )
    parser.add_argument(
        "--retrain-interval",
        type=int,
        default=int(os.getenv("ENSEMBLE_RETRAIN_INTERVAL", "50")),
        help="Points between novelty scorer retrains (default: 50)",
    )
    parser.add_argument(
        "--inline-retraining",
        action="store_true",
        help="Retrain synchronously inside predict (reproducible runs)",
    )

    # Drift
    parser.add_argument(
        "--drift-delta",
        type=float,
        default=float(os.getenv("DRIFT_DELTA", "0.002")),
        help="Drift detector confidence parameter (default: 0.002)",
    )
    parser.add_argument("--no-drift", action="store_true", help="Disable drift tracking")

    # Multivariate chart
    parser.add_argument(
        "--hotelling",
        action="store_true",
        help="Also run a Hotelling T2 chart over the raw feature vectors",
    )
    parser.add_argument(
        "--t2-alpha", type=float, default=0.001, help="T2 false alarm rate (default: 0.001)"
    )
    parser.add_argument(
        "--t2-burn-in",
        type=int,
        default=1000,
        help="Observations before the T2 control limit is fixed (default: 1000)",
    )

    # Output
    parser.add_argument("--output", help="Write per-point predictions to this CSV file")

    # Logging
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=list(LOG_LEVELS),
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )

    return parser.parse_args(argv)


def build_config(args) -> EnsembleConfig:
    """Build configuration from arguments"""
    return EnsembleConfig(
        spc_weight=args.spc_weight,
        if_weight=args.if_weight,
        threshold=args.threshold,
        spc_window_size=args.window_size,
        sigma_multiplier=args.sigma,
        n_trees=args.n_trees,
        subsample_size=args.subsample_size,
        random_state=args.seed,
        max_buffer_size=args.buffer_size,
        retrain_interval=args.retrain_interval,
        background_retraining=not args.inline_retraining,
        track_drift=not args.no_drift,
        drift_delta=args.drift_delta,
    )


def load_vectors(path: str) -> list[list[float]]:
    """Read feature vectors from the numeric columns of a CSV file

    Raises:
        ValueError: If the file has no numeric columns or no complete rows
    """
    df = pd.read_csv(path)
    numeric = df.select_dtypes(include="number")
    if numeric.shape[1] == 0:
        raise ValueError(f"No numeric columns in {path}")

    complete = numeric.dropna()
    dropped = len(numeric) - len(complete)
    if dropped:
        logger.warning("Skipping rows with missing values", rows=dropped, path=path)
    if complete.empty:
        raise ValueError(f"No complete rows in {path}")

    logger.info("Loaded feature vectors", path=path, rows=len(complete), columns=list(complete.columns))
    return complete.astype(float).values.tolist()


def simulate_vectors(preset: str, count: int, seed: int | None = None) -> list[list[float]]:
    config = PRESETS[preset]
    if seed is not None:
        config = dataclasses.replace(config, seed=seed)
    return list(SessionGenerator(config).vectors(count))


def run_replay(
    ensemble: FusionEnsemble,
    vectors: list[list[float]],
    t2_monitor: HotellingT2Monitor | None = None,
) -> tuple[dict, list[dict]]:
    """Feed every vector to the ensemble, and to the T2 chart when one is given

    Returns:
        Summary dict and the per-point prediction rows
    """
    drift_events: list[DriftEvent] = []
    if ensemble.drift_detector is not None:
        ensemble.drift_detector.add_listener(drift_events.append)

    rows = []
    anomaly_indices = []
    t2_alarms = []
    for index, vector in enumerate(vectors):
        result = ensemble.predict(vector)
        if result.is_anomaly:
            anomaly_indices.append(index)
            logger.info(
                "Anomaly detected",
                index=index,
                combined_score=round(result.combined_score, 3),
                severity=result.severity,
                spc_flag=result.spc_flag,
                if_score=round(result.if_score, 3),
            )

        row = result.to_dict()
        row.pop("details")
        row["index"] = index
        if t2_monitor is not None:
            row["t2_signal"] = t2_monitor.ingest(vector)
            if row["t2_signal"]:
                t2_alarms.append(index)
        rows.append(row)

    ensemble.wait_for_retraining()

    total = len(rows)
    summary = {
        "points": total,
        "anomalies": len(anomaly_indices),
        "anomaly_rate": len(anomaly_indices) / total if total else 0.0,
        "anomaly_indices": anomaly_indices,
        "mean_combined_score": (
            sum(row["combined_score"] for row in rows) / total if total else 0.0
        ),
        "drift_events": [event.to_dict() for event in drift_events],
        "retrainer": ensemble.retrainer.get_stats(),
        "weights": {"spc": ensemble.spc_weight, "if": ensemble.if_weight},
        "threshold": ensemble.threshold,
        "hotelling": None,
    }
    if t2_monitor is not None:
        summary["hotelling"] = {
            "n": t2_monitor.n,
            "ucl": t2_monitor.ucl if math.isfinite(t2_monitor.ucl) else None,
            "alarms": len(t2_alarms),
            "alarm_indices": t2_alarms,
        }
    return summary, rows


def main(argv=None):
    """Main entry point"""
    args = parse_arguments(argv)

    # Setup logging
    setup_logging(level=resolve_level(args.log_level))

    logger.info("Starting session replay")

    try:
        if args.input:
            vectors = load_vectors(args.input)
        else:
            vectors = simulate_vectors(args.preset, args.simulate, args.seed)

        t2_monitor = None
        if args.hotelling and vectors:
            t2_monitor = HotellingT2Monitor(
                n_features=len(vectors[0]), alpha=args.t2_alpha, burn_in=args.t2_burn_in
            )

        with FusionEnsemble(build_config(args)) as ensemble:
            summary, rows = run_replay(ensemble, vectors, t2_monitor)

        if args.output:
            pd.DataFrame(rows).to_csv(args.output, index=False)
            logger.info("Predictions written", path=args.output, rows=len(rows))

        print(json.dumps(summary, indent=2, default=str))

        logger.info(
            "Replay completed successfully",
            points=summary["points"],
            anomalies=summary["anomalies"],
            drift_events=len(summary["drift_events"]),
        )
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Replay failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
