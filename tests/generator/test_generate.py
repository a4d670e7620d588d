"""
Tests for the session generator CLI.
"""

import pandas as pd

from src.anomaly.detect import load_vectors
from src.generator import DRIFT_CONFIG, SessionAnomalyType
from src.generator.generate import build_config_from_args, main, parse_arguments


class TestGenerateCli:
    """Tests for the generate entry point."""

    def test_preset_is_not_mutated(self):
        args = parse_arguments(["--config", "drift", "--drift-at", "10", "--output", "x.csv"])
        config = build_config_from_args(args)

        assert config.drift_at == 10
        assert DRIFT_CONFIG.drift_at == 500

    def test_anomaly_overrides(self):
        args = parse_arguments(
            ["--anomalies", "tab_storm", "late_night", "--anomaly-prob", "0.2", "--output", "x.csv"]
        )
        config = build_config_from_args(args)

        assert config.anomaly_probability == 0.2
        assert config.enabled_anomalies == [
            SessionAnomalyType.TAB_STORM,
            SessionAnomalyType.LATE_NIGHT,
        ]

    def test_writes_replayable_csv(self, tmp_path):
        output = tmp_path / "sessions.csv"

        assert main(["--count", "40", "--seed", "2", "--anomaly-prob", "0", "--output", str(output)]) == 0

        df = pd.read_csv(output)
        assert len(df) == 40
        assert "index" not in df.columns
        assert set(df["anomaly"]) == {"none"}

        vectors = load_vectors(str(output))
        assert len(vectors) == 40
        assert all(len(vector) == 5 for vector in vectors)

    def test_unwritable_output_fails(self, tmp_path):
        assert main(["--count", "5", "--output", str(tmp_path / "missing" / "out.csv")]) == 1

    def test_lowercase_log_level(self, tmp_path):
        args = parse_arguments(["--log-level", "debug", "--output", "x.csv"])
        assert args.log_level == "DEBUG"

        assert main(["--count", "3", "--log-level", "warning", "--output", str(tmp_path / "s.csv")]) == 0
