"""
Tests for the SPC + novelty fusion ensemble.
"""

from unittest.mock import MagicMock

import pytest

from src.anomaly.ensemble import FusionEnsemble
from src.anomaly.methods.base import NoveltyScorer
from src.anomaly.models import EnsembleConfig, PredictionResult
from src.drift import DriftDetector


def trained_scorer_stub(score=None, error=None):
    scorer = MagicMock(spec=NoveltyScorer)
    scorer.name = "stub_scorer"
    scorer.is_trained = True
    scorer.get_model_info.return_value = {"is_trained": True}
    if error is not None:
        scorer.predict.side_effect = error
    else:
        scorer.predict.return_value = [score]
    return scorer


@pytest.fixture
def stub_ensemble(stub_spc, untrained_scorer):
    ensemble = FusionEnsemble(
        EnsembleConfig(background_retraining=False),
        spc=stub_spc,
        scorer_factory=lambda: untrained_scorer,
    )
    yield ensemble
    ensemble.close()


class TestFusionEnsemblePredict:
    """Tests for FusionEnsemble.predict."""

    def test_composite_feature_uses_importance_weights(self, stub_ensemble):
        result = stub_ensemble.predict([30, 5, 2, 1, 0])

        assert result.composite_feature == pytest.approx(10.8)

    @pytest.mark.parametrize(
        "features,expected",
        [
            ([10.0, 4.0], 4.0),
            ([10.0], 3.0),
            ([1.0, 1.0, 1.0, 1.0, 1.0, 100.0, 100.0], 1.0),
        ],
    )
    def test_composite_feature_uses_leading_features(self, stub_ensemble, features, expected):
        assert stub_ensemble.composite_feature(features) == pytest.approx(expected)

    def test_spc_vote_alone_meets_threshold(self, stub_ensemble, stub_spc, untrained_scorer):
        result = stub_ensemble.predict([30, 5, 2, 1, 0])

        assert isinstance(result, PredictionResult)
        assert result.spc_flag == 1
        assert result.if_score == 0.0
        assert result.combined_score == pytest.approx(0.5)
        assert result.is_anomaly is True
        assert result.confidence == pytest.approx(0.0)
        stub_spc.add_data_point.assert_called_once_with(pytest.approx(10.8))
        untrained_scorer.predict.assert_not_called()

    def test_novelty_vote(self, stub_spc):
        stub_spc.add_data_point.return_value = False
        scorer = trained_scorer_stub(score=0.9)

        with FusionEnsemble(spc=stub_spc, scorer_factory=lambda: scorer) as ensemble:
            result = ensemble.predict([1.0, 2.0, 3.0])

        assert result.spc_flag == 0
        assert result.if_score == 0.9
        assert result.combined_score == pytest.approx(0.5)
        assert result.is_anomaly is True
        scorer.predict.assert_called_once_with([[1.0, 2.0, 3.0]])

    def test_novelty_score_at_threshold_does_not_vote(self, stub_spc):
        stub_spc.add_data_point.return_value = False
        scorer = trained_scorer_stub(score=0.7)

        with FusionEnsemble(spc=stub_spc, scorer_factory=lambda: scorer) as ensemble:
            result = ensemble.predict([1.0, 2.0])

        assert result.combined_score == 0.0
        assert result.is_anomaly is False
        assert result.confidence == pytest.approx(1.0)

    def test_both_votes(self, stub_spc):
        scorer = trained_scorer_stub(score=0.95)

        with FusionEnsemble(spc=stub_spc, scorer_factory=lambda: scorer) as ensemble:
            result = ensemble.predict([1.0, 2.0])

        assert result.combined_score == pytest.approx(1.0)
        assert result.confidence == pytest.approx(1.0)
        assert result.severity == "critical"

    def test_scorer_failure_fails_open(self, stub_spc):
        stub_spc.add_data_point.return_value = False
        scorer = trained_scorer_stub(error=RuntimeError("model corrupted"))

        with FusionEnsemble(spc=stub_spc, scorer_factory=lambda: scorer) as ensemble:
            result = ensemble.predict([1.0, 2.0])

        assert result.if_score == 0.0
        assert result.is_anomaly is False

    @pytest.mark.parametrize("features", [[], None])
    def test_empty_vector_raises(self, stub_ensemble, features):
        with pytest.raises(ValueError):
            stub_ensemble.predict(features)

    def test_dimensionality_change_raises(self, stub_ensemble, stub_spc):
        stub_ensemble.predict([1.0, 2.0, 3.0])

        with pytest.raises(ValueError, match="expected 3"):
            stub_ensemble.predict([1.0, 2.0])
        assert len(stub_ensemble.feature_buffer) == 1
        assert stub_spc.add_data_point.call_count == 1

    def test_non_finite_vector_raises(self, stub_ensemble):
        with pytest.raises(ValueError):
            stub_ensemble.predict([1.0, float("nan")])
        assert stub_ensemble.data_point_count == 0

    def test_buffer_holds_copies(self, stub_ensemble):
        features = [1.0, 2.0]
        stub_ensemble.predict(features)
        features[0] = 99.0

        assert stub_ensemble.feature_buffer[0] == [1.0, 2.0]

    def test_buffer_is_bounded(self, stub_spc, untrained_scorer):
        config = EnsembleConfig(max_buffer_size=10, background_retraining=False)
        with FusionEnsemble(config, spc=stub_spc, scorer_factory=lambda: untrained_scorer) as ensemble:
            for i in range(25):
                ensemble.predict([float(i), 1.0])

            assert len(ensemble.feature_buffer) == 10
            assert ensemble.feature_buffer[0] == [15.0, 1.0]
            assert ensemble.data_point_count == 25

    def test_details_snapshots(self, stub_ensemble):
        details = stub_ensemble.predict([1.0, 2.0]).details

        assert set(details) == {"spc", "novelty", "drift"}
        assert details["spc"] == {"is_initialized": True}
        assert details["novelty"] == {"is_trained": False}
        assert details["drift"]["width"] == 1

    def test_drift_tracking_disabled(self, stub_spc, untrained_scorer):
        config = EnsembleConfig(track_drift=False, background_retraining=False)
        with FusionEnsemble(config, spc=stub_spc, scorer_factory=lambda: untrained_scorer) as ensemble:
            result = ensemble.predict([1.0, 2.0])

        assert ensemble.drift_detector is None
        assert result.drift_detected is False
        assert result.details["drift"] is None

    def test_drift_in_composite_is_reported(self, stub_spc, untrained_scorer):
        detector = DriftDetector()
        with FusionEnsemble(
            EnsembleConfig(background_retraining=False),
            spc=stub_spc,
            scorer_factory=lambda: untrained_scorer,
            drift_detector=detector,
        ) as ensemble:
            flags = [ensemble.predict([0.0, 1.0]).drift_detected for _ in range(100)]
            flags += [ensemble.predict([100.0, 1.0]).drift_detected for _ in range(100)]

        assert not any(flags[:100])
        assert any(flags[100:])
        assert ensemble.drift_count == detector.drift_count


class TestFusionEnsembleRetraining:
    """Tests for periodic retraining of the novelty scorer."""

    def test_retrains_on_interval(self, ensemble_config, session_vectors):
        with FusionEnsemble(ensemble_config) as ensemble:
            for vector in session_vectors[:49]:
                ensemble.predict(vector)
            assert not ensemble.retrainer.scorer.is_trained

            ensemble.predict(session_vectors[49])
            assert ensemble.retrainer.scorer.is_trained
            assert ensemble.retrainer.scorer.get_model_info()["n_training_samples"] == 50

            result = ensemble.predict(session_vectors[50])
            assert 0.0 < result.if_score <= 1.0

    def test_no_retrain_below_minimum_samples(self, session_vectors):
        config = EnsembleConfig(retrain_interval=10, background_retraining=False)
        with FusionEnsemble(config) as ensemble:
            for vector in session_vectors[:20]:
                ensemble.predict(vector)

            assert not ensemble.retrainer.scorer.is_trained
            assert ensemble.retrainer.stats["submitted"] == 0

    def test_retrain_failure_does_not_abort_predict(self, stub_spc):
        scorer = MagicMock(spec=NoveltyScorer)
        scorer.name = "broken"
        scorer.is_trained = False
        scorer.fit.side_effect = ValueError("bad batch")
        scorer.get_model_info.return_value = {}

        config = EnsembleConfig(retrain_interval=30, background_retraining=False)
        with FusionEnsemble(config, spc=stub_spc, scorer_factory=lambda: scorer) as ensemble:
            for i in range(30):
                ensemble.predict([float(i), 1.0])

            assert ensemble.retrainer.stats["failed"] == 1
            assert ensemble.data_point_count == 30

    def test_background_retraining(self, session_vectors):
        config = EnsembleConfig(random_state=0, background_retraining=True)
        with FusionEnsemble(config) as ensemble:
            for vector in session_vectors[:50]:
                ensemble.predict(vector)

            assert ensemble.wait_for_retraining(timeout=10) is True
            assert ensemble.retrainer.scorer.is_trained

    def test_end_to_end_outlier(self, ensemble_config, session_vectors):
        with FusionEnsemble(ensemble_config) as ensemble:
            for vector in session_vectors:
                ensemble.predict(vector)

            result = ensemble.predict([300.0, 40.0, 0.5, 1.0, 1.0])

        assert result.spc_flag == 1
        assert result.if_score > 0
        assert result.is_anomaly is True
        assert result.severity in {"medium", "critical"}


class TestFusionEnsembleConfiguration:
    """Tests for weights, threshold, reset and stats."""

    @pytest.mark.parametrize(
        "weights,expected",
        [
            ((3.0, 1.0), (0.75, 0.25)),
            ((0.2, 0.2), (0.5, 0.5)),
            ((-1.0, 2.0), (0.0, 1.0)),
            ((0.0, 0.0), (0.5, 0.5)),
            ((-1.0, -1.0), (0.5, 0.5)),
        ],
    )
    def test_update_weights(self, stub_ensemble, weights, expected):
        stub_ensemble.update_weights(*weights)

        assert (stub_ensemble.spc_weight, stub_ensemble.if_weight) == pytest.approx(expected)

    def test_weights_normalized_from_config(self, stub_spc, untrained_scorer):
        config = EnsembleConfig(spc_weight=2.0, if_weight=6.0)
        with FusionEnsemble(config, spc=stub_spc, scorer_factory=lambda: untrained_scorer) as ensemble:
            assert ensemble.spc_weight == pytest.approx(0.25)
            assert ensemble.if_weight == pytest.approx(0.75)

    def test_weights_change_decision(self, stub_ensemble):
        stub_ensemble.update_weights(0.3, 0.7)
        result = stub_ensemble.predict([1.0, 2.0])

        assert result.combined_score == pytest.approx(0.3)
        assert result.is_anomaly is False
        assert result.confidence == pytest.approx(0.4)

    @pytest.mark.parametrize("threshold,expected", [(0.8, 0.8), (1.5, 1.0), (-0.2, 0.0)])
    def test_update_threshold_clamps(self, stub_ensemble, threshold, expected):
        stub_ensemble.update_threshold(threshold)

        assert stub_ensemble.threshold == expected

    def test_reset(self, stub_ensemble, stub_spc):
        for i in range(5):
            stub_ensemble.predict([float(i), 1.0, 2.0])

        stub_ensemble.reset()

        assert len(stub_ensemble.feature_buffer) == 0
        assert stub_ensemble.data_point_count == 0
        assert stub_ensemble.anomaly_count == 0
        assert stub_ensemble.drift_detector.width == 0
        stub_spc.reset.assert_called_once()

        # Dimensionality is learned again after a reset
        stub_ensemble.predict([1.0])

    def test_reset_restores_untrained_scorer_with_configured_size(self, session_vectors):
        config = EnsembleConfig(n_trees=25, subsample_size=32, random_state=0, background_retraining=False)
        with FusionEnsemble(config) as ensemble:
            for vector in session_vectors[:50]:
                ensemble.predict(vector)
            assert ensemble.retrainer.scorer.is_trained

            ensemble.reset()

            scorer = ensemble.retrainer.scorer
            assert not scorer.is_trained
            assert scorer.get_config()["n_trees"] == 25
            assert scorer.get_config()["subsample_size"] == 32

    def test_get_stats(self, stub_ensemble):
        stub_ensemble.predict([1.0, 2.0])
        stats = stub_ensemble.get_stats()

        assert stats["spc_weight"] == 0.5
        assert stats["if_weight"] == 0.5
        assert stats["threshold"] == 0.5
        assert stats["buffer_size"] == 1
        assert stats["data_point_count"] == 1
        assert stats["anomaly_count"] == 1
        assert stats["spc_stats"] == {"is_initialized": True}
        assert stats["novelty_model_info"] == {"is_trained": False}
        assert stats["retrainer_stats"]["submitted"] == 0
        assert stats["drift_stats"]["width"] == 1

    def test_result_to_dict(self, stub_ensemble):
        data = stub_ensemble.predict([1.0, 2.0]).to_dict()

        assert data["is_anomaly"] is True
        assert data["spc_flag"] == 1
        assert "details" in data

    def test_context_manager_closes_retrainer(self, session_vectors):
        with FusionEnsemble(EnsembleConfig(random_state=0)) as ensemble:
            pass

        assert ensemble.retrainer.submit(session_vectors) is False


class TestPredictionResultSeverity:
    """Tests for the severity label."""

    @pytest.mark.parametrize(
        "score,severity",
        [
            (1.0, "critical"),
            (0.8, "critical"),
            (0.7, "high"),
            (0.5, "medium"),
            (0.3, "low"),
            (0.0, "low"),
        ],
    )
    def test_severity(self, score, severity):
        result = PredictionResult(
            is_anomaly=score >= 0.5,
            combined_score=score,
            spc_flag=0,
            if_score=0.0,
            composite_feature=0.0,
            confidence=abs(score - 0.5) * 2,
        )

        assert result.severity == severity
