"""
Tests for the Isolation Forest novelty scorer.
"""

import pytest

from src.anomaly.methods.isolation_forest import IsolationForestScorer


@pytest.fixture
def trained_scorer(session_vectors):
    scorer = IsolationForestScorer({"n_trees": 50, "random_state": 0})
    scorer.fit(session_vectors)
    return scorer


class TestIsolationForestScorer:
    """Tests for IsolationForestScorer class."""

    def test_default_config(self):
        scorer = IsolationForestScorer()

        assert scorer.name == "isolation_forest"
        assert scorer.get_config() == {"n_trees": 15, "subsample_size": 64, "random_state": None}
        assert not scorer.is_trained

    def test_predict_before_fit_raises(self):
        with pytest.raises(RuntimeError, match="trained"):
            IsolationForestScorer().predict([[1.0, 2.0]])

    def test_fit_empty_raises(self):
        with pytest.raises(ValueError, match="Training data cannot be empty"):
            IsolationForestScorer().fit([])

    def test_fit_one_dimensional_raises(self):
        with pytest.raises(ValueError):
            IsolationForestScorer().fit([1.0, 2.0, 3.0])

    def test_fit_ragged_raises(self):
        with pytest.raises(ValueError):
            IsolationForestScorer().fit([[1.0, 2.0], [1.0]])

    def test_fit_sets_model_info(self, trained_scorer, session_vectors):
        info = trained_scorer.get_model_info()

        assert info["is_trained"] is True
        assert info["n_trees"] == 50
        assert info["subsample_size"] == 64
        assert info["max_height"] == 6
        assert info["feature_count"] == 5
        assert info["n_training_samples"] == len(session_vectors)
        assert info["trained_at"] is not None

    def test_fit_on_fewer_samples_than_subsample(self):
        scorer = IsolationForestScorer({"random_state": 0})
        scorer.fit([[float(i), float(i % 3)] for i in range(10)])

        assert scorer.is_trained

    def test_scores_are_in_unit_interval(self, trained_scorer, session_vectors):
        scores = trained_scorer.predict(session_vectors[:20])

        assert len(scores) == 20
        assert all(0.0 <= score <= 1.0 for score in scores)

    def test_outlier_scores_higher_than_inlier(self, trained_scorer):
        inlier, outlier = trained_scorer.predict(
            [
                [30.0, 3.0, 10.0, 0.4, 0.2],
                [300.0, 40.0, 0.5, 1.0, 1.0],
            ]
        )

        assert outlier > inlier
        assert outlier > 0.5

    def test_single_vector_input(self, trained_scorer):
        assert len(trained_scorer.predict([30.0, 3.0, 10.0, 0.4, 0.2])) == 1

    def test_refit_replaces_model(self, trained_scorer):
        trained_scorer.fit([[1.0, 2.0], [2.0, 3.0], [3.0, 4.0]])

        assert trained_scorer.get_model_info()["feature_count"] == 2
        assert trained_scorer.get_model_info()["n_training_samples"] == 3

    def test_repr(self):
        assert "n_trees" in repr(IsolationForestScorer())
