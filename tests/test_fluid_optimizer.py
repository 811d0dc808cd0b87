# tests/test_fluid_optimizer.py
import pytest
from dataclasses import replace
from datetime import timedelta

from mrsim_core.clock import ManualClock
from mrsim_core.errors import ConfigurationError
from mrsim_core.fluid import (
    FormulationCatalog,
    FormulationOptimizer,
    OperatingConditions,
    OptimizationParameters,
    PriorityWeights,
    Trend,
    calculate_trend,
)
from mrsim_core.fluid.optimizer import recommendation_band, score_composition, sub_scores


@pytest.fixture
def catalog():
    return FormulationCatalog()


@pytest.fixture
def optimizer(catalog):
    return FormulationOptimizer(catalog, clock=ManualClock(tick=timedelta(seconds=1)))


class TestScoring:
    def test_sub_scores_are_normalized(self, catalog):
        for composition in catalog.list_all().values():
            for name, value in sub_scores(composition).items():
                assert 0.0 <= value <= 1.0, name

    def test_faster_response_scores_higher(self, catalog):
        fluid = catalog.lookup("HP-IC-001")
        faster = replace(fluid, performance=replace(fluid.performance, response_time=4.0))
        weights = PriorityWeights()
        assert score_composition(faster, weights) > score_composition(fluid, weights)

    def test_more_stable_fluid_scores_higher(self, catalog):
        fluid = catalog.lookup("EF-NZF-004")
        stable = replace(fluid, performance=replace(fluid.performance, sedimentation_stability=2500.0,
                                                    temperature_stability=150.0))
        weights = PriorityWeights()
        assert score_composition(stable, weights) > score_composition(fluid, weights)

    def test_energy_weight_never_lowers_score(self, catalog):
        weights = [0.0, 0.1, 0.25, 0.5, 1.0, 2.0, 3.0]
        for composition in catalog.list_all().values():
            scores = [score_composition(composition, PriorityWeights(energy_recovery=w)) for w in weights]
            assert all(later >= earlier for earlier, later in zip(scores, scores[1:])), composition.id

    def test_cost_weight_applies_without_priorities(self, catalog):
        fluid = catalog.lookup("FR-IO-003")
        zero = PriorityWeights(0.0, 0.0, 0.0, 0.0)
        assert score_composition(fluid, zero) == pytest.approx(0.05 * (1.0 - 0.25 * 0.8))


class TestFormulationOptimizer:
    def test_selects_highest_score(self, optimizer, catalog):
        parameters = OptimizationParameters()
        result = optimizer.optimize(parameters)
        expected = max(catalog.list_all().values(), key=lambda c: score_composition(c, parameters.weights))
        assert result.best_formulation == expected.id
        assert result.score == pytest.approx(score_composition(expected, parameters.weights))

    def test_energy_priority_recommendation(self, optimizer):
        parameters = OptimizationParameters(weights=PriorityWeights(energy_recovery=0.8, response_time=0.1,
                                                                    durability=0.05, temperature_stability=0.05))
        result = optimizer.optimize(parameters)
        assert any("particle concentration" in r for r in result.recommendations)

    def test_high_temperature_recommendation(self, optimizer):
        result = optimizer.optimize(OptimizationParameters(temperature_range=(0.0, 150.0)))
        assert any("temperature-stable" in r for r in result.recommendations)

    def test_history_is_recorded(self, optimizer):
        optimizer.optimize(OptimizationParameters())
        optimizer.optimize(OptimizationParameters())
        history = optimizer.optimization_history
        assert len(history) == 2
        assert history[1].timestamp - history[0].timestamp == timedelta(seconds=1)

    def test_empty_catalog_selects_nothing(self):
        result = FormulationOptimizer(FormulationCatalog(formulations=[])).optimize(OptimizationParameters())
        assert result.best_formulation == ""
        assert result.score == 0.0

    def test_no_switch_away_from_best(self, optimizer, catalog):
        best = optimizer.optimize(OptimizationParameters()).best_formulation
        recommendation = optimizer.recommend_switch(best, OperatingConditions())
        assert recommendation.recommended_formulation == best
        assert recommendation.expected_improvement == pytest.approx(0.0)
        assert recommendation.recommendation.startswith("Not recommended")

    def test_switch_from_weaker_fluid(self, optimizer, catalog):
        conditions = OperatingConditions()
        best = optimizer.optimize(OptimizationParameters.from_conditions(conditions)).best_formulation
        weakest = min(catalog.list_all().values(),
                      key=lambda c: score_composition(c, conditions.priority_weights))
        recommendation = optimizer.recommend_switch(weakest.id, conditions)
        assert recommendation.current_formulation == weakest.id
        assert recommendation.recommended_formulation == best
        assert recommendation.expected_improvement > 0


@pytest.mark.parametrize("improvement, prefix", [
    (25.0, "Highly recommended"),
    (7.5, "Recommended"),
    (2.0, "Optional"),
    (0.0, "Not recommended"),
    (-3.0, "Not recommended"),
])
def test_recommendation_band(improvement, prefix):
    assert recommendation_band(improvement).startswith(prefix)


class TestCalculateTrend:
    def test_improving(self):
        assert calculate_trend([1.0] * 10 + [2.0] * 10) is Trend.IMPROVING

    def test_declining(self):
        assert calculate_trend([2.0] * 10 + [1.0] * 10) is Trend.DECLINING

    def test_within_threshold_is_stable(self):
        assert calculate_trend([1.0] * 10 + [1.04] * 10) is Trend.STABLE

    def test_only_last_two_windows_count(self):
        assert calculate_trend([100.0] * 5 + [1.0] * 10 + [2.0] * 10) is Trend.IMPROVING

    def test_short_history_is_stable(self):
        assert calculate_trend([1.0] * 10 + [5.0] * 9) is Trend.STABLE
        assert calculate_trend([]) is Trend.STABLE

    def test_zero_baseline_is_stable(self):
        assert calculate_trend([0.0] * 10 + [3.0] * 10) is Trend.STABLE


def test_switch_from_unknown_formulation(optimizer):
    with pytest.raises(ConfigurationError):
        optimizer.recommend_switch("XX-000", OperatingConditions())
