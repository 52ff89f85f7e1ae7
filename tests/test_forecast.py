"""Tests for the commissioning forecast and fill-rate table."""

from __future__ import annotations

import pytest

from src.services.forecast import (
    FILL_TABLE,
    LAInCatchment,
    calculate_forecast,
    confidence_for_ratio,
    lookup_fill,
    round_half_up,
)


def _las(*pools: int) -> list[LAInCatchment]:
    return [LAInCatchment(la_name=f"LA {i}", pool=p) for i, p in enumerate(pools)]


class TestRoundHalfUp:
    @pytest.mark.parametrize(("value", "expected"), [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (0.0, 0), (66.666, 67)])
    def test_rounds_half_away_from_even(self, value, expected):
        assert round_half_up(value) == expected


class TestLookupFill:
    def test_first_row(self):
        assert lookup_fill(40, 70) == ((50, 65), (85, 100))

    def test_quality_70_prefers_high_quality_band(self):
        assert lookup_fill(25, 70) == ((40, 55), (75, 90))

    def test_ratio_band_is_half_open(self):
        assert lookup_fill(20, 50) == ((30, 45), (65, 80))
        assert lookup_fill(19, 50) == ((20, 30), (45, 60))

    def test_low_quality_with_high_ratio_falls_back(self):
        assert lookup_fill(45, 30) == ((15, 25), (35, 50))

    def test_low_ratio_any_quality(self):
        assert lookup_fill(5, 100) == ((15, 25), (35, 50))
        assert lookup_fill(0, 0) == ((15, 25), (35, 50))

    def test_monotonic_in_ratio(self):
        for quality in (50, 80):
            openings = [lookup_fill(r, quality)[0][0] for r in (5, 15, 25, 45)]
            assert openings == sorted(openings)

    def test_monotonic_in_quality(self):
        for ratio in (15, 25, 45):
            assert lookup_fill(ratio, 50)[0][0] <= lookup_fill(ratio, 80)[0][0]

    def test_table_has_seven_rows(self):
        assert len(FILL_TABLE) == 7


class TestConfidence:
    @pytest.mark.parametrize(("ratio", "expected"), [(40, "HIGH"), (39, "MEDIUM"), (20, "MEDIUM"), (19, "LOW")])
    def test_bands(self, ratio, expected):
        assert confidence_for_ratio(ratio) == expected


class TestCalculateForecast:
    def test_worked_example(self):
        result = calculate_forecast(500, _las(1, 2, 3), [12, 18, 24, 30])
        assert result.addressable_demand == 170
        assert result.la_quality_percent == 67
        assert result.total_las == 3
        assert (result.pool1_count, result.pool2_count, result.pool3_count, result.pool4_count) == (1, 1, 1, 0)

        first = result.scenarios[0]
        assert first.capacity == 12
        assert first.demand_ratio == 14
        # Confidence follows the ratio bands: 14 is below the MEDIUM cut-off of 20.
        assert first.confidence == "LOW"
        assert first.opening_fill_range == (20, 30)
        assert first.year_one_fill_range == (45, 60)
        assert first.opening_places_range == (2, 4)

    def test_demand_ratio_per_capacity(self):
        result = calculate_forecast(500, _las(1, 2, 3))
        assert [s.demand_ratio for s in result.scenarios] == [14, 9, 7, 6]

    def test_recommended_defaults_to_first_capacity(self):
        result = calculate_forecast(50, _las(1), [12, 18, 24, 30])
        assert result.addressable_demand == 17
        assert all(s.demand_ratio < 40 for s in result.scenarios)
        assert result.recommended_capacity == 12

    def test_recommended_is_largest_qualifying(self):
        # addressable = round(4000 * 0.34) = 1360; ratios 113, 76, 57, 45
        result = calculate_forecast(4000, _las(1, 1), [12, 18, 24, 30])
        assert result.recommended_capacity == 30
        assert result.scenarios[-1].confidence == "HIGH"
        assert result.scenarios[-1].opening_fill_range == (50, 65)
        assert result.scenarios[-1].year_one_places_range == (26, 30)

    def test_recommended_ignores_order(self):
        # addressable = 340; ratios 11, 28, 14 -> none >= 40
        result = calculate_forecast(1000, _las(1), [30, 12, 24])
        assert result.recommended_capacity == 30
        # ratio for 6 is 57 -> qualifies
        result = calculate_forecast(1000, _las(1), [30, 6, 24])
        assert result.recommended_capacity == 6

    def test_no_las_gives_zero_quality(self):
        result = calculate_forecast(500, [])
        assert result.la_quality_percent == 0
        assert result.total_las == 0

    def test_zero_unplaced(self):
        result = calculate_forecast(0, _las(4))
        assert result.addressable_demand == 0
        assert all(s.demand_ratio == 0 and s.confidence == "LOW" for s in result.scenarios)

    def test_empty_capacities_raise(self):
        with pytest.raises(ValueError):
            calculate_forecast(100, _las(1), [])

    def test_non_positive_capacity_raises(self):
        with pytest.raises(ValueError):
            calculate_forecast(100, _las(1), [12, 0])

    def test_to_dict(self):
        data = calculate_forecast(500, _las(1, 2, 3)).to_dict()
        assert data["addressable_demand"] == 170
        assert data["scenarios"][0]["opening_fill_range"] == [20, 30]
