#!/usr/bin/env python3
"""
Test suite for coverage sub-score calculations.
"""

import itertools
import math
import unittest

from core.config_loader import CoverageConfig
from core.coverage import scoring
from core.coverage.models import CoverageArea, QualityLevel


def _area(zips=(), cities=(), counties=()):
    return CoverageArea(area_id='area-1', zip_codes=zips, cities=cities, counties=counties)


class TestCompleteness(unittest.TestCase):

    def setUp(self):
        self.config = CoverageConfig()

    def test_01_presence_points(self):
        """Test completeness with one, two and three dimensions populated."""
        print("\n📊 UNIT Test 1: Completeness Presence")
        self.assertEqual(scoring.calculate_completeness(_area(zips=['90210']), self.config), 15.0)
        self.assertEqual(scoring.calculate_completeness(_area(zips=['90210'], cities=['LA']), self.config), 30.0)
        full = scoring.calculate_completeness(_area(['90210'], ['LA'], ['Los Angeles']), self.config)
        self.assertEqual(full, self.config.completeness_max)
        print(f"  ✓ Full area completeness: {full}")

    def test_02_monotonic(self):
        """Adding any unit to any dimension never lowers completeness."""
        options = [(), ('a',), ('a', 'b')]
        for zips, cities, counties in itertools.product(options, repeat=3):
            base = scoring.calculate_completeness(_area(zips, cities, counties), self.config)
            for grown in (
                _area(zips + ('z',), cities, counties),
                _area(zips, cities + ('z',), counties),
                _area(zips, cities, counties + ('z',)),
            ):
                self.assertGreaterEqual(scoring.calculate_completeness(grown, self.config), base)


class TestBreadth(unittest.TestCase):

    def test_01_sqrt_curve(self):
        config = CoverageConfig()
        self.assertEqual(scoring.calculate_breadth(0, config), 0.0)
        self.assertAlmostEqual(scoring.calculate_breadth(1, config), 35 * math.sqrt(1 / 50))
        self.assertAlmostEqual(scoring.calculate_breadth(50, config), 35.0)
        self.assertAlmostEqual(scoring.calculate_breadth(5000, config), 35.0)

    def test_02_linear_curve(self):
        config = CoverageConfig(breadth_curve='linear', breadth_reference_count=20)
        self.assertAlmostEqual(scoring.calculate_breadth(5, config), 35 * 5 / 20)

    def test_03_diminishing_returns(self):
        config = CoverageConfig()
        gains = [
            scoring.calculate_breadth(n + 10, config) - scoring.calculate_breadth(n, config)
            for n in (0, 10, 20, 30)
        ]
        self.assertEqual(gains, sorted(gains, reverse=True))


class TestDemand(unittest.TestCase):

    def setUp(self):
        self.config = CoverageConfig()

    def test_01_default_bands(self):
        """Moderate competition scores highest; both extremes score lower."""
        expected = {
            0: (10.0, "Very Low"),
            9: (10.0, "Very Low"),
            10: (18.0, "Low"),
            30: (25.0, "Moderate"),
            49: (25.0, "Moderate"),
            50: (15.0, "High"),
            100: (6.0, "Very High"),
            10_000: (6.0, "Very High"),
        }
        for count, result in expected.items():
            self.assertEqual(scoring.calculate_demand(count, self.config), result, count)

    def test_02_not_monotonic(self):
        low, _ = scoring.calculate_demand(0, self.config)
        mid, _ = scoring.calculate_demand(30, self.config)
        high, _ = scoring.calculate_demand(500, self.config)
        self.assertGreater(mid, low)
        self.assertGreater(mid, high)


class TestQualityAndRecommendations(unittest.TestCase):

    def setUp(self):
        self.config = CoverageConfig()

    def test_01_quality_levels(self):
        self.assertEqual(scoring.classify_quality(80, self.config), QualityLevel.EXCELLENT)
        self.assertEqual(scoring.classify_quality(79.9, self.config), QualityLevel.GOOD)
        self.assertEqual(scoring.classify_quality(40, self.config), QualityLevel.FAIR)
        self.assertEqual(scoring.classify_quality(39.9, self.config), QualityLevel.NEEDS_IMPROVEMENT)

    def test_02_no_recommendations_when_excellent(self):
        self.assertEqual(scoring.build_recommendations(40, 35, 10, 0, self.config), [])

    def test_03_sparse_new_market(self):
        recommendations = scoring.build_recommendations(15, 5, 10, 0, self.config)
        self.assertEqual(len(recommendations), 3)
        self.assertIn("new market", recommendations[2])

    def test_04_established_market(self):
        recommendations = scoring.build_recommendations(40, 10, 25, 30, self.config)
        self.assertEqual(recommendations, [
            "Expand coverage to include more ZIP codes and cities",
            "High competition area - established market!",
        ])


if __name__ == '__main__':
    unittest.main()
