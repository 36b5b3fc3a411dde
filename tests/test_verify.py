"""Tests for comparing classification totals."""

import pytest

from isncsci_src.criteria import BinaryObservation
from isncsci_src.engine import classify
from isncsci_src.levels import LevelChain
from isncsci_src.models import ExamRecord
from isncsci_src.totals import ClassificationTotals, Total
from isncsci_src.verify import compare_totals


def normal_exam() -> ExamRecord:
    exam = ExamRecord(BinaryObservation.YES, BinaryObservation.YES)
    for level in exam.levels.examined_levels():
        exam.update_level(level.name, "2", "2", "2", "2", "5", "5")
    return exam


def expected_normal_totals() -> ClassificationTotals:
    """Expected totals for a normal exam, built independently of the engine."""
    chain = LevelChain()
    totals = ClassificationTotals()
    for name in ("right_touch", "left_touch", "right_prick", "left_prick"):
        setattr(totals, name, Total(56))
    for name in ("right_upper_motor", "left_upper_motor", "right_lower_motor", "left_lower_motor"):
        setattr(totals, name, Total(25))
    totals.compute_combined_totals()
    for level_set in (
        totals.right_sensory,
        totals.left_sensory,
        totals.right_motor,
        totals.left_motor,
        totals.neurological_level_of_injury,
    ):
        level_set.add(chain.s4_5)
    totals.add_asia_impairment_scale_value("E")
    return totals


class TestCompareTotals:
    """Test mismatch reporting."""

    @pytest.fixture
    def actual(self):
        return classify(normal_exam())

    def test_matching_totals(self, actual):
        assert compare_totals(expected_normal_totals(), actual) == []

    def test_sum_mismatch(self, actual):
        expected = expected_normal_totals()
        expected.right_touch = Total(55, contains_nt=True)

        mismatches = compare_totals(expected, actual)
        assert "right_touch.value: expected 55, got 56" in mismatches
        assert "right_touch.contains_nt: expected True, got False" in mismatches
        assert len(mismatches) == 2

    def test_level_set_mismatch(self, actual):
        expected = expected_normal_totals()
        expected.right_motor_zpp.add(LevelChain().get("C5"))

        assert compare_totals(expected, actual) == ["right_motor_zpp: expected C5, got -"]

    def test_asia_mismatch(self, actual):
        expected = expected_normal_totals()
        expected.add_asia_impairment_scale_value("D")

        assert compare_totals(expected, actual) == ["asia_impairment_scale: expected D,E, got E"]

    def test_motor_function_levels_are_optional(self, actual):
        """Test motor function levels are only compared on request."""
        expected = expected_normal_totals()
        assert compare_totals(expected, actual) == []

        mismatches = compare_totals(expected, actual, include_motor_function_levels=True)
        assert "most_rostral_right_level_with_motor_function: expected None, got S1" in mismatches
        assert len(mismatches) == 4
