"""Tests for the ISNCSCI exam record."""

import logging

import pytest

from isncsci_src.criteria import BinaryObservation, Side
from isncsci_src.models import ExamRecord


class TestExamRecord:
    """Test recording worksheet values."""

    @pytest.fixture
    def exam(self):
        return ExamRecord(
            anal_contraction=BinaryObservation.YES,
            anal_sensation=BinaryObservation.NO,
        )

    def test_defaults(self):
        """Test a new exam has blank levels and no lowest non-key muscles."""
        exam = ExamRecord()
        assert exam.anal_contraction == BinaryObservation.NO
        assert exam.get_level("C5").motor(Side.RIGHT).raw == "0"
        assert exam.right_lowest_non_key_muscle_with_motor_function is None
        assert exam.left_lowest_non_key_muscle_with_motor_function is None

    def test_update_key_muscle_level(self, exam):
        """Test all six values are stored for a key muscle level."""
        result = exam.update_level("C5", "2", "1", "0", "NT", "4", "3!")
        assert result is exam

        c5 = exam.get_level("C5")
        assert c5.touch(Side.RIGHT).value == 2
        assert c5.touch(Side.LEFT).value == 1
        assert c5.prick(Side.RIGHT).value == 0
        assert c5.prick(Side.LEFT).is_not_testable is True
        assert c5.motor(Side.RIGHT).value == 4
        assert c5.motor(Side.LEFT).value == 3
        assert c5.motor(Side.LEFT).impairment_not_due_to_sci is True

    def test_non_key_motor_is_derived_normal(self, exam):
        """Test normal (or impaired) sensation gives a non-key level motor 5."""
        exam.update_level("T2", "2", "2!", "2", "1*", "0", "0")
        t2 = exam.get_level("T2")
        assert t2.motor(Side.RIGHT).raw == "5"
        assert t2.motor(Side.RIGHT).value == 5
        assert t2.motor(Side.LEFT).value == 5

    def test_non_key_motor_is_derived_not_testable(self, exam):
        """Test normal-or-NT sensation gives a non-key level motor NT."""
        exam.update_level("T2", "NT", "2", "2", "2")
        t2 = exam.get_level("T2")
        assert t2.motor(Side.RIGHT).raw == "NT"
        assert t2.motor(Side.RIGHT).value == 0
        assert t2.motor(Side.LEFT).raw == "5"

    def test_non_key_motor_is_derived_absent(self, exam):
        """Test abnormal sensation gives a non-key level motor 0, whatever was passed."""
        exam.update_level("T2", "1", "0", "2", "NT", "5", "5")
        t2 = exam.get_level("T2")
        assert t2.motor(Side.RIGHT).raw == "0"
        assert t2.motor(Side.LEFT).raw == "0"

    def test_unknown_level_is_ignored(self, exam, caplog):
        """Test unknown level names are logged and ignored."""
        with caplog.at_level(logging.WARNING):
            result = exam.update_level("X1", "2", "2", "2", "2")
        assert result is exam
        assert "X1" in caplog.text

    def test_c1_cannot_be_updated(self, exam):
        """Test C1 keeps its normal values."""
        exam.update_level("C1", "0", "0", "0", "0", "0", "0")
        assert exam.c1.touch(Side.RIGHT).value == 2
        assert exam.c1.motor(Side.LEFT).value == 5

    def test_lowest_non_key_muscle(self, exam):
        """Test setting a new lowest non-key muscle clears the old one."""
        exam.set_lowest_non_key_muscle_with_motor_function(Side.RIGHT, "T5")
        assert exam.get_level("T5").has_other_motor_function(Side.RIGHT) is True
        assert exam.get_level("T5").has_other_motor_function(Side.LEFT) is False

        exam.set_lowest_non_key_muscle_with_motor_function(Side.RIGHT, "t6")
        assert exam.get_level("T5").has_other_motor_function(Side.RIGHT) is False
        assert exam.get_level("T6").has_other_motor_function(Side.RIGHT) is True
        assert exam.right_lowest_non_key_muscle_with_motor_function.name == "T6"

    def test_lowest_non_key_muscle_ignores_empty_and_unknown(self, exam):
        exam.set_lowest_non_key_muscle_with_motor_function(Side.LEFT, "")
        exam.set_lowest_non_key_muscle_with_motor_function(Side.LEFT, None)
        exam.set_lowest_non_key_muscle_with_motor_function(Side.LEFT, "Z9")
        assert exam.left_lowest_non_key_muscle_with_motor_function is None
