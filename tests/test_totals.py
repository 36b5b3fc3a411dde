"""Tests for classification totals and candidate level sets."""

import pytest

from isncsci_src.criteria import Side
from isncsci_src.levels import LevelChain
from isncsci_src.totals import ClassificationTotals, LevelSet, Total


@pytest.fixture
def chain():
    return LevelChain()


class TestTotal:
    """Test score sums and their flags."""

    def test_add_and_flags(self):
        total = Total()
        total.add(5)
        total.add(3)
        total.mark_impairment_not_due_to_sci()
        assert total.value == 8
        assert total.has_impairment_not_due_to_sci is True
        assert total.contains_nt is False

    def test_combining_ors_flags(self):
        """Test combined totals carry either side's flags."""
        combined = Total(10, contains_nt=True) + Total(5, has_impairment_not_due_to_sci=True)
        assert combined.value == 15
        assert combined.contains_nt is True
        assert combined.has_impairment_not_due_to_sci is True


class TestLevelSet:
    """Test ordered candidate level sets."""

    def test_insertion_is_idempotent(self, chain):
        """Test adding the same level twice leaves the set unchanged."""
        level_set = LevelSet("right_sensory")
        level_set.add(chain.get("C5"))
        level_set.add(chain.get("C5"))
        assert len(level_set) == 1
        assert level_set.contains("c5") is True
        assert "C5" in level_set

    def test_discovery_order_and_extremes(self, chain):
        """Test members keep discovery order while extremes are tracked."""
        level_set = LevelSet("neurological_level_of_injury")
        for name in ("T1", "C5", "L2"):
            level_set.add(chain.get(name))

        assert [level.name for level in level_set.levels] == ["T1", "C5", "L2"]
        assert level_set.names() == ["C5", "T1", "L2"]
        assert level_set.most_rostral.name == "C5"
        assert level_set.most_caudal.name == "L2"

    def test_levels_returns_a_copy(self, chain):
        level_set = LevelSet("right_motor")
        level_set.add(chain.get("C6"))
        level_set.levels.clear()
        assert len(level_set) == 1

    def test_excluded_levels(self, chain):
        """Test zone of partial preservation sets never hold S4_5."""
        level_set = LevelSet("right_sensory_zpp", excluded=("S4_5",))
        level_set.add(chain.s4_5)
        assert level_set.is_empty() is True
        assert level_set.most_caudal is None

    def test_frozen_set_rejects_additions(self, chain):
        level_set = LevelSet("left_motor")
        level_set.freeze()
        with pytest.raises(ValueError):
            level_set.add(chain.get("C5"))


class TestClassificationTotals:
    """Test the totals container."""

    def test_asia_impairment_scale_values(self):
        """Test grades are de-duplicated and reported sorted."""
        totals = ClassificationTotals()
        totals.add_asia_impairment_scale_value("d")
        totals.add_asia_impairment_scale_value("B")
        totals.add_asia_impairment_scale_value("D")
        totals.add_asia_impairment_scale_value("")
        assert totals.asia_impairment_scale_values == ["B", "D"]
        assert totals.get_asia_impairment_scale_values() == "B,D"

    def test_zpp_sets_exclude_s4_5(self, chain):
        totals = ClassificationTotals()
        totals.left_motor_zpp.add(chain.s4_5)
        totals.left_motor.add(chain.s4_5)
        assert totals.left_motor_zpp.is_empty() is True
        assert totals.left_motor.contains("S4_5") is True

    def test_combined_totals(self):
        """Test combined sums are the sum of their parts."""
        totals = ClassificationTotals()
        totals.right_upper_motor.add(20)
        totals.right_lower_motor.add(15)
        totals.right_lower_motor.mark_contains_nt()
        totals.left_upper_motor.add(25)

        assert totals.right_motor_total.value == 35
        assert totals.right_motor_total.contains_nt is True
        assert totals.upper_motor_combined.value == 45

        totals.compute_combined_totals()
        assert totals.upper_motor_total == 45
        assert totals.lower_motor_total == 15

    def test_freeze(self, chain):
        """Test frozen totals reject new levels and grades."""
        totals = ClassificationTotals()
        totals.freeze()
        assert totals.is_frozen is True
        with pytest.raises(ValueError):
            totals.right_sensory.add(chain.get("C5"))
        with pytest.raises(ValueError):
            totals.add_asia_impairment_scale_value("A")

    def test_freeze_covers_sums_and_pointers(self, chain):
        """Test frozen totals reject changes to sums and motor function levels."""
        totals = ClassificationTotals()
        totals.right_touch.add(10)
        totals.freeze()

        assert totals.right_touch.is_frozen is True
        with pytest.raises(ValueError):
            totals.right_touch.add(1)
        with pytest.raises(ValueError):
            totals.left_lower_motor.mark_contains_nt()
        with pytest.raises(ValueError):
            totals.left_prick.mark_impairment_not_due_to_sci()
        with pytest.raises(ValueError):
            totals.compute_combined_totals()
        with pytest.raises(ValueError):
            totals.set_most_caudal_level_with_motor_function(Side.RIGHT, chain.get("C5"))
        with pytest.raises(ValueError):
            totals.right_touch = Total(56)

        assert totals.right_touch.value == 10
        assert totals.most_caudal_right_level_with_motor_function is None

    def test_combined_total_is_not_frozen(self):
        """Test adding frozen totals gives a new, writable total."""
        total = Total(3)
        total.freeze()
        combined = total + Total(2)
        combined.add(1)
        assert combined.value == 6

    def test_to_dict(self, chain):
        totals = ClassificationTotals()
        totals.right_touch.add(12)
        totals.neurological_level_of_injury.add(chain.get("C5"))
        totals.add_asia_impairment_scale_value("A")

        data = totals.to_dict()
        assert data["right_touch"] == {
            "value": 12,
            "has_impairment_not_due_to_sci": False,
            "contains_nt": False,
        }
        assert data["neurological_level_of_injury"] == ["C5"]
        assert data["asia_impairment_scale"] == ["A"]
        assert data["most_caudal_left_level_with_motor_function"] is None
