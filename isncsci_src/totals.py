"""Totals produced by the ISNCSCI classification engine.

Totals hold three kinds of results:
- Score sums with sticky "impairment not due to SCI" and "contains NT" flags
- Candidate level sets (sensory, motor, NLI, ZPP). NT values can make more
  than one level possible, so every level result is a set, never a single
  value.
- The set of possible ASIA Impairment Scale grades
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from .criteria import S4_5, Side
from .levels import Level


@dataclass
class Total:
    """A running score sum and its display flags.

    The flags are sticky: once set they stay set and they do not depend on
    the numeric value.
    """
    value: int = 0
    has_impairment_not_due_to_sci: bool = False
    contains_nt: bool = False
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            raise ValueError("Cannot change total: totals are frozen")

    def add(self, value: int) -> None:
        self._check_not_frozen()
        self.value += value

    def mark_impairment_not_due_to_sci(self) -> None:
        self._check_not_frozen()
        self.has_impairment_not_due_to_sci = True

    def mark_contains_nt(self) -> None:
        self._check_not_frozen()
        self.contains_nt = True

    def freeze(self) -> None:
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def __add__(self, other: "Total") -> "Total":
        return Total(
            value=self.value + other.value,
            has_impairment_not_due_to_sci=(
                self.has_impairment_not_due_to_sci or other.has_impairment_not_due_to_sci
            ),
            contains_nt=self.contains_nt or other.contains_nt,
        )

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "has_impairment_not_due_to_sci": self.has_impairment_not_due_to_sci,
            "contains_nt": self.contains_nt,
        }


class LevelSet:
    """Ordered set of candidate levels.

    Levels keep their discovery order. Adding a level whose name is already
    present (compared case-insensitively) is a no-op. The most rostral and
    most caudal members are tracked as levels are added.
    """

    def __init__(self, name: str, excluded: Iterable[str] = ()):
        self.name = name
        self._levels: list[Level] = []
        self._excluded = {n.upper() for n in excluded}
        self._frozen = False
        self.most_rostral: Optional[Level] = None
        self.most_caudal: Optional[Level] = None

    def add(self, level: Level) -> None:
        if self._frozen:
            raise ValueError(f"Cannot add {level.name} to {self.name}: totals are frozen")

        key = level.name.upper()
        if key in self._excluded or self.contains(key):
            return

        if self.most_rostral is None or level.ordinal < self.most_rostral.ordinal:
            self.most_rostral = level

        if self.most_caudal is None or level.ordinal > self.most_caudal.ordinal:
            self.most_caudal = level

        self._levels.append(level)

    def contains(self, level_name: str) -> bool:
        key = level_name.upper()
        return any(level.name.upper() == key for level in self._levels)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def levels(self) -> list[Level]:
        """Copy of the levels in discovery order."""
        return list(self._levels)

    def by_ordinal(self) -> list[Level]:
        return sorted(self._levels, key=lambda level: level.ordinal)

    def names(self) -> list[str]:
        """Level names sorted rostral to caudal."""
        return [level.name for level in self.by_ordinal()]

    def is_empty(self) -> bool:
        return not self._levels

    def __iter__(self) -> Iterator[Level]:
        return iter(list(self._levels))

    def __len__(self) -> int:
        return len(self._levels)

    def __contains__(self, level_name: str) -> bool:
        return self.contains(level_name)

    def __repr__(self) -> str:
        return f"LevelSet({self.name}: {','.join(l.name for l in self._levels)})"


class ClassificationTotals:
    """Result of classifying one exam."""

    def __init__(self):
        # Sums
        self.right_touch = Total()
        self.left_touch = Total()
        self.right_prick = Total()
        self.left_prick = Total()
        self.right_upper_motor = Total()
        self.left_upper_motor = Total()
        self.right_lower_motor = Total()
        self.left_lower_motor = Total()

        # Derived totals, filled in once the scan has finished
        self.upper_motor_total = 0
        self.lower_motor_total = 0
        self.touch_total = 0
        self.prick_total = 0

        # Candidate level sets
        self.right_sensory = LevelSet("right_sensory")
        self.left_sensory = LevelSet("left_sensory")
        self.right_motor = LevelSet("right_motor")
        self.left_motor = LevelSet("left_motor")
        self.neurological_level_of_injury = LevelSet("neurological_level_of_injury")
        self.right_sensory_zpp = LevelSet("right_sensory_zpp", excluded=(S4_5,))
        self.left_sensory_zpp = LevelSet("left_sensory_zpp", excluded=(S4_5,))
        self.right_motor_zpp = LevelSet("right_motor_zpp", excluded=(S4_5,))
        self.left_motor_zpp = LevelSet("left_motor_zpp", excluded=(S4_5,))

        self._asia_impairment_scale: list[str] = []

        self.most_rostral_right_level_with_motor_function: Optional[Level] = None
        self.most_caudal_right_level_with_motor_function: Optional[Level] = None
        self.most_rostral_left_level_with_motor_function: Optional[Level] = None
        self.most_caudal_left_level_with_motor_function: Optional[Level] = None

        self._frozen = False

    def __setattr__(self, name, value):
        # Sums, derived totals and motor function pointers are all attributes
        if getattr(self, "_frozen", False):
            raise ValueError(f"Cannot set {name}: totals are frozen")
        super().__setattr__(name, value)

    # --- Per-side accessors used by the engine ---------------------------

    def touch(self, side: Side) -> Total:
        return self.right_touch if side is Side.RIGHT else self.left_touch

    def prick(self, side: Side) -> Total:
        return self.right_prick if side is Side.RIGHT else self.left_prick

    def upper_motor(self, side: Side) -> Total:
        return self.right_upper_motor if side is Side.RIGHT else self.left_upper_motor

    def lower_motor(self, side: Side) -> Total:
        return self.right_lower_motor if side is Side.RIGHT else self.left_lower_motor

    def sensory(self, side: Side) -> LevelSet:
        return self.right_sensory if side is Side.RIGHT else self.left_sensory

    def motor(self, side: Side) -> LevelSet:
        return self.right_motor if side is Side.RIGHT else self.left_motor

    def sensory_zpp(self, side: Side) -> LevelSet:
        return self.right_sensory_zpp if side is Side.RIGHT else self.left_sensory_zpp

    def motor_zpp(self, side: Side) -> LevelSet:
        return self.right_motor_zpp if side is Side.RIGHT else self.left_motor_zpp

    def most_rostral_level_with_motor_function(self, side: Side) -> Optional[Level]:
        if side is Side.RIGHT:
            return self.most_rostral_right_level_with_motor_function
        return self.most_rostral_left_level_with_motor_function

    def set_most_rostral_level_with_motor_function(self, side: Side, level: Level) -> None:
        if side is Side.RIGHT:
            self.most_rostral_right_level_with_motor_function = level
        else:
            self.most_rostral_left_level_with_motor_function = level

    def most_caudal_level_with_motor_function(self, side: Side) -> Optional[Level]:
        if side is Side.RIGHT:
            return self.most_caudal_right_level_with_motor_function
        return self.most_caudal_left_level_with_motor_function

    def set_most_caudal_level_with_motor_function(self, side: Side, level: Level) -> None:
        if side is Side.RIGHT:
            self.most_caudal_right_level_with_motor_function = level
        else:
            self.most_caudal_left_level_with_motor_function = level

    # --- Combined totals -------------------------------------------------

    @property
    def right_motor_total(self) -> Total:
        return self.right_upper_motor + self.right_lower_motor

    @property
    def left_motor_total(self) -> Total:
        return self.left_upper_motor + self.left_lower_motor

    @property
    def upper_motor_combined(self) -> Total:
        return self.right_upper_motor + self.left_upper_motor

    @property
    def lower_motor_combined(self) -> Total:
        return self.right_lower_motor + self.left_lower_motor

    @property
    def touch_combined(self) -> Total:
        return self.right_touch + self.left_touch

    @property
    def prick_combined(self) -> Total:
        return self.right_prick + self.left_prick

    def compute_combined_totals(self) -> None:
        self.upper_motor_total = self.right_upper_motor.value + self.left_upper_motor.value
        self.lower_motor_total = self.right_lower_motor.value + self.left_lower_motor.value
        self.touch_total = self.right_touch.value + self.left_touch.value
        self.prick_total = self.right_prick.value + self.left_prick.value

    # --- ASIA Impairment Scale -------------------------------------------

    def add_asia_impairment_scale_value(self, value: str) -> None:
        if self._frozen:
            raise ValueError(f"Cannot add ASIA grade {value}: totals are frozen")
        if not value:
            return
        grade = value.upper()
        if grade not in self._asia_impairment_scale:
            self._asia_impairment_scale.append(grade)

    @property
    def asia_impairment_scale_values(self) -> list[str]:
        """Possible grades, sorted alphabetically."""
        return sorted(self._asia_impairment_scale)

    def get_asia_impairment_scale_values(self) -> str:
        """Possible grades as a comma separated string, e.g. "B,C,D"."""
        return ",".join(self.asia_impairment_scale_values)

    # --- Lifecycle -------------------------------------------------------

    def level_sets(self) -> dict[str, LevelSet]:
        return {
            "right_sensory": self.right_sensory,
            "left_sensory": self.left_sensory,
            "right_motor": self.right_motor,
            "left_motor": self.left_motor,
            "neurological_level_of_injury": self.neurological_level_of_injury,
            "right_sensory_zpp": self.right_sensory_zpp,
            "left_sensory_zpp": self.left_sensory_zpp,
            "right_motor_zpp": self.right_motor_zpp,
            "left_motor_zpp": self.left_motor_zpp,
        }

    def sums(self) -> dict[str, Total]:
        return {
            "right_touch": self.right_touch,
            "left_touch": self.left_touch,
            "right_prick": self.right_prick,
            "left_prick": self.left_prick,
            "right_upper_motor": self.right_upper_motor,
            "left_upper_motor": self.left_upper_motor,
            "right_lower_motor": self.right_lower_motor,
            "left_lower_motor": self.left_lower_motor,
        }

    def freeze(self) -> None:
        """Prevent further changes to sums, levels and grades.

        Raises ValueError on any later change, including reassigning
        attributes such as the motor function levels.
        """
        for total in self.sums().values():
            total.freeze()
        for level_set in self.level_sets().values():
            level_set.freeze()
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def to_dict(self) -> dict:
        def _name(level: Optional[Level]) -> Optional[str]:
            return level.name if level else None

        return {
            **{name: total.to_dict() for name, total in self.sums().items()},
            "upper_motor_total": self.upper_motor_total,
            "lower_motor_total": self.lower_motor_total,
            "touch_total": self.touch_total,
            "prick_total": self.prick_total,
            **{name: [l.name for l in level_set.levels] for name, level_set in self.level_sets().items()},
            "asia_impairment_scale": self.asia_impairment_scale_values,
            "most_rostral_right_level_with_motor_function": _name(self.most_rostral_right_level_with_motor_function),
            "most_caudal_right_level_with_motor_function": _name(self.most_caudal_right_level_with_motor_function),
            "most_rostral_left_level_with_motor_function": _name(self.most_rostral_left_level_with_motor_function),
            "most_caudal_left_level_with_motor_function": _name(self.most_caudal_left_level_with_motor_function),
        }
