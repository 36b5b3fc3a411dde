"""Data models for the ISNCSCI exam."""

import logging
from typing import Optional

from .criteria import (
    ABSENT_LABEL,
    C1,
    NORMAL_MOTOR_LABEL,
    NORMAL_MOTOR_VALUE,
    NORMAL_SENSORY_VALUE,
    NOT_TESTABLE_LABEL,
    BinaryObservation,
    Modality,
    Score,
    Side,
    parse_score,
)
from .levels import Level, LevelChain

logger = logging.getLogger(__name__)


def _normal_or_impaired(score: Score) -> bool:
    return score.value == NORMAL_SENSORY_VALUE or score.impairment_not_due_to_sci


def _normal_or_not_testable(score: Score) -> bool:
    return score.value == NORMAL_SENSORY_VALUE or score.is_not_testable


class ExamRecord:
    """A single ISNCSCI exam.

    Owns the level chain, the two anal observations and the lowest
    non-key muscle with motor function on each side.
    """

    def __init__(
        self,
        anal_contraction: BinaryObservation = BinaryObservation.NO,
        anal_sensation: BinaryObservation = BinaryObservation.NO,
    ):
        self.levels = LevelChain()
        self.anal_contraction = anal_contraction
        self.anal_sensation = anal_sensation
        self._lowest_non_key_muscle: dict[Side, Optional[Level]] = {
            Side.RIGHT: None,
            Side.LEFT: None,
        }

    @property
    def c1(self) -> Level:
        return self.levels.c1

    @property
    def s4_5(self) -> Level:
        return self.levels.s4_5

    def get_level(self, name: str) -> Optional[Level]:
        return self.levels.get(name)

    @property
    def right_lowest_non_key_muscle_with_motor_function(self) -> Optional[Level]:
        return self._lowest_non_key_muscle[Side.RIGHT]

    @property
    def left_lowest_non_key_muscle_with_motor_function(self) -> Optional[Level]:
        return self._lowest_non_key_muscle[Side.LEFT]

    def set_lowest_non_key_muscle_with_motor_function(
        self,
        side: Side,
        level_name: str | None,
    ) -> None:
        """Mark the lowest non-key muscle with motor function for a side.

        Empty or unknown level names are ignored. Setting a new level clears
        the flag on the previously selected level.
        """
        if not level_name:
            return

        level = self.levels.get(level_name)
        if level is None or level.name == C1:
            logger.warning(f"Ignoring unknown non-key muscle level {level_name!r} ({side.value})")
            return

        current = self._lowest_non_key_muscle[side]
        if current is not None:
            current.other_motor_function[side] = False

        level.other_motor_function[side] = True
        self._lowest_non_key_muscle[side] = level

    def update_level(
        self,
        level_name: str,
        right_touch: str,
        left_touch: str,
        right_prick: str,
        left_prick: str,
        right_motor: str = ABSENT_LABEL,
        left_motor: str = ABSENT_LABEL,
    ) -> "ExamRecord":
        """Record the worksheet values for one level.

        Values are 0-2 for touch and prick and 0-5 for motor. A trailing "!"
        or "*" marks impairment not due to SCI and "NT" marks a value that was
        not testable. Motor values for non-key-muscle levels are derived from
        the sensory values, whatever was passed in.

        Returns:
            The exam record, so calls can be chained.
        """
        level = self.levels.get(level_name)
        if level is None or level.name == C1:
            logger.warning(f"Ignoring values for unknown or fixed level {level_name!r}")
            return self

        raw_values = {
            (Side.RIGHT, Modality.TOUCH): right_touch,
            (Side.LEFT, Modality.TOUCH): left_touch,
            (Side.RIGHT, Modality.PRICK): right_prick,
            (Side.LEFT, Modality.PRICK): left_prick,
            (Side.RIGHT, Modality.MOTOR): right_motor,
            (Side.LEFT, Modality.MOTOR): left_motor,
        }
        for (side, modality), raw in raw_values.items():
            level.set_score(side, modality, parse_score(raw, modality))

        if not level.is_key_muscle:
            for side in (Side.RIGHT, Side.LEFT):
                level.set_score(side, Modality.MOTOR, self._derived_motor_score(level, side))

        return self

    @staticmethod
    def _derived_motor_score(level: Level, side: Side) -> Score:
        touch = level.touch(side)
        prick = level.prick(side)

        if _normal_or_impaired(touch) and _normal_or_impaired(prick):
            return Score(raw=NORMAL_MOTOR_LABEL, value=NORMAL_MOTOR_VALUE)

        if _normal_or_not_testable(touch) and _normal_or_not_testable(prick):
            return Score(raw=NOT_TESTABLE_LABEL, value=0)

        return Score(raw=ABSENT_LABEL, value=0)
