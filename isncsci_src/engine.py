"""ISNCSCI Classification Engine.

Applies the ISNCSCI rules deterministically to a recorded exam and
produces ClassificationTotals: score sums, candidate level sets and the
possible ASIA Impairment Scale grades.

The engine walks the level chain twice:
1. Rostral to caudal (C2 -> S4_5): sensory sums, NT/impairment flags and
   the sensory, motor and neurological level boundaries. A boundary set
   stays "open" while every value seen so far is normal; NT values extend
   the boundary without closing it, which is how several candidate levels
   end up in the same set.
2. Caudal to rostral (S4_5 -> C2): intact levels, zones of partial
   preservation, levels with motor function and the motor sums.

ASIA Impairment Scale:
- A: Sensory and motor complete (no sacral sparing)
- B: Sensory incomplete, motor complete
- C: Motor incomplete, more than half of key muscles below the NLI grade <3
- D: Motor incomplete, at least half of key muscles below the NLI grade >=3
- E: Normal sensory and motor function

Reference: ASIA/ISCoS International Standards for Neurological
Classification of Spinal Cord Injury, Revised 2011
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .criteria import (
    ANTIGRAVITY_MOTOR_VALUE,
    C4_ORDINAL,
    L1_ORDINAL,
    L5_ORDINAL,
    MAX_LEVELS_BELOW_MOTOR_LEVEL,
    NORMAL_MOTOR_VALUE,
    NORMAL_SENSORY_VALUE,
    S1,
    S1_ORDINAL,
    S4_5,
    SIDES,
    T1_ORDINAL,
    Score,
    Side,
)
from .levels import Level
from .models import ExamRecord
from .totals import ClassificationTotals, LevelSet

logger = logging.getLogger(__name__)


def _open_by_side() -> dict:
    return {side: True for side in SIDES}


def _closed_by_side() -> dict:
    return {side: False for side in SIDES}


@dataclass
class _ScanState:
    """Frontier flags carried through both passes.

    An open frontier means only normal (or NT) values have been seen so far.
    """
    sensory_open: dict = field(default_factory=_open_by_side)
    motor_open: dict = field(default_factory=_open_by_side)
    nli_open: bool = True
    sensory_zpp_open: dict = field(default_factory=_open_by_side)
    motor_zpp_open: dict = field(default_factory=_open_by_side)
    # A key muscle with abnormal sensation hands the motor level to the next
    # non-key level (the Collins rule)
    pending_collins: dict = field(default_factory=_closed_by_side)
    has_collins: dict = field(default_factory=_closed_by_side)


def _is_abnormal_sensory(score: Score) -> bool:
    return score.value != NORMAL_SENSORY_VALUE and not score.impairment_not_due_to_sci


def _is_definitely_abnormal_sensory(score: Score) -> bool:
    return score.value != NORMAL_SENSORY_VALUE and not score.is_not_testable


def _is_normal_or_not_testable(score: Score) -> bool:
    return score.value == NORMAL_SENSORY_VALUE or score.is_not_testable


def _could_be_antigravity(score: Score) -> bool:
    return (
        score.value >= ANTIGRAVITY_MOTOR_VALUE
        or score.impairment_not_due_to_sci
        or score.is_not_testable
    )


def _could_be_below_antigravity(score: Score) -> bool:
    return (
        (score.value < ANTIGRAVITY_MOTOR_VALUE or score.is_not_testable)
        and not score.impairment_not_due_to_sci
    )


def _has_motor_function(level: Level, side: Side) -> bool:
    motor = level.motor(side)
    return (
        motor.impairment_not_due_to_sci
        or level.has_other_motor_function(side)
        or (motor.value != 0 and level.is_key_muscle)
    )


class ClassificationEngine:
    """Classify an ISNCSCI exam.

    Decision Flow:
    1. Scan C2 -> S4_5 to find where normal function ends on each side
       → sensory, motor and neurological level candidate sets
    2. Scan S4_5 -> C2 for the lowest levels with any preserved function
       → zones of partial preservation and levels with motor function
    3. Sacral sparing (S4_5 values, anal sensation/contraction)
       → A / B
    4. Motor incompleteness and key muscle grades below each NLI
       → C / D
    5. S4_5 in every sensory and motor set
       → E
    """

    def classify(self, exam: ExamRecord) -> ClassificationTotals:
        """Apply the ISNCSCI rules to an exam.

        Args:
            exam: A fully populated exam record. The record is not modified.

        Returns:
            Frozen ClassificationTotals with sums, level sets and AIS grades
        """
        totals = ClassificationTotals()
        state = _ScanState()

        self._scan_rostral_to_caudal(exam, totals, state)
        self._scan_caudal_to_rostral(exam, totals, state)
        self._finalize(exam, totals, state)

        totals.freeze()

        logger.debug(
            f"Classified exam: NLI={[l.name for l in totals.neurological_level_of_injury]} "
            f"AIS={totals.get_asia_impairment_scale_values()}"
        )
        return totals

    # =========================================================================
    # Pass 1: C2 -> S4_5
    # =========================================================================

    def _scan_rostral_to_caudal(
        self,
        exam: ExamRecord,
        totals: ClassificationTotals,
        state: _ScanState,
    ) -> None:
        for level in exam.levels.examined_levels():
            previous = exam.levels.previous(level)

            for side in SIDES:
                totals.touch(side).add(level.touch(side).value)
                totals.prick(side).add(level.prick(side).value)

            for side in SIDES:
                if level.is_key_muscle:
                    self._flag_motor_totals(level, side, totals)
                elif state.pending_collins[side]:
                    state.pending_collins[side] = False
                    totals.motor(side).add(previous)
                    if not state.sensory_open[side]:
                        state.motor_open[side] = False

            for side in SIDES:
                self._flag_sensory_totals(level, side, totals)

            for side in SIDES:
                self._update_sensory_boundary(level, previous, side, totals, state)

            for side in SIDES:
                self._update_motor_boundary(level, previous, side, totals, state)

            # A pending Collins level only carries over while the motor
            # boundary for that side is still open
            for side in SIDES:
                state.pending_collins[side] = (
                    state.pending_collins[side] and state.motor_open[side]
                )

    def _flag_motor_totals(self, level: Level, side: Side, totals: ClassificationTotals) -> None:
        motor = level.motor(side)
        total = totals.lower_motor(side) if level.is_lower_muscle else totals.upper_motor(side)

        if motor.impairment_not_due_to_sci:
            total.mark_impairment_not_due_to_sci()
        elif motor.is_not_testable:
            total.mark_contains_nt()

    def _flag_sensory_totals(self, level: Level, side: Side, totals: ClassificationTotals) -> None:
        for score, total in (
            (level.touch(side), totals.touch(side)),
            (level.prick(side), totals.prick(side)),
        ):
            if score.impairment_not_due_to_sci:
                total.mark_impairment_not_due_to_sci()
            elif score.is_not_testable:
                total.mark_contains_nt()

    def _update_sensory_boundary(
        self,
        level: Level,
        previous: Level,
        side: Side,
        totals: ClassificationTotals,
        state: _ScanState,
    ) -> None:
        """Close the sensory boundary at the first abnormal dermatome."""
        touch = level.touch(side)
        prick = level.prick(side)

        if not state.sensory_open[side]:
            return
        if not (_is_abnormal_sensory(touch) or _is_abnormal_sensory(prick)):
            return

        sensory = totals.sensory(side)
        nli = totals.neurological_level_of_injury

        sensory.add(previous)

        if level.is_s4_5 and _is_normal_or_not_testable(touch) and _is_normal_or_not_testable(prick):
            sensory.add(level)
            if state.nli_open:
                nli.add(level)

        if state.nli_open:
            nli.add(previous)

        if _is_definitely_abnormal_sensory(touch) or _is_definitely_abnormal_sensory(prick):
            state.sensory_open[side] = False
            state.nli_open = False

        if level.is_key_muscle:
            state.pending_collins[side] = True
            state.has_collins[side] = True

    def _update_motor_boundary(
        self,
        level: Level,
        previous: Level,
        side: Side,
        totals: ClassificationTotals,
        state: _ScanState,
    ) -> None:
        """Close the motor boundary at the first non-normal myotome.

        The two sides are not symmetric. The right side only claims a key
        muscle as the neurological level when the left side at the same
        level could also be antigravity, and leaves the final say to the
        left side otherwise.
        """
        motor = level.motor(side)

        if not state.motor_open[side]:
            return
        if motor.value == NORMAL_MOTOR_VALUE or motor.impairment_not_due_to_sci:
            return

        motor_set = totals.motor(side)
        nli = totals.neurological_level_of_injury
        not_testable = motor.is_not_testable
        is_right = side is Side.RIGHT

        if level.is_key_muscle and (motor.value >= ANTIGRAVITY_MOTOR_VALUE or not_testable):
            motor_set.add(level)

            if state.nli_open and (not is_right or _could_be_antigravity(level.motor(Side.LEFT))):
                nli.add(level)
                if is_right and not not_testable:
                    state.nli_open = False

        if motor.value < ANTIGRAVITY_MOTOR_VALUE or not_testable:
            motor_set.add(previous)

            if state.nli_open:
                nli.add(previous)
                if is_right and not not_testable:
                    state.nli_open = False

        if not not_testable:
            state.motor_open[side] = False
            if not is_right:
                state.nli_open = False

    # =========================================================================
    # Pass 2: S4_5 -> C2
    # =========================================================================

    def _scan_caudal_to_rostral(
        self,
        exam: ExamRecord,
        totals: ClassificationTotals,
        state: _ScanState,
    ) -> None:
        for level in reversed(exam.levels.examined_levels()):
            if level.is_s4_5:
                self._close_intact_frontiers(level, totals, state)

            for side in SIDES:
                self._update_sensory_zpp(level, side, totals, state)

            for side in SIDES:
                self._update_motor_zpp(level, side, totals, state)

            for side in SIDES:
                self._update_motor_function_levels(level, side, totals)

            if level.is_key_muscle:
                for side in SIDES:
                    total = totals.lower_motor(side) if level.is_lower_muscle else totals.upper_motor(side)
                    total.add(level.motor(side).value)

    def _close_intact_frontiers(
        self,
        s4_5: Level,
        totals: ClassificationTotals,
        state: _ScanState,
    ) -> None:
        """Frontiers still open at S4_5 mean the exam was normal all the way down."""
        if all(state.sensory_open.values()) and all(state.motor_open.values()):
            totals.neurological_level_of_injury.add(s4_5)

        for side in SIDES:
            if state.sensory_open[side]:
                totals.sensory(side).add(s4_5)
                state.sensory_open[side] = False

            if state.motor_open[side]:
                totals.motor(side).add(s4_5)
                state.motor_open[side] = False

    def _update_sensory_zpp(
        self,
        level: Level,
        side: Side,
        totals: ClassificationTotals,
        state: _ScanState,
    ) -> None:
        touch = level.touch(side)
        prick = level.prick(side)

        if not state.sensory_zpp_open[side]:
            return
        if touch.is_absent and prick.is_absent:
            return

        if (
            touch.value > 0 or touch.impairment_not_due_to_sci
            or prick.value > 0 or prick.impairment_not_due_to_sci
        ):
            state.sensory_zpp_open[side] = False

        totals.sensory_zpp(side).add(level)

    def _update_motor_zpp(
        self,
        level: Level,
        side: Side,
        totals: ClassificationTotals,
        state: _ScanState,
    ) -> None:
        motor = level.motor(side)
        has_other = level.has_other_motor_function(side)

        if not state.motor_zpp_open[side]:
            return
        if not (
            has_other
            or (not motor.is_absent and (level.is_key_muscle or totals.motor(side).contains(level.name)))
        ):
            return

        upper_nt = totals.upper_motor(side).contains_nt
        lower_nt = totals.lower_motor(side).contains_nt
        ordinal = level.ordinal

        # NT can only end the zone where no NT key muscle (or Collins level)
        # could still hide a more caudal level with motor function
        definite = motor.impairment_not_due_to_sci or has_other or not motor.is_not_testable
        in_closing_region = (
            level.is_key_muscle
            or ordinal <= C4_ORDINAL
            or (ordinal > S1_ORDINAL and not upper_nt and not lower_nt and not state.has_collins[side])
            or (T1_ORDINAL < ordinal <= L1_ORDINAL and not upper_nt)
        )

        if definite and in_closing_region:
            state.motor_zpp_open[side] = False

        totals.motor_zpp(side).add(level)

    def _update_motor_function_levels(
        self,
        level: Level,
        side: Side,
        totals: ClassificationTotals,
    ) -> None:
        has_other = level.has_other_motor_function(side)
        if not (level.is_key_muscle or has_other):
            return

        # Both levels are set on the way up, so the first match is the most
        # caudal qualifying level in each case
        if (
            totals.most_rostral_level_with_motor_function(side) is None
            and _has_motor_function(level, side)
        ):
            totals.set_most_rostral_level_with_motor_function(side, level)

        if (
            totals.most_caudal_level_with_motor_function(side) is None
            and (not level.motor(side).is_absent or has_other)
        ):
            totals.set_most_caudal_level_with_motor_function(side, level)

    # =========================================================================
    # Finalize: defaults and ASIA Impairment Scale
    # =========================================================================

    def _finalize(
        self,
        exam: ExamRecord,
        totals: ClassificationTotals,
        state: _ScanState,
    ) -> None:
        totals.compute_combined_totals()

        c1 = exam.c1
        for side in SIDES:
            if state.sensory_zpp_open[side]:
                totals.sensory_zpp(side).add(c1)
            if state.motor_zpp_open[side]:
                totals.motor_zpp(side).add(c1)
            if totals.most_rostral_level_with_motor_function(side) is None:
                totals.set_most_rostral_level_with_motor_function(side, c1)
            if totals.most_caudal_level_with_motor_function(side) is None:
                totals.set_most_caudal_level_with_motor_function(side, c1)

        self._classify_asia_impairment_scale(exam, totals)

    def _classify_asia_impairment_scale(self, exam: ExamRecord, totals: ClassificationTotals) -> None:
        s4_5 = exam.s4_5
        contraction = exam.anal_contraction
        sensation = exam.anal_sensation

        sacral_scores = [
            s4_5.touch(side) for side in SIDES
        ] + [
            s4_5.prick(side) for side in SIDES
        ]

        is_sensory_incomplete = sensation.could_be_yes or any(
            not score.is_absent for score in sacral_scores
        )

        nli_is_intact = self._most_rostral_nli_is_s4_5(totals)

        # ASIA A: no sacral sparing at all
        if (
            contraction.could_be_no
            and sensation.could_be_no
            and all(score.value == 0 and not score.impairment_not_due_to_sci for score in sacral_scores)
        ):
            totals.add_asia_impairment_scale_value("A")

        # ASIA B: sensory incomplete with no motor function far below the motor level
        if (
            contraction.could_be_no
            and is_sensory_incomplete
            and self._could_not_have_motor_function_below_motor_level(exam, totals)
            and not nli_is_intact
        ):
            totals.add_asia_impairment_scale_value("B")

        # ASIA C / D
        if not nli_is_intact and (is_sensory_incomplete or contraction.could_be_yes):
            could_be_c, could_be_d = self._could_be_asia_c_or_d(exam, totals)
            if could_be_c:
                totals.add_asia_impairment_scale_value("C")
            if could_be_d:
                totals.add_asia_impairment_scale_value("D")

        # ASIA E: normal everywhere
        if all(
            totals.sensory(side).contains(S4_5) and totals.motor(side).contains(S4_5)
            for side in SIDES
        ):
            totals.add_asia_impairment_scale_value("E")

    @staticmethod
    def _most_rostral_nli_is_s4_5(totals: ClassificationTotals) -> bool:
        most_rostral = totals.neurological_level_of_injury.most_rostral
        return most_rostral is not None and most_rostral.name == S4_5

    def _could_not_have_motor_function_below_motor_level(
        self,
        exam: ExamRecord,
        totals: ClassificationTotals,
    ) -> bool:
        """Check that no side has motor function more than three levels below its motor level.

        Walks up from S1 to the most caudal neurological level and finds,
        per side, the lowest level with motor function.
        """
        most_caudal_nli = totals.neurological_level_of_injury.most_caudal
        stop_ordinal = most_caudal_nli.ordinal if most_caudal_nli else 0

        lowest_with_function: dict[Side, Optional[Level]] = {side: None for side in SIDES}
        level = exam.get_level(S1)

        while (
            level is not None
            and level.ordinal >= stop_ordinal
            and any(found is None for found in lowest_with_function.values())
        ):
            for side in SIDES:
                if lowest_with_function[side] is None and _has_motor_function(level, side):
                    lowest_with_function[side] = level
            level = exam.levels.previous(level)

        for side in SIDES:
            found = lowest_with_function[side]
            if found is None:
                continue
            motor_level = totals.motor(side).most_caudal
            motor_ordinal = motor_level.ordinal if motor_level else 0
            if found.ordinal - motor_ordinal > MAX_LEVELS_BELOW_MOTOR_LEVEL:
                return False

        return True

    def _could_be_asia_c_or_d(
        self,
        exam: ExamRecord,
        totals: ClassificationTotals,
    ) -> tuple[bool, bool]:
        """Grade the key muscles below each neurological level candidate.

        Returns:
            Tuple of (could_be_c, could_be_d)
        """
        could_be_c = False
        could_be_d = False
        could_have_contraction = exam.anal_contraction.could_be_yes

        for nli in totals.neurological_level_of_injury.by_ordinal():
            if could_be_c and could_be_d:
                break

            # Without anal contraction the exam is only motor incomplete when
            # there is motor function more than three levels below the motor level
            if not could_have_contraction and self._is_motor_complete_at(nli, totals):
                continue

            # No myotomes below L5 to count from
            if nli.ordinal > L5_ORDINAL:
                could_be_d = True
                break

            eligible = 0
            grade_greater_than_two = 0
            grade_less_than_three = 0

            for level in exam.levels.below(nli):
                if not level.is_key_muscle:
                    continue
                for side in SIDES:
                    motor = level.motor(side)
                    eligible += 1
                    if _could_be_antigravity(motor):
                        grade_greater_than_two += 1
                    if _could_be_below_antigravity(motor):
                        grade_less_than_three += 1

            logger.debug(
                f"NLI {nli.name}: {grade_greater_than_two}/{eligible} key muscles >2, "
                f"{grade_less_than_three}/{eligible} <3"
            )

            if grade_less_than_three > eligible // 2:
                could_be_c = True

            if grade_greater_than_two >= eligible // 2:
                could_be_d = True

        return could_be_c, could_be_d

    @staticmethod
    def _is_motor_complete_at(nli: Level, totals: ClassificationTotals) -> bool:
        for side in SIDES:
            motor_level = _first_level_at_or_below(totals.motor(side), nli)
            if motor_level is None:
                return False
            lowest_with_function = totals.most_caudal_level_with_motor_function(side)
            if lowest_with_function.ordinal - motor_level.ordinal > MAX_LEVELS_BELOW_MOTOR_LEVEL:
                return False
        return True


def _first_level_at_or_below(level_set: LevelSet, nli: Level) -> Optional[Level]:
    """First member, in discovery order, at or caudal to the given level."""
    for level in level_set:
        if level.ordinal >= nli.ordinal:
            return level
    return None


def classify(exam: ExamRecord) -> ClassificationTotals:
    """Classify an exam with a default engine."""
    return ClassificationEngine().classify(exam)
