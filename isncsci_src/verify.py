"""Compare classification totals against expected results."""

import logging

from .totals import ClassificationTotals

logger = logging.getLogger(__name__)

_TOTAL_FLAGS = ("value", "has_impairment_not_due_to_sci", "contains_nt")
_COMBINED_TOTALS = ("upper_motor_total", "lower_motor_total", "touch_total", "prick_total")
_MOTOR_FUNCTION_LEVELS = (
    "most_rostral_right_level_with_motor_function",
    "most_caudal_right_level_with_motor_function",
    "most_rostral_left_level_with_motor_function",
    "most_caudal_left_level_with_motor_function",
)


def compare_totals(
    expected: ClassificationTotals,
    actual: ClassificationTotals,
    include_motor_function_levels: bool = False,
) -> list[str]:
    """List every difference between expected and actual totals.

    Level sets are compared by their ordinal-sorted names, so discovery
    order does not matter.

    Args:
        expected: Totals loaded from a test case
        actual: Totals produced by the engine
        include_motor_function_levels: Also compare the most rostral/caudal
            levels with motor function (test cases usually omit them)

    Returns:
        Human readable mismatch descriptions; empty when the totals match
    """
    mismatches = []

    expected_sums = expected.sums()
    for name, actual_total in actual.sums().items():
        expected_total = expected_sums[name]
        for flag in _TOTAL_FLAGS:
            want = getattr(expected_total, flag)
            got = getattr(actual_total, flag)
            if want != got:
                mismatches.append(f"{name}.{flag}: expected {want}, got {got}")

    for name in _COMBINED_TOTALS:
        want = getattr(expected, name)
        got = getattr(actual, name)
        if want != got:
            mismatches.append(f"{name}: expected {want}, got {got}")

    expected_sets = expected.level_sets()
    for name, actual_set in actual.level_sets().items():
        want = expected_sets[name].names()
        got = actual_set.names()
        if want != got:
            mismatches.append(f"{name}: expected {','.join(want) or '-'}, got {','.join(got) or '-'}")

    want_ais = expected.get_asia_impairment_scale_values()
    got_ais = actual.get_asia_impairment_scale_values()
    if want_ais != got_ais:
        mismatches.append(f"asia_impairment_scale: expected {want_ais}, got {got_ais}")

    if include_motor_function_levels:
        for name in _MOTOR_FUNCTION_LEVELS:
            want = getattr(expected, name)
            got = getattr(actual, name)
            want_name = want.name if want else None
            got_name = got.name if got else None
            if want_name != got_name:
                mismatches.append(f"{name}: expected {want_name}, got {got_name}")

    if mismatches:
        logger.debug(f"{len(mismatches)} mismatches found")

    return mismatches
