"""Display summary for classification totals.

Turns the candidate level sets into compact range strings (e.g.
"NA,C4-C6,T1") and the sums into display strings ("UTD" when a value was
not testable, a trailing "!" when a value was impaired for reasons other
than the spinal cord injury).
"""

from dataclasses import asdict, dataclass
from typing import Iterable

from .criteria import S4_5_ORDINAL
from .engine import classify
from .levels import Level
from .models import ExamRecord
from .totals import ClassificationTotals, Total

NOT_DETERMINABLE = "UTD"
NOT_APPLICABLE = "NA"
INTACT = "INT"

COMPLETE = "C"
INCOMPLETE = "I"


def format_total(value: int, has_impairment_not_due_to_sci: bool = False, contains_nt: bool = False) -> str:
    """Format a sum for display.

    Returns:
        "UTD" when the sum includes an NT value, otherwise the value with
        a trailing "!" when any contributing value was impaired.
    """
    if contains_nt:
        return NOT_DETERMINABLE
    return f"{value}{'!' if has_impairment_not_due_to_sci else ''}"


def _format_total(total: Total) -> str:
    return format_total(total.value, total.has_impairment_not_due_to_sci, total.contains_nt)


def _display_name(level: Level) -> str:
    return INTACT if level.ordinal == S4_5_ORDINAL else level.name


def format_levels(levels: Iterable[Level], add_na: bool = False) -> str:
    """Compress a list of levels into a range string.

    Levels are sorted rostral to caudal and runs of consecutive levels are
    shown as "first-last". S4_5 is shown as "INT".

    Args:
        levels: Candidate levels in any order
        add_na: Prefix the result with "NA" (used for zones of partial
            preservation when ASIA A is one of several possible grades)

    Returns:
        Range string, e.g. "C4-C6,T1" or "NA,C5"
    """
    ordered = sorted(levels, key=lambda level: level.ordinal)
    if not ordered:
        return NOT_APPLICABLE if add_na else ""

    text = ""
    previous = None
    is_range = False

    for level in ordered:
        if previous is not None and level.ordinal <= previous.ordinal:
            continue

        if previous is None:
            text = _display_name(level)
        elif level.ordinal == previous.ordinal + 1:
            is_range = True
        else:
            text += (f"-{previous.name}," if is_range else ",") + _display_name(level)
            is_range = False

        previous = level

    if is_range:
        text += f"-{_display_name(previous)}"

    if add_na:
        return f"{NOT_APPLICABLE},{text}" if text else NOT_APPLICABLE
    return text


@dataclass
class TotalsSummary:
    """Display strings for one classified exam."""
    asia_impairment_scale: str
    completeness: str
    neurological_level_of_injury: str
    right_sensory: str
    left_sensory: str
    right_motor: str
    left_motor: str
    right_sensory_zpp: str
    left_sensory_zpp: str
    right_motor_zpp: str
    left_motor_zpp: str
    right_touch_total: str
    left_touch_total: str
    touch_total: str
    right_prick_total: str
    left_prick_total: str
    prick_total: str
    right_upper_motor_total: str
    left_upper_motor_total: str
    upper_motor_total: str
    right_lower_motor_total: str
    left_lower_motor_total: str
    lower_motor_total: str
    right_motor_total: str
    left_motor_total: str

    def to_dict(self) -> dict:
        return asdict(self)


def get_totals_summary_for(source: ClassificationTotals | ExamRecord) -> TotalsSummary:
    """Build the display summary for classified totals, or classify an exam first."""
    totals = classify(source) if isinstance(source, ExamRecord) else source

    ais = totals.asia_impairment_scale_values
    is_asia_a = "A" in ais
    could_be_other_than_a = not is_asia_a or len(ais) > 1

    if is_asia_a:
        completeness = f"{COMPLETE},{INCOMPLETE}" if could_be_other_than_a else COMPLETE
    else:
        completeness = INCOMPLETE

    def _zpp(level_set) -> str:
        # Zones of partial preservation only apply to complete injuries
        if not is_asia_a:
            return NOT_APPLICABLE
        return format_levels(level_set.levels, add_na=could_be_other_than_a)

    return TotalsSummary(
        asia_impairment_scale=totals.get_asia_impairment_scale_values(),
        completeness=completeness,
        neurological_level_of_injury=format_levels(totals.neurological_level_of_injury.levels),
        right_sensory=format_levels(totals.right_sensory.levels),
        left_sensory=format_levels(totals.left_sensory.levels),
        right_motor=format_levels(totals.right_motor.levels),
        left_motor=format_levels(totals.left_motor.levels),
        right_sensory_zpp=_zpp(totals.right_sensory_zpp),
        left_sensory_zpp=_zpp(totals.left_sensory_zpp),
        right_motor_zpp=_zpp(totals.right_motor_zpp),
        left_motor_zpp=_zpp(totals.left_motor_zpp),
        right_touch_total=_format_total(totals.right_touch),
        left_touch_total=_format_total(totals.left_touch),
        touch_total=_format_total(totals.touch_combined),
        right_prick_total=_format_total(totals.right_prick),
        left_prick_total=_format_total(totals.left_prick),
        prick_total=_format_total(totals.prick_combined),
        right_upper_motor_total=_format_total(totals.right_upper_motor),
        left_upper_motor_total=_format_total(totals.left_upper_motor),
        upper_motor_total=_format_total(totals.upper_motor_combined),
        right_lower_motor_total=_format_total(totals.right_lower_motor),
        left_lower_motor_total=_format_total(totals.left_lower_motor),
        lower_motor_total=_format_total(totals.lower_motor_combined),
        right_motor_total=_format_total(totals.right_motor_total),
        left_motor_total=_format_total(totals.left_motor_total),
    )
