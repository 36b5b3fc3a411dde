"""ISNCSCI scoring reference data and constants.

This module contains the fixed tables and scoring conventions from the
International Standards for Neurological Classification of Spinal Cord
Injury (ISNCSCI). These should be revisited whenever ASIA publishes a
revision of the worksheet.

Reference: ASIA/ISCoS International Standards for Neurological
Classification of Spinal Cord Injury, Revised 2011
"""

import re
from dataclasses import dataclass
from enum import Enum

# =============================================================================
# Version Tracking
# =============================================================================

ISNCSCI_REVISION = "2011"
ALGORITHM_VERSION = "1.0"


# =============================================================================
# Levels
#
# C1 is never examined. It is kept in the chain as a synthetic anchor with
# normal values so that "no impairment above the first recorded level" can
# be expressed as a level.
# =============================================================================

LEVEL_NAMES = (
    "C1", "C2", "C3", "C4", "C5", "C6", "C7", "C8",
    "T1", "T2", "T3", "T4", "T5", "T6", "T7", "T8", "T9", "T10", "T11", "T12",
    "L1", "L2", "L3", "L4", "L5",
    "S1", "S2", "S3", "S4_5",
)

# The ten standard myotomes
KEY_MUSCLES = frozenset({"C5", "C6", "C7", "C8", "T1", "L2", "L3", "L4", "L5", "S1"})

# Lower extremity myotomes (lower motor total)
LOWER_MUSCLES = frozenset({"L2", "L3", "L4", "L5", "S1"})

C1 = "C1"
S1 = "S1"
S4_5 = "S4_5"

# Ordinal landmarks used by the motor ZPP and ASIA C/D rules
C4_ORDINAL = 3
T1_ORDINAL = 8
L1_ORDINAL = 20
L5_ORDINAL = 24
S1_ORDINAL = 25
S4_5_ORDINAL = 28

# Motor function up to this many levels below the motor level is not
# considered sparing
MAX_LEVELS_BELOW_MOTOR_LEVEL = 3


# =============================================================================
# Score Values
# =============================================================================

NORMAL_SENSORY_VALUE = 2
NORMAL_MOTOR_VALUE = 5

# Muscle grade at or above which a key muscle counts as antigravity
ANTIGRAVITY_MOTOR_VALUE = 3

# Labels used when deriving motor values for non-key-muscle levels
NORMAL_MOTOR_LABEL = "5"
ABSENT_LABEL = "0"
NOT_TESTABLE_LABEL = "NT"


class Modality(str, Enum):
    """Exam modality recorded at each level."""
    TOUCH = "touch"
    PRICK = "prick"
    MOTOR = "motor"

    @property
    def normal_value(self) -> int:
        if self is Modality.MOTOR:
            return NORMAL_MOTOR_VALUE
        return NORMAL_SENSORY_VALUE


class Side(str, Enum):
    """Body side."""
    RIGHT = "right"
    LEFT = "left"

    @property
    def opposite(self) -> "Side":
        return Side.LEFT if self is Side.RIGHT else Side.RIGHT


SIDES = (Side.RIGHT, Side.LEFT)


class BinaryObservation(str, Enum):
    """Anal contraction / deep anal pressure observations."""
    YES = "Yes"
    NO = "No"
    NT = "NT"

    @classmethod
    def parse(cls, value: str) -> "BinaryObservation":
        """Parse an observation label, case-insensitively.

        Raises:
            ValueError: If the label is not Yes, No or NT.
        """
        text = (value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(f"Unknown observation: {value!r}. Use: Yes, No or NT")

    @property
    def could_be_yes(self) -> bool:
        return self in (BinaryObservation.YES, BinaryObservation.NT)

    @property
    def could_be_no(self) -> bool:
        return self in (BinaryObservation.NO, BinaryObservation.NT)


# =============================================================================
# Raw Score Labels
#
# Examiners record a number, optionally followed by "!" or "*" when the
# deficit is not due to the spinal cord injury, or "NT" when the value could
# not be tested. "NT*" means not testable for a reason unrelated to the SCI
# and is scored as normal.
# =============================================================================

_NT_PATTERN = re.compile(r"\bNT\b", re.IGNORECASE)
_IMPAIRMENT_MARKER_PATTERN = re.compile(r".+[!*]")
_MARKER_CHARACTERS_PATTERN = re.compile(r"[*!]")
_NT_NORMAL_TOKEN = "NT*"


@dataclass(frozen=True)
class Score:
    """One recorded exam value."""
    raw: str
    value: int
    impairment_not_due_to_sci: bool = False

    @property
    def is_not_testable(self) -> bool:
        return is_not_testable(self.raw)

    @property
    def is_absent(self) -> bool:
        """True only for the literal label "0"."""
        return self.raw == ABSENT_LABEL


def is_not_testable(label: str) -> bool:
    """Check if a raw label contains the NT token."""
    return bool(label) and _NT_PATTERN.search(label) is not None


def has_impairment_marker(label: str) -> bool:
    """Check if a raw label flags impairment not due to SCI."""
    if not label or label.strip().upper() == _NT_NORMAL_TOKEN:
        return False
    return _IMPAIRMENT_MARKER_PATTERN.search(label) is not None


def parse_value(label: str, normal_value: int) -> int:
    """Convert a raw label to its numeric value.

    Unparseable labels score 0. This mirrors clinical tolerance for
    incomplete worksheets and is not an error.
    """
    if not label:
        return 0
    if label.strip().upper() == _NT_NORMAL_TOKEN:
        return normal_value
    try:
        return int(_MARKER_CHARACTERS_PATTERN.sub("", label))
    except ValueError:
        return 0


def parse_score(label: str, modality: Modality) -> Score:
    """Build a Score from a raw worksheet label."""
    label = "" if label is None else str(label)
    return Score(
        raw=label,
        value=parse_value(label, modality.normal_value),
        impairment_not_due_to_sci=has_impairment_marker(label),
    )


def normal_score(modality: Modality) -> Score:
    """Score used for the synthetic C1 anchor."""
    value = modality.normal_value
    return Score(raw=str(value), value=value)
