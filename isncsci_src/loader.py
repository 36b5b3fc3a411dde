"""Load ISNCSCI exams and expected totals.

Two input layouts are supported:

XML test cases:
    <Case>
      <NeurologyForm>
        <AnalContraction>No</AnalContraction>
        <AnalSensation>Yes</AnalSensation>
        <RightLowestNonKeyMuscleWithMotorFunction/>
        <LeftLowestNonKeyMuscleWithMotorFunction/>
        <Dermatome name="C5">
          <RightTouch>2</RightTouch><LeftTouch>2</LeftTouch>
          <RightPrick>2</RightPrick><LeftPrick>2</LeftPrick>
          <RightMotor>5</RightMotor><LeftMotor>5</LeftMotor>
        </Dermatome>
        ...
      </NeurologyForm>
      <NeurologyFormTotals>...</NeurologyFormTotals>
    </Case>

JSON exams:
    {"anal_contraction": "No", "anal_sensation": "Yes",
     "right_lowest_non_key_muscle": null, "left_lowest_non_key_muscle": null,
     "levels": {"C5": {"right_touch": "2", ..., "right_motor": "5"}}}
"""

import json
import logging
import re
from pathlib import Path
from xml.etree import ElementTree as ET

from .criteria import ABSENT_LABEL, S4_5, BinaryObservation, Side
from .levels import LevelChain
from .models import ExamRecord
from .summary import INTACT
from .totals import ClassificationTotals, LevelSet, Total

logger = logging.getLogger(__name__)

_IMPAIRMENT_SUFFIX_PATTERN = re.compile(r"!$")

_EXPECTED_SUMS = {
    "right_touch": ("RightTouchTotal", "RightTouchContainsNt"),
    "left_touch": ("LeftTouchTotal", "LeftTouchContainsNt"),
    "right_prick": ("RightPrickTotal", "RightPrickContainsNt"),
    "left_prick": ("LeftPrickTotal", "LeftPrickContainsNt"),
    "right_upper_motor": ("RightUpperMotorTotal", "RightUpperMotorContainsNt"),
    "left_upper_motor": ("LeftUpperMotorTotal", "LeftUpperMotorContainsNt"),
    "right_lower_motor": ("RightLowerMotorTotal", "RightLowerMotorContainsNt"),
    "left_lower_motor": ("LeftLowerMotorTotal", "LeftLowerMotorContainsNt"),
}

_EXPECTED_COMBINED = {
    "upper_motor_total": "UpperMotorTotal",
    "lower_motor_total": "LowerMotorTotal",
    "touch_total": "TouchTotal",
    "prick_total": "PrickTotal",
}

_EXPECTED_LEVEL_SETS = {
    "right_sensory": "RightSensory",
    "left_sensory": "LeftSensory",
    "right_motor": "RightMotor",
    "left_motor": "LeftMotor",
    "neurological_level_of_injury": "NeurologicalLevelOfInjury",
    "right_sensory_zpp": "RightSensoryZpp",
    "left_sensory_zpp": "LeftSensoryZpp",
    "right_motor_zpp": "RightMotorZpp",
    "left_motor_zpp": "LeftMotorZpp",
}

_DERMATOME_FIELDS = ("RightTouch", "LeftTouch", "RightPrick", "LeftPrick")


# =============================================================================
# XML
# =============================================================================

def _parse_xml(source: str | Path) -> ET.Element:
    """Parse a path or an XML string into its root element."""
    try:
        if isinstance(source, Path) or not str(source).lstrip().startswith("<"):
            return ET.parse(source).getroot()
        return ET.fromstring(source)
    except ET.ParseError as e:
        raise ValueError(f"Invalid XML document: {e}") from e


def _required_child(parent: ET.Element, tag: str) -> ET.Element:
    element = parent.find(tag)
    if element is None:
        raise ValueError(f"Missing <{tag}> in <{parent.tag}>")
    return element


def _get_text(parent: ET.Element, tag: str, default: str = "") -> str:
    element = parent.find(tag)
    if element is None or element.text is None:
        return default
    return element.text.strip()


def _required_text(parent: ET.Element, tag: str) -> str:
    return (_required_child(parent, tag).text or "").strip()


def load_exam_from_xml(source: str | Path) -> ExamRecord:
    """Load the <NeurologyForm> section of an XML test case.

    Args:
        source: Path to an XML file, or the XML document itself

    Raises:
        ValueError: If the document is malformed or an observation is unknown
    """
    root = _parse_xml(source)
    form = root if root.tag == "NeurologyForm" else _required_child(root, "NeurologyForm")

    exam = ExamRecord(
        anal_contraction=BinaryObservation.parse(_required_text(form, "AnalContraction")),
        anal_sensation=BinaryObservation.parse(_required_text(form, "AnalSensation")),
    )
    exam.set_lowest_non_key_muscle_with_motor_function(
        Side.RIGHT, _get_text(form, "RightLowestNonKeyMuscleWithMotorFunction")
    )
    exam.set_lowest_non_key_muscle_with_motor_function(
        Side.LEFT, _get_text(form, "LeftLowestNonKeyMuscleWithMotorFunction")
    )

    dermatomes = list(form.iter("Dermatome"))
    logger.debug(f"Loading {len(dermatomes)} dermatomes")

    for dermatome in dermatomes:
        name = dermatome.get("name")
        if not name:
            raise ValueError("<Dermatome> element without a name attribute")

        right_touch, left_touch, right_prick, left_prick = (
            _required_text(dermatome, tag) for tag in _DERMATOME_FIELDS
        )
        exam.update_level(
            name,
            right_touch,
            left_touch,
            right_prick,
            left_prick,
            right_motor=_get_text(dermatome, "RightMotor", ABSENT_LABEL),
            left_motor=_get_text(dermatome, "LeftMotor", ABSENT_LABEL),
        )

    return exam


def _parse_expected_total(text: str) -> tuple[int, bool]:
    """Parse an expected total such as "56" or "49!"."""
    has_impairment = bool(_IMPAIRMENT_SUFFIX_PATTERN.search(text))
    try:
        return int(_IMPAIRMENT_SUFFIX_PATTERN.sub("", text)), has_impairment
    except ValueError:
        return 0, has_impairment


def _parse_bool(text: str, tag: str) -> bool:
    value = text.strip().lower()
    if value not in ("true", "false"):
        raise ValueError(f"<{tag}> must be true or false, got {text!r}")
    return value == "true"


def _fill_level_set(level_set: LevelSet, text: str, chain: LevelChain) -> None:
    for name in (value.strip() for value in text.split(",")):
        if not name:
            continue
        level = chain.get(S4_5 if name.upper() == INTACT else name)
        if level is None:
            raise ValueError(f"Unknown level {name!r} in expected {level_set.name}")
        level_set.add(level)


def load_expected_totals_from_xml(source: str | Path) -> ClassificationTotals:
    """Load the <NeurologyFormTotals> section of an XML test case.

    Raises:
        ValueError: If the section is missing or malformed
    """
    root = _parse_xml(source)
    section = root if root.tag == "NeurologyFormTotals" else _required_child(root, "NeurologyFormTotals")

    totals = ClassificationTotals()
    chain = LevelChain()

    for attr, (total_tag, nt_tag) in _EXPECTED_SUMS.items():
        value, has_impairment = _parse_expected_total(_required_text(section, total_tag))
        setattr(totals, attr, Total(
            value=value,
            has_impairment_not_due_to_sci=has_impairment,
            contains_nt=_parse_bool(_get_text(section, nt_tag, "false"), nt_tag),
        ))

    for attr, tag in _EXPECTED_COMBINED.items():
        value, _ = _parse_expected_total(_get_text(section, tag, "0"))
        setattr(totals, attr, value)

    for attr, tag in _EXPECTED_LEVEL_SETS.items():
        _fill_level_set(getattr(totals, attr), _get_text(section, tag), chain)

    for grade in _get_text(section, "AsiaImpairmentScale").split(","):
        totals.add_asia_impairment_scale_value(grade.strip())

    totals.freeze()
    return totals


# =============================================================================
# JSON
# =============================================================================

def load_exam_from_dict(data: dict) -> ExamRecord:
    """Build an exam from a plain dictionary.

    Raises:
        ValueError: If the dictionary is not an exam
    """
    if not isinstance(data, dict):
        raise ValueError(f"Exam must be a JSON object, got {type(data).__name__}")

    levels = data.get("levels")
    if not isinstance(levels, dict):
        raise ValueError("Exam is missing a 'levels' object")

    exam = ExamRecord(
        anal_contraction=BinaryObservation.parse(data.get("anal_contraction", "")),
        anal_sensation=BinaryObservation.parse(data.get("anal_sensation", "")),
    )
    exam.set_lowest_non_key_muscle_with_motor_function(
        Side.RIGHT, data.get("right_lowest_non_key_muscle")
    )
    exam.set_lowest_non_key_muscle_with_motor_function(
        Side.LEFT, data.get("left_lowest_non_key_muscle")
    )

    for name, values in levels.items():
        if not isinstance(values, dict):
            raise ValueError(f"Values for level {name} must be an object")
        exam.update_level(
            name,
            right_touch=str(values.get("right_touch", ABSENT_LABEL)),
            left_touch=str(values.get("left_touch", ABSENT_LABEL)),
            right_prick=str(values.get("right_prick", ABSENT_LABEL)),
            left_prick=str(values.get("left_prick", ABSENT_LABEL)),
            right_motor=str(values.get("right_motor", ABSENT_LABEL)),
            left_motor=str(values.get("left_motor", ABSENT_LABEL)),
        )

    return exam


def load_exam_from_json(path: str | Path) -> ExamRecord:
    """Load an exam from a JSON file."""
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    return load_exam_from_dict(data)


def load_exam(path: str | Path) -> ExamRecord:
    """Load an exam from an .xml or .json file, by extension."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        return load_exam_from_json(path)
    if path.suffix.lower() == ".xml":
        return load_exam_from_xml(path)
    raise ValueError(f"Unsupported exam file type: {path.suffix or path.name}")
