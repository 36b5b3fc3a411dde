"""ISNCSCI spinal cord injury classification.

Scores and classifies a recorded ISNCSCI exam: sensory and motor totals,
sensory, motor and neurological levels, zones of partial preservation and
the ASIA Impairment Scale grade(s).

Architecture:
    Exam file → Loader → ExamRecord → ClassificationEngine → ClassificationTotals → Summary

Results are sets of candidate levels and grades rather than single values,
because "not testable" (NT) scores leave more than one answer possible.
"""

from .criteria import (
    BinaryObservation,
    Modality,
    Score,
    Side,
    parse_score,
)
from .levels import Level, LevelChain
from .models import ExamRecord
from .totals import ClassificationTotals, LevelSet, Total
from .engine import ClassificationEngine, classify
from .summary import (
    TotalsSummary,
    format_levels,
    format_total,
    get_totals_summary_for,
)
from .loader import (
    load_exam,
    load_exam_from_dict,
    load_exam_from_json,
    load_exam_from_xml,
    load_expected_totals_from_xml,
)
from .verify import compare_totals

__all__ = [
    # Criteria
    "BinaryObservation",
    "Modality",
    "Score",
    "Side",
    "parse_score",
    # Exam
    "Level",
    "LevelChain",
    "ExamRecord",
    # Classification
    "ClassificationTotals",
    "LevelSet",
    "Total",
    "ClassificationEngine",
    "classify",
    # Summary
    "TotalsSummary",
    "format_levels",
    "format_total",
    "get_totals_summary_for",
    # Loading and verification
    "load_exam",
    "load_exam_from_dict",
    "load_exam_from_json",
    "load_exam_from_xml",
    "load_expected_totals_from_xml",
    "compare_totals",
]
