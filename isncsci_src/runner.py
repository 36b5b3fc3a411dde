#!/usr/bin/env python3
"""CLI runner for ISNCSCI classification.

Usage:
    python -m isncsci_src.runner classify exam.xml
    python -m isncsci_src.runner classify exam.json --json
    python -m isncsci_src.runner verify tests/cases/
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import Config
from .criteria import ALGORITHM_VERSION, ISNCSCI_REVISION
from .engine import ClassificationEngine
from .loader import load_exam, load_exam_from_xml, load_expected_totals_from_xml
from .summary import TotalsSummary, get_totals_summary_for
from .verify import compare_totals

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else Config.get_log_level()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def show_summary(path: Path, summary: TotalsSummary) -> None:
    """Display a classification summary."""
    print(f"\n=== ISNCSCI Classification: {path.name} ===")
    print(f"Standard revision:        {ISNCSCI_REVISION} (algorithm v{ALGORITHM_VERSION})")
    print(f"ASIA Impairment Scale:    {summary.asia_impairment_scale}")
    print(f"Completeness:             {summary.completeness}")
    print(f"Neurological level:       {summary.neurological_level_of_injury}")
    print("-" * 60)
    print(f"{'':24s} {'Right':>10s} {'Left':>10s} {'Total':>10s}")
    print(f"{'Sensory level':24s} {summary.right_sensory:>10s} {summary.left_sensory:>10s}")
    print(f"{'Motor level':24s} {summary.right_motor:>10s} {summary.left_motor:>10s}")
    print(f"{'Sensory ZPP':24s} {summary.right_sensory_zpp:>10s} {summary.left_sensory_zpp:>10s}")
    print(f"{'Motor ZPP':24s} {summary.right_motor_zpp:>10s} {summary.left_motor_zpp:>10s}")
    print(
        f"{'Light touch':24s} {summary.right_touch_total:>10s} "
        f"{summary.left_touch_total:>10s} {summary.touch_total:>10s}"
    )
    print(
        f"{'Pin prick':24s} {summary.right_prick_total:>10s} "
        f"{summary.left_prick_total:>10s} {summary.prick_total:>10s}"
    )
    print(
        f"{'Upper extremity motor':24s} {summary.right_upper_motor_total:>10s} "
        f"{summary.left_upper_motor_total:>10s} {summary.upper_motor_total:>10s}"
    )
    print(
        f"{'Lower extremity motor':24s} {summary.right_lower_motor_total:>10s} "
        f"{summary.left_lower_motor_total:>10s} {summary.lower_motor_total:>10s}"
    )
    print(f"{'Motor':24s} {summary.right_motor_total:>10s} {summary.left_motor_total:>10s}")
    print("-" * 60)


def run_classify(path: Path, as_json: bool = False) -> int:
    """Classify one exam file and print its summary.

    Returns:
        Process exit code.
    """
    try:
        exam = load_exam(path)
    except (ValueError, OSError) as e:
        logger.error(f"Failed to load {path}: {e}")
        return 1

    totals = ClassificationEngine().classify(exam)
    summary = get_totals_summary_for(totals)
    logger.info(f"{path.name}: AIS {summary.asia_impairment_scale}, NLI {summary.neurological_level_of_injury}")

    if as_json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        show_summary(path, summary)
    return 0


def _collect_case_paths(paths: list[str]) -> list[Path]:
    collected = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            collected.extend(sorted(path.glob("*.xml")))
        else:
            collected.append(path)
    return collected


def run_verify(paths: list[str]) -> dict:
    """Classify XML test cases and compare them with their expected totals.

    Args:
        paths: Test case files or directories of test cases.

    Returns:
        Results dict with passed/failed/errors counts and per-case details.
    """
    results = {"passed": 0, "failed": 0, "errors": 0, "details": []}
    engine = ClassificationEngine()

    for path in _collect_case_paths(paths):
        try:
            exam = load_exam_from_xml(path)
            expected = load_expected_totals_from_xml(path)
        except (ValueError, OSError) as e:
            logger.error(f"Failed to load {path}: {e}")
            results["errors"] += 1
            results["details"].append({"case": path.name, "status": "error", "mismatches": [str(e)]})
            continue

        mismatches = compare_totals(expected, engine.classify(exam))
        status = "failed" if mismatches else "passed"
        results[status] += 1
        results["details"].append({"case": path.name, "status": status, "mismatches": mismatches})

    return results


def show_verify_results(results: dict) -> None:
    """Display verification results."""
    print("\n=== Verification Results ===")
    print(f"Passed: {results['passed']}")
    print(f"Failed: {results['failed']}")
    print(f"Errors: {results['errors']}")

    failures = [d for d in results["details"] if d["status"] != "passed"]
    if failures:
        print("\nFailures:")
        print("-" * 80)
        for d in failures:
            print(f"  {d['case']} ({d['status']})")
            for mismatch in d["mismatches"]:
                print(f"      {mismatch}")
        print("-" * 80)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="ISNCSCI spinal cord injury classification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Classify an exam and print the summary
    python -m isncsci_src.runner classify exam.xml

    # Same, as JSON
    python -m isncsci_src.runner classify exam.json --json

    # Check XML test cases against their expected totals
    python -m isncsci_src.runner verify tests/cases/

    # Use TEST_CASES_DIR from the environment
    python -m isncsci_src.runner verify
        """,
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    classify_parser = subparsers.add_parser("classify", help="Classify an exam file (.xml or .json)")
    classify_parser.add_argument("exam", type=Path, help="Path to the exam file")
    classify_parser.add_argument(
        "--json",
        action="store_true",
        default=None,
        help=f"Print the summary as JSON (default output: {Config.OUTPUT_FORMAT})",
    )

    verify_parser = subparsers.add_parser("verify", help="Verify XML test cases")
    verify_parser.add_argument(
        "paths",
        nargs="*",
        help=f"Test case files or directories (default: {Config.TEST_CASES_DIR or 'none'})",
    )

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "classify":
        as_json = args.json if args.json is not None else Config.use_json_output()
        return run_classify(args.exam, as_json=as_json)

    paths = args.paths or ([Config.TEST_CASES_DIR] if Config.TEST_CASES_DIR else [])
    if not paths:
        logger.error("No test cases given and TEST_CASES_DIR is not set")
        return 1

    results = run_verify(paths)
    show_verify_results(results)
    return 0 if results["failed"] == 0 and results["errors"] == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
