"""Tests for the CLI runner and configuration."""

import json
import logging

import pytest

from isncsci_src.config import Config
from isncsci_src.criteria import LEVEL_NAMES
from isncsci_src.runner import main, run_verify

KEY_MUSCLE_NAMES = {"C5", "C6", "C7", "C8", "T1", "L2", "L3", "L4", "L5", "S1"}

TOTALS_TEMPLATE = """
  <NeurologyFormTotals>
    <RightTouchTotal>56</RightTouchTotal><LeftTouchTotal>56</LeftTouchTotal>
    <RightPrickTotal>56</RightPrickTotal><LeftPrickTotal>56</LeftPrickTotal>
    <RightUpperMotorTotal>25</RightUpperMotorTotal><LeftUpperMotorTotal>25</LeftUpperMotorTotal>
    <RightLowerMotorTotal>25</RightLowerMotorTotal><LeftLowerMotorTotal>25</LeftLowerMotorTotal>
    <UpperMotorTotal>50</UpperMotorTotal><LowerMotorTotal>50</LowerMotorTotal>
    <TouchTotal>112</TouchTotal><PrickTotal>112</PrickTotal>
    <RightSensory>INT</RightSensory><LeftSensory>INT</LeftSensory>
    <RightMotor>INT</RightMotor><LeftMotor>INT</LeftMotor>
    <NeurologicalLevelOfInjury>INT</NeurologicalLevelOfInjury>
    <AsiaImpairmentScale>{ais}</AsiaImpairmentScale>
  </NeurologyFormTotals>
"""


def normal_case_xml(ais: str = "E") -> str:
    dermatomes = []
    for name in LEVEL_NAMES[1:]:
        motor = "<RightMotor>5</RightMotor><LeftMotor>5</LeftMotor>" if name in KEY_MUSCLE_NAMES else ""
        dermatomes.append(
            f'<Dermatome name="{name}"><RightTouch>2</RightTouch><LeftTouch>2</LeftTouch>'
            f"<RightPrick>2</RightPrick><LeftPrick>2</LeftPrick>{motor}</Dermatome>"
        )
    return (
        "<Case><NeurologyForm><AnalContraction>Yes</AnalContraction>"
        "<AnalSensation>Yes</AnalSensation>"
        f"{''.join(dermatomes)}</NeurologyForm>{TOTALS_TEMPLATE.format(ais=ais)}</Case>"
    )


class TestClassifyCommand:
    """Test the classify command."""

    def test_classify_text(self, tmp_path, capsys):
        path = tmp_path / "normal.xml"
        path.write_text(normal_case_xml())

        assert main(["classify", str(path)]) == 0

        out = capsys.readouterr().out
        assert "ISNCSCI Classification: normal.xml" in out
        assert "ASIA Impairment Scale:    E" in out

    def test_classify_json(self, tmp_path, capsys):
        path = tmp_path / "normal.xml"
        path.write_text(normal_case_xml())

        assert main(["classify", str(path), "--json"]) == 0

        out = capsys.readouterr().out
        summary = json.loads(out[out.index("{"):out.rindex("}") + 1])
        assert summary["asia_impairment_scale"] == "E"
        assert summary["touch_total"] == "112"

    def test_classify_missing_file(self, tmp_path):
        assert main(["classify", str(tmp_path / "missing.xml")]) == 1


class TestVerifyCommand:
    """Test the verify command."""

    def test_verify_directory(self, tmp_path, capsys):
        (tmp_path / "normal.xml").write_text(normal_case_xml())

        assert main(["verify", str(tmp_path)]) == 0
        assert "Passed: 1" in capsys.readouterr().out

    def test_verify_reports_failures(self, tmp_path):
        (tmp_path / "good.xml").write_text(normal_case_xml())
        (tmp_path / "bad.xml").write_text(normal_case_xml(ais="D"))

        results = run_verify([str(tmp_path)])
        assert results["passed"] == 1
        assert results["failed"] == 1

        bad = next(d for d in results["details"] if d["case"] == "bad.xml")
        assert bad["mismatches"] == ["asia_impairment_scale: expected D, got E"]

        assert main(["verify", str(tmp_path)]) == 1

    def test_verify_counts_load_errors(self, tmp_path):
        (tmp_path / "broken.xml").write_text("<Case>")
        results = run_verify([str(tmp_path)])
        assert results["errors"] == 1

    def test_verify_without_cases(self, monkeypatch):
        monkeypatch.setattr(Config, "TEST_CASES_DIR", None)
        assert main(["verify"]) == 1


class TestConfig:
    """Test environment driven configuration."""

    def test_log_level(self, monkeypatch):
        monkeypatch.setattr(Config, "LOG_LEVEL", "DEBUG")
        assert Config.get_log_level() == logging.DEBUG

        monkeypatch.setattr(Config, "LOG_LEVEL", "LOUD")
        assert Config.get_log_level() == logging.INFO

    def test_output_format(self, monkeypatch):
        monkeypatch.setattr(Config, "OUTPUT_FORMAT", "json")
        assert Config.use_json_output() is True

        monkeypatch.setattr(Config, "OUTPUT_FORMAT", "text")
        assert Config.use_json_output() is False

    def test_test_case_paths(self, monkeypatch, tmp_path):
        (tmp_path / "b.xml").write_text("")
        (tmp_path / "a.xml").write_text("")
        (tmp_path / "notes.txt").write_text("")

        monkeypatch.setattr(Config, "TEST_CASES_DIR", str(tmp_path))
        assert [p.name for p in Config.get_test_case_paths()] == ["a.xml", "b.xml"]

        monkeypatch.setattr(Config, "TEST_CASES_DIR", None)
        assert Config.get_test_case_paths() == []
