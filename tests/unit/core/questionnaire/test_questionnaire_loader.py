"""Unit tests for the questionnaire loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from symtrack.core.questionnaire.loader import QuestionnaireLoadError, load_questionnaire_file

PACKAGED_QUESTIONNAIRE = (
    Path(__file__).resolve().parents[4]
    / "src" / "symtrack" / "domains" / "symptoms" / "rules" / "questionnaire.yaml"
)

_MINIMAL = """
start: mood
questions:
  - id: mood
    text: How do you feel?
    options: [good, bad]
    next:
      bad: sleep
  - id: sleep
    text: Did you sleep well?
    type: multiple_choice
    options: ["yes", "no"]
rules:
  - id: poor_sleep
    conditions:
      sleep: "no"
    result:
      urgency: routine
      title: Poor sleep
      action: Keep a regular bedtime
fallback:
  urgency: routine
  title: All good
  action: Carry on
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "questionnaire.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadQuestionnaire:
    def test_packaged_file_loads(self):
        questionnaire = load_questionnaire_file(PACKAGED_QUESTIONNAIRE)
        assert questionnaire.start == "fever_check"
        assert questionnaire.rules
        assert questionnaire.fallback.urgency == "routine"

    def test_minimal_file(self, tmp_path):
        questionnaire = load_questionnaire_file(_write(tmp_path, _MINIMAL))
        mood = questionnaire.questions["mood"]
        assert mood.options == ("good", "bad")
        assert mood.next == {"bad": "sleep"}
        assert questionnaire.questions["sleep"].type == "multiple_choice"
        assert questionnaire.rules[0].conditions == {"sleep": ("no",)}

    @pytest.mark.parametrize("old, new", [
        ("start: mood", "start: appetite"),
        ("bad: sleep", "bad: appetite"),
        ("      sleep: \"no\"", "      appetite: \"no\""),
        ("urgency: routine\n      title: Poor sleep", "urgency: whenever\n      title: Poor sleep"),
        ("type: multiple_choice", "type: free_text"),
        ("    options: [good, bad]\n", ""),
        ("  - id: sleep\n", "  - id: mood\n"),
    ])
    def test_inconsistent_definition_rejected(self, tmp_path, old, new):
        assert old in _MINIMAL
        with pytest.raises(QuestionnaireLoadError):
            load_questionnaire_file(_write(tmp_path, _MINIMAL.replace(old, new)))

    @pytest.mark.parametrize("content", ["just text", "questions: [1, 2]", "start: x\n"])
    def test_wrong_shape_rejected(self, tmp_path, content):
        with pytest.raises(QuestionnaireLoadError):
            load_questionnaire_file(_write(tmp_path, content))

    def test_missing_file(self, tmp_path):
        with pytest.raises(QuestionnaireLoadError):
            load_questionnaire_file(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(QuestionnaireLoadError):
            load_questionnaire_file(_write(tmp_path, "questions: [unclosed"))
