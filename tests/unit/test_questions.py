"""Tests for the question bank and answers files."""

from __future__ import annotations

import json

import pytest

from isms_roadmap.core.errors import InvalidResponseValue, ValidationError
from isms_roadmap.core.questions import (
    build_responses,
    load_answers_file,
    load_question_bank,
)
from isms_roadmap.core.scoring import score_responses
from isms_roadmap.models.common import Category


class TestQuestionBank:
    def test_bundled_bank(self):
        bank = load_question_bank()
        assert bank.id == "iso27001"
        assert len(bank.questions) == 13
        assert {q.category for q in bank.questions} == set(Category)
        assert len({q.id for q in bank.questions}) == len(bank.questions)
        assert any(q.critical for q in bank.questions)

    def test_unknown_bank(self):
        with pytest.raises(ValidationError):
            load_question_bank(bank_id="nist-csf")

    def test_workspace_override(self, workspace):
        (workspace / ".isms-roadmap" / "questions.yaml").write_text(
            "id: custom\n"
            "questions:\n"
            "  - id: Q1\n"
            "    text: Is there a policy?\n"
            "    category: Plan\n"
            '    clause: "5.2"\n'
            "    weight: 2\n",
            encoding="utf-8",
        )
        bank = load_question_bank(workspace)
        assert bank.id == "custom"
        assert bank.questions[0].clause == "5.2"

    def test_invalid_override(self, workspace):
        (workspace / ".isms-roadmap" / "questions.yaml").write_text(
            "id: broken\nquestions:\n  - id: Q1\n    weight: -1\n",
            encoding="utf-8",
        )
        with pytest.raises(ValidationError):
            load_question_bank(workspace)


class TestBuildResponses:
    def test_joins_answers(self):
        bank = load_question_bank()
        first = bank.questions[0]
        responses = build_responses(bank, {first.id: "Oui"})
        assert len(responses) == len(bank.questions)
        assert responses[0]["response"] == "Oui"
        assert responses[1]["response"] is None

        scored = score_responses(responses)
        assert scored.answered_questions == 1

    def test_unknown_question(self):
        bank = load_question_bank()
        with pytest.raises(ValidationError) as exc:
            build_responses(bank, {"NOPE-99": "Oui"})
        assert exc.value.details == ["NOPE-99"]


class TestAnswersFile:
    def test_yaml_sheet(self, tmp_path):
        path = tmp_path / "answers.yaml"
        path.write_text(
            "answers:\n  PLAN-01: Oui\n  DO-01: Partiellement\n"
            "completion_time: 300\nnotes: First pass\ntags: [q1]\n",
            encoding="utf-8",
        )
        sheet = load_answers_file(path)
        assert sheet.answers == {"PLAN-01": "Oui", "DO-01": "Partiellement"}
        assert sheet.completion_time == 300
        assert sheet.tags == ["q1"]

    def test_bare_mapping(self, tmp_path):
        path = tmp_path / "answers.json"
        path.write_text(json.dumps({"PLAN-01": "Non"}), encoding="utf-8")
        sheet = load_answers_file(path)
        assert sheet.answers == {"PLAN-01": "Non"}
        assert sheet.notes == ""

    def test_yaml_boolean_answer_is_invalid_response(self, tmp_path):
        path = tmp_path / "answers.yaml"
        path.write_text("PLAN-01: yes\n", encoding="utf-8")
        sheet = load_answers_file(path)
        assert sheet.answers == {"PLAN-01": True}
        with pytest.raises(InvalidResponseValue):
            score_responses(build_responses(load_question_bank(), sheet.answers))

    def test_unreadable(self, tmp_path):
        path = tmp_path / "answers.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_answers_file(path)
