"""Assessment wizard state.

The UI keeps exactly one `AssessmentState` in its session; every user action
goes through a transition function below and replaces it with a new value.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from .catalog import Question, normalize_language
from .scoring import total_score
from .submission import Respondent
from .translations import TranslationBundle, resolve


class Stage(str, Enum):
    GUIDANCE = "guidance"
    PERSONAL_INFO = "personal_info"
    QUESTIONS = "questions"
    RESULTS = "results"


@dataclass(frozen=True)
class AssessmentState:
    stage: Stage = Stage.GUIDANCE
    language: str = "en"
    respondent: Optional[Respondent] = None
    answers: Dict[str, str] = field(default_factory=dict)
    current_question: int = 0
    errors: Tuple[str, ...] = ()
    score: Optional[int] = None
    submitted: bool = False

    def current(self, questions: Sequence[Question]) -> Optional[Question]:
        if self.stage != Stage.QUESTIONS or not 1 <= self.current_question <= len(questions):
            return None
        return questions[self.current_question - 1]

    def progress(self, total: int) -> float:
        if total <= 0 or self.current_question <= 0:
            return 0.0
        return min(100.0, self.current_question / total * 100)


def initial_state(language: str = "en") -> AssessmentState:
    return AssessmentState(language=normalize_language(language))


def start(state: AssessmentState) -> AssessmentState:
    return replace(state, stage=Stage.PERSONAL_INFO, errors=())


def submit_personal_info(state: AssessmentState, respondent: Respondent) -> AssessmentState:
    return replace(state, stage=Stage.QUESTIONS, respondent=respondent, current_question=1, errors=())


def select_answer(state: AssessmentState, question_id: str, value: str) -> AssessmentState:
    answers = dict(state.answers)
    answers[question_id] = value
    return replace(state, answers=answers, errors=())


def finish(state: AssessmentState, questions: Sequence[Question]) -> AssessmentState:
    return replace(
        state,
        stage=Stage.RESULTS,
        score=total_score(questions, state.answers),
        errors=(),
    )


def next_step(
    state: AssessmentState,
    questions: Sequence[Question],
    bundle: Optional[TranslationBundle] = None,
) -> AssessmentState:
    current = state.current(questions)
    if current is None:
        return state
    if not state.answers.get(current.id):
        msg = resolve(bundle, "validation.select_answer", "Please select an answer before proceeding.")
        return replace(state, errors=(msg,))
    if state.current_question < len(questions):
        return replace(state, current_question=state.current_question + 1, errors=())
    return finish(state, questions)


def back(state: AssessmentState) -> AssessmentState:
    if state.stage == Stage.QUESTIONS and state.current_question > 1:
        return replace(state, current_question=state.current_question - 1, errors=())
    if state.stage == Stage.PERSONAL_INFO:
        return replace(state, stage=Stage.GUIDANCE, errors=())
    return state


def change_language(state: AssessmentState, language: str) -> AssessmentState:
    # Answers are keyed by question id, which is shared by every language.
    return replace(state, language=normalize_language(language), errors=())


def mark_submitted(state: AssessmentState) -> AssessmentState:
    return replace(state, submitted=True)


def reset(state: AssessmentState) -> AssessmentState:
    return initial_state(state.language)
