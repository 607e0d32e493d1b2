"""Boundary models for submissions and consultation requests.

Validation happens here, before any scoring or delivery side effect.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from ..errors import SubmissionError
from .catalog import Question
from .translations import TranslationBundle, resolve

FIELD_MESSAGES = {
    "name": ("validation.name", "Please enter a valid name."),
    "email": ("validation.email", "Please enter a valid email address"),
    "company": ("validation.company", "Company name cannot be empty."),
    "position": ("validation.position", "Please enter a valid position."),
    "first_name": ("validation.first_name", "Please enter a valid first name."),
    "last_name": ("validation.last_name", "Please enter a valid last name."),
    "phone": ("validation.phone", "Please enter a valid phone number."),
}


class Respondent(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=2)
    email: EmailStr
    company: str = Field(min_length=2)
    position: str = Field(min_length=2)


class ContactInfo(BaseModel):
    """Respondent details echoed back with a consultation request; not re-validated."""
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    company: str = ""
    position: str = ""


class ConsultationContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    personal_info: Optional[ContactInfo] = None
    score: Optional[int] = None


class ConsultationRequest(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    first_name: str = Field(min_length=2)
    last_name: str = Field(min_length=2)
    email: EmailStr
    phone: str = Field(min_length=7, max_length=20)
    context: Optional[ConsultationContext] = None


class AssessmentSubmission(BaseModel):
    model_config = ConfigDict(frozen=True)

    personal_info: Respondent
    answers: Dict[str, str]
    score: Optional[int] = None
    language: str = "en"

    @field_validator("language")
    @classmethod
    def _lower_language(cls, v: str) -> str:
        return (v or "en").strip().lower()


def _field_messages(exc: ValidationError, bundle: Optional[TranslationBundle]) -> List[str]:
    messages: List[str] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        field = next((part for part in reversed(loc) if part in FIELD_MESSAGES), None)
        if field is None:
            messages.append(f"{'.'.join(loc) or 'input'}: {err.get('msg', 'invalid value')}")
            continue
        if field == "phone" and err.get("type") == "string_too_long":
            msg = resolve(bundle, "validation.phone_too_long", "Phone number is too long.")
        else:
            key, default = FIELD_MESSAGES[field]
            msg = resolve(bundle, key, default)
        if msg not in messages:
            messages.append(msg)
    return messages


def email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].lower() if "@" in email else ""


def validate_respondent(
    data: Mapping[str, object],
    bundle: Optional[TranslationBundle] = None,
    blocked_domains: Sequence[str] = (),
) -> Respondent:
    """Build a Respondent or raise SubmissionError with localized messages."""
    try:
        respondent = Respondent.model_validate(dict(data))
    except ValidationError as exc:
        raise SubmissionError(_field_messages(exc, bundle)) from exc
    if email_domain(respondent.email) in {d.lower() for d in blocked_domains}:
        raise SubmissionError([
            resolve(bundle, "validation.business_email", "Please use your business email address.")
        ])
    return respondent


def missing_answers(questions: Iterable[Question], answers: Mapping[str, str]) -> List[str]:
    return [q.id for q in questions if not answers.get(q.id)]


def validate_answers(
    questions: Sequence[Question],
    answers: Mapping[str, object],
    bundle: Optional[TranslationBundle] = None,
) -> Dict[str, str]:
    """Require one string entry per active question.

    Values that match no option are accepted here; they score 0 and render
    as a placeholder later.
    """
    if not isinstance(answers, Mapping):
        raise SubmissionError(["answers: expected a mapping of question id to option value"])
    bad = [qid for qid, value in answers.items() if not isinstance(value, str)]
    if bad:
        raise SubmissionError([f"answers: non-text value for {', '.join(sorted(map(str, bad)))}"])
    clean = {str(k): v for k, v in answers.items()}
    missing = missing_answers(questions, clean)
    if missing:
        raise SubmissionError([
            f"{resolve(bundle, 'validation.select_answer', 'Please select an answer before proceeding.')}"
            f" ({', '.join(missing)})"
        ])
    return clean


def parse_submission(
    payload: Mapping[str, object],
    bundle: Optional[TranslationBundle] = None,
    blocked_domains: Sequence[str] = (),
) -> AssessmentSubmission:
    personal = payload.get("personal_info") or payload.get("personalInfo") or {}
    if not isinstance(personal, Mapping):
        raise SubmissionError(["personal_info: expected an object"])
    respondent = validate_respondent(personal, bundle, blocked_domains)
    answers = payload.get("answers") or {}
    if not isinstance(answers, Mapping) or any(not isinstance(v, str) for v in answers.values()):
        raise SubmissionError(["answers: expected a mapping of question id to option value"])
    try:
        return AssessmentSubmission(
            personal_info=respondent,
            answers=dict(answers),
            score=payload.get("score"),
            language=str(payload.get("language") or "en"),
        )
    except ValidationError as exc:
        raise SubmissionError(_field_messages(exc, bundle)) from exc


def validate_consultation(
    data: Mapping[str, object],
    bundle: Optional[TranslationBundle] = None,
) -> ConsultationRequest:
    try:
        return ConsultationRequest.model_validate(dict(data))
    except ValidationError as exc:
        raise SubmissionError(_field_messages(exc, bundle)) from exc
