"""Pytest configuration and fixtures."""

import threading
from typing import Dict, List, Optional, Sequence

import pytest

from carbon_readiness.config import Settings
from carbon_readiness.core.catalog import (
    DEFAULT_DATA_DIR,
    Domain,
    Option,
    Question,
    QuestionCatalog,
    load_all_catalogs,
)
from carbon_readiness.core.submission import Respondent
from carbon_readiness.core.translations import load_translations
from carbon_readiness.delivery.mailer import MailMessage
from carbon_readiness.delivery.sheets import SheetsResult
from carbon_readiness.errors import DeliveryError


@pytest.fixture(scope="session")
def catalogs():
    return load_all_catalogs()


@pytest.fixture(scope="session")
def en_catalog(catalogs):
    return catalogs["en"]


@pytest.fixture(scope="session")
def en_bundle():
    return load_translations("en")


@pytest.fixture(scope="session")
def fr_bundle():
    return load_translations("fr")


@pytest.fixture(scope="session")
def ar_bundle():
    return load_translations("ar")


@pytest.fixture
def respondent():
    return Respondent(name="Jane Doe", email="jane@acme.com", company="Acme", position="CSO")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATA_DIR=DEFAULT_DATA_DIR,
        SMTP_HOST="smtp.test.local",
        FROM_EMAIL="no-reply@test.local",
        REPLY_TO_EMAIL="carbon@test.local",
        INTERNAL_RECIPIENTS="team@test.local, lead@test.local",
        CONSULTATION_RECIPIENTS="sales@test.local",
        GOOGLE_APPLICATION_CREDENTIALS=None,
        GOOGLE_SERVICE_ACCOUNT_CREDENTIALS=None,
        ASSESSMENT_SHEET_ID="sheet-assess",
        CONSULTATION_SHEET_ID="sheet-consult",
        LOG_FILE=None,
    )


def best_answers(catalog: QuestionCatalog) -> Dict[str, str]:
    return {q.id: max(q.options, key=lambda o: o.points).value for q in catalog.questions}


def worst_answers(catalog: QuestionCatalog) -> Dict[str, str]:
    return {q.id: min(q.options, key=lambda o: o.points).value for q in catalog.questions}


def make_catalog(points: Sequence[Sequence[int]], language: str = "en") -> QuestionCatalog:
    """Single-domain catalog; option values are o0, o1, ... with the given points."""
    questions = [
        Question(
            id=f"q{i + 1}",
            domain="main",
            text=f"Question {i + 1}",
            options=[Option(value=f"o{j}", label=f"Option {j} of Q{i + 1}", points=p) for j, p in enumerate(opts)],
        )
        for i, opts in enumerate(points)
    ]
    total = sum(max(opts) for opts in points)
    return QuestionCatalog(
        language=language,
        title="Test catalog",
        domains=[Domain(id="main", name="Main", points=total)],
        questions=questions,
    )


class FakeMailer:
    """Records messages; raises DeliveryError for recipients listed in `fail_for`."""

    def __init__(self, fail_for: Optional[Sequence[str]] = None):
        self.sent: List[MailMessage] = []
        self.fail_for = set(fail_for or ())
        self._lock = threading.Lock()

    def send(self, message: MailMessage) -> None:
        if self.fail_for.intersection(message.to):
            raise DeliveryError("mail", f"refused {', '.join(message.to)}")
        if not message.to:
            raise DeliveryError("mail", "no recipients")
        with self._lock:
            self.sent.append(message)

    def to(self, address: str) -> List[MailMessage]:
        return [m for m in self.sent if address in m.to]


class FakeSheets:
    def __init__(self, result: Optional[SheetsResult] = None):
        self.result = result or SheetsResult(success=True)
        self.assessments: List[dict] = []
        self.consultations: list = []

    def append_assessment(self, respondent, answers, score, language, questions, header_questions=None):
        self.assessments.append({
            "respondent": respondent,
            "answers": dict(answers),
            "score": score,
            "language": language,
            "header_questions": header_questions,
        })
        return self.result

    def append_consultation(self, request):
        self.consultations.append(request)
        return self.result


def fake_renderer(report) -> bytes:
    return b"%PDF-1.4 fake"


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def sheets():
    return FakeSheets()
