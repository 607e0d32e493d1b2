"""Format-agnostic report model.

The same `Report` drives the on-screen summary, the PDF download, the emailed
attachment and the email tables, so none of them re-derive scores or tiers.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, TypeVar

from ..core.catalog import Question, find_option, get_question, is_rtl
from ..core.scoring import max_score, total_score
from ..core.submission import Respondent
from ..core.tiers import TierResult, classify_result
from ..core.translations import TranslationBundle, format_text, resolve

ROWS_PER_PAGE = 11

DATE_FORMATS = {"en": "%m/%d/%Y", "fr": "%d/%m/%Y", "ar": "%d/%m/%Y"}

T = TypeVar("T")


@dataclass(frozen=True)
class InfoRow:
    label: str
    value: str


@dataclass(frozen=True)
class QARow:
    index: int
    question_id: str
    question: str
    answer: str
    context: Optional[str]
    resolved: bool

    @property
    def striped(self) -> bool:
        return self.index % 2 == 1


@dataclass(frozen=True)
class ReportPage:
    index: int
    rows: List[QARow]
    show_header: bool
    show_footer: bool


@dataclass(frozen=True)
class ReportLabels:
    title: str
    detailed_information: str
    assessment_results: str
    assessment_details: str
    score: str
    question: str
    answer: str


@dataclass(frozen=True)
class Report:
    language: str
    rtl: bool
    title: str
    date: str
    respondent_rows: List[InfoRow]
    score: int
    max_score: int
    tier: TierResult
    labels: ReportLabels
    pages: List[ReportPage]
    footer_lines: List[str]

    @property
    def rows(self) -> List[QARow]:
        return [row for page in self.pages for row in page.rows]

    @property
    def summary_shows_footer(self) -> bool:
        # With no answer pages the summary page is also the last page.
        return not self.pages


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    if size <= 0:
        raise ValueError("page capacity must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def format_report_date(on: date, language: str) -> str:
    return on.strftime(DATE_FORMATS.get(language, DATE_FORMATS["en"]))


def build_labels(bundle: Optional[TranslationBundle]) -> ReportLabels:
    return ReportLabels(
        title=resolve(bundle, "pdf_labels.assessment_results", "Assessment Results"),
        detailed_information=resolve(bundle, "pdf_labels.detailed_information", "Detailed Information"),
        assessment_results=resolve(bundle, "assessment_results", "Assessment Results"),
        assessment_details=resolve(bundle, "pdf_labels.assessment_details", "Assessment Details"),
        score=resolve(bundle, "pdf_labels.score", "Score"),
        question=resolve(bundle, "pdf_labels.question", "Question"),
        answer=resolve(bundle, "pdf_labels.answer", "Answer"),
    )


def respondent_rows(respondent: Respondent, bundle: Optional[TranslationBundle]) -> List[InfoRow]:
    return [
        InfoRow(resolve(bundle, "pdf_labels.name", "Name"), respondent.name),
        InfoRow(resolve(bundle, "pdf_labels.email", "Email"), respondent.email),
        InfoRow(resolve(bundle, "pdf_labels.company", "Company"), respondent.company),
        InfoRow(resolve(bundle, "pdf_labels.position", "Position"), respondent.position),
    ]


def answer_rows(
    questions: Sequence[Question],
    answers: Mapping[str, str],
    bundle: Optional[TranslationBundle] = None,
) -> List[QARow]:
    """Answered questions in catalog order, then unknown ids sorted by id."""
    unknown_q = resolve(bundle, "pdf_labels.unknown_question", "Unknown question")
    unknown_a = resolve(bundle, "pdf_labels.unknown_answer", "Unknown answer")

    known_ids = {q.id for q in questions}
    ordered = [q.id for q in questions if q.id in answers]
    ordered += sorted(qid for qid in answers if qid not in known_ids)

    rows: List[QARow] = []
    for i, qid in enumerate(ordered):
        question = get_question(questions, qid)
        option = find_option(question, answers.get(qid))
        rows.append(QARow(
            index=i,
            question_id=qid,
            question=question.text if question else unknown_q,
            answer=option.label if option else unknown_a,
            context=option.report_context if option else None,
            resolved=option is not None,
        ))
    return rows


def paginate(rows: Sequence[QARow], page_capacity: int = ROWS_PER_PAGE) -> List[ReportPage]:
    chunks = chunk(rows, page_capacity)
    return [
        ReportPage(
            index=i,
            rows=c,
            show_header=(i == 0),
            show_footer=(i == len(chunks) - 1),
        )
        for i, c in enumerate(chunks)
    ]


def footer_lines(bundle: Optional[TranslationBundle], year: int) -> List[str]:
    return [
        format_text(resolve(bundle, "footer.copyright", "© {year} All rights reserved."), year=year),
        resolve(bundle, "footer.tagline", ""),
    ]


def assemble_report(
    respondent: Respondent,
    answers: Mapping[str, str],
    questions: Sequence[Question],
    bundle: Optional[TranslationBundle] = None,
    score: Optional[int] = None,
    generated_on: Optional[date] = None,
    page_capacity: int = ROWS_PER_PAGE,
) -> Report:
    language = bundle.language if bundle else "en"
    on = generated_on or date.today()
    final_score = total_score(questions, answers) if score is None else int(score)
    return Report(
        language=language,
        rtl=is_rtl(language),
        title=resolve(bundle, "pdf_labels.assessment_results", "Assessment Results"),
        date=format_report_date(on, language),
        respondent_rows=respondent_rows(respondent, bundle),
        score=final_score,
        max_score=max_score(questions),
        tier=classify_result(final_score, bundle),
        labels=build_labels(bundle),
        pages=paginate(answer_rows(questions, answers, bundle), page_capacity),
        footer_lines=[line for line in footer_lines(bundle, on.year) if line],
    )


def report_to_dict(report: Report) -> Dict[str, Any]:
    """JSON-safe view of a report (used for the JSON download)."""
    data = asdict(report)
    data["tier"]["tier"] = report.tier.tier.value
    return data
