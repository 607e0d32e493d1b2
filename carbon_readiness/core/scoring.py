from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from .catalog import Question, QuestionCatalog, filter_by_domains, find_option
from .tiers import Tier, classify


@dataclass(frozen=True)
class DomainScore:
    domain_id: str
    name: str
    earned: int
    available: int

    @property
    def percent(self) -> int:
        if self.available <= 0:
            return 0
        return int(round(self.earned / self.available * 100))


@dataclass(frozen=True)
class ScoreBreakdown:
    total: int
    max_total: int
    tier: Tier
    domain_scores: List[DomainScore]


def question_points(question: Question, answers: Mapping[str, str]) -> int:
    opt = find_option(question, answers.get(question.id))
    return opt.points if opt else 0


def total_score(questions: Iterable[Question], answers: Mapping[str, str]) -> int:
    """Sum of the selected options' points; misses and foreign ids count 0."""
    return sum(question_points(q, answers) for q in questions)


def max_score(questions: Iterable[Question]) -> int:
    return sum(q.max_points for q in questions)


def compute_domain_scores(
    catalog: QuestionCatalog,
    answers: Mapping[str, str],
    questions: Optional[List[Question]] = None,
) -> List[DomainScore]:
    active = questions if questions is not None else catalog.questions
    by_domain: Dict[str, List[Question]] = {}
    for q in active:
        by_domain.setdefault(q.domain, []).append(q)

    out: List[DomainScore] = []
    for d in catalog.domains:
        qs = by_domain.get(d.id, [])
        if not qs:
            continue
        out.append(DomainScore(
            domain_id=d.id,
            name=d.name,
            earned=total_score(qs, answers),
            available=max_score(qs),
        ))
    return out


def score_assessment(
    catalog: QuestionCatalog,
    answers: Mapping[str, str],
    domain_ids: Optional[Iterable[str]] = None,
) -> ScoreBreakdown:
    active = filter_by_domains(catalog, domain_ids)
    total = total_score(active, answers)
    return ScoreBreakdown(
        total=total,
        max_total=max_score(active),
        tier=classify(total),
        domain_scores=compute_domain_scores(catalog, answers, active),
    )
