from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union
import json

from ..errors import CatalogError
from ..utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_LANGUAGES = ("en", "fr", "ar")
DEFAULT_LANGUAGE = "en"
RTL_LANGUAGES = frozenset({"ar"})
LANGUAGE_NAMES = {"en": "English", "fr": "Français", "ar": "العربية"}

DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"


@dataclass(frozen=True)
class Option:
    value: str
    label: str
    points: int
    report_context: Optional[str] = None


@dataclass(frozen=True)
class Question:
    id: str
    domain: str
    text: str
    options: List[Option]

    @property
    def max_points(self) -> int:
        return max((o.points for o in self.options), default=0)


@dataclass(frozen=True)
class Domain:
    id: str
    name: str
    points: int


@dataclass(frozen=True)
class QuestionCatalog:
    language: str
    title: str
    domains: List[Domain]
    questions: List[Question]


def normalize_language(language: Optional[str]) -> str:
    lang = (language or "").strip().lower()
    if lang in SUPPORTED_LANGUAGES:
        return lang
    if lang:
        logger.warning("Unsupported language %r, falling back to %s", language, DEFAULT_LANGUAGE)
    return DEFAULT_LANGUAGE


def is_rtl(language: str) -> bool:
    return language in RTL_LANGUAGES


def _parse_question(q: Dict[str, object], path: Path) -> Question:
    opts: List[Option] = []
    seen: set = set()
    for o in q.get("options", []):
        value = str(o["value"])
        if value in seen:
            raise CatalogError(f"{path}: duplicate option value {value!r} in question {q['id']}")
        seen.add(value)
        points = int(o["points"])
        if points < 0:
            raise CatalogError(f"{path}: negative points for {q['id']}/{value}")
        opts.append(Option(
            value=value,
            label=str(o["label"]),
            points=points,
            report_context=o.get("report_context"),
        ))
    return Question(id=str(q["id"]), domain=str(q["domain"]), text=str(q["text"]), options=opts)


def load_questions(path: Union[str, Path]) -> QuestionCatalog:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Cannot load question catalog {path}: {exc}") from exc

    try:
        domains = [
            Domain(id=str(d["id"]), name=str(d["name"]), points=int(d.get("points", 0)))
            for d in raw.get("domains", [])
        ]
        questions = [_parse_question(q, path) for q in raw.get("questions", [])]
    except (KeyError, TypeError, ValueError) as exc:
        raise CatalogError(f"Malformed question catalog {path}: {exc}") from exc

    ids = [q.id for q in questions]
    if len(ids) != len(set(ids)):
        raise CatalogError(f"{path}: question ids must be unique")
    known_domains = {d.id for d in domains}
    for q in questions:
        if known_domains and q.domain not in known_domains:
            raise CatalogError(f"{path}: question {q.id} references unknown domain {q.domain!r}")

    return QuestionCatalog(
        language=str(raw.get("language", path.stem.rsplit("_", 1)[-1])),
        title=str(raw.get("title", "")),
        domains=domains,
        questions=questions,
    )


def catalog_path(language: str, data_dir: Optional[Path] = None) -> Path:
    return Path(data_dir or DEFAULT_DATA_DIR) / f"questions_{language}.json"


def load_catalog(language: Optional[str] = None, data_dir: Optional[Path] = None) -> QuestionCatalog:
    """Load the ordered question catalog for a supported language."""
    return load_questions(catalog_path(normalize_language(language), data_dir))


def load_all_catalogs(data_dir: Optional[Path] = None) -> Dict[str, QuestionCatalog]:
    catalogs = {lang: load_catalog(lang, data_dir) for lang in SUPPORTED_LANGUAGES}
    check_parallel(catalogs)
    return catalogs


def check_parallel(catalogs: Dict[str, QuestionCatalog]) -> None:
    """Every language must expose the same question ids, option values and points."""
    if not catalogs:
        return
    ref_lang = DEFAULT_LANGUAGE if DEFAULT_LANGUAGE in catalogs else next(iter(catalogs))
    reference = {q.id: q for q in catalogs[ref_lang].questions}
    for lang, catalog in catalogs.items():
        current = {q.id: q for q in catalog.questions}
        if set(current) != set(reference):
            missing = sorted(set(reference) - set(current))
            extra = sorted(set(current) - set(reference))
            raise CatalogError(f"Catalog {lang} is not parallel to {ref_lang}: missing={missing} extra={extra}")
        for qid, q in current.items():
            ref_q = reference[qid]
            if q.domain != ref_q.domain:
                raise CatalogError(f"Catalog {lang}: question {qid} domain differs from {ref_lang}")
            mine = [(o.value, o.points) for o in q.options]
            theirs = [(o.value, o.points) for o in ref_q.options]
            if mine != theirs:
                raise CatalogError(f"Catalog {lang}: options of {qid} differ from {ref_lang}")


def filter_by_domains(catalog: QuestionCatalog, domain_ids: Optional[Iterable[str]] = None) -> List[Question]:
    """Active questions for the selected domains; None means every domain."""
    if domain_ids is None:
        return list(catalog.questions)
    selected = set(domain_ids)
    return [q for q in catalog.questions if q.domain in selected]


def get_domain(catalog: QuestionCatalog, domain_id: str) -> Optional[Domain]:
    for d in catalog.domains:
        if d.id == domain_id:
            return d
    return None


def get_question(questions: Iterable[Question], question_id: str) -> Optional[Question]:
    for q in questions:
        if q.id == question_id:
            return q
    return None


def find_option(question: Optional[Question], value: Optional[str]) -> Optional[Option]:
    if question is None or value is None:
        return None
    for o in question.options:
        if o.value == value:
            return o
    return None
