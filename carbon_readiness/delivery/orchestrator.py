"""Submission, report download and consultation flows.

Validation happens before any side effect. After that every effect (emails,
spreadsheet rows) is best-effort: a failure is logged and recorded in the
outcome's warnings without cancelling the others.
"""
from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from functools import partial
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..config import Settings, get_settings
from ..core.catalog import DEFAULT_LANGUAGE, Question, filter_by_domains, load_catalog, normalize_language
from ..core.scoring import total_score
from ..core.submission import (
    AssessmentSubmission,
    ConsultationRequest,
    Respondent,
    parse_submission,
    validate_answers,
    validate_consultation,
    validate_respondent,
)
from ..core.tiers import Tier
from ..core.translations import TranslationBundle, load_translations
from ..errors import CatalogError, DeliveryError
from ..reports.email_templates import (
    attachment_filename,
    consultation_admin_email,
    consultation_user_email,
    internal_notification_email,
    respondent_email,
)
from ..reports.pdf_export import render_pdf
from ..reports.report_model import Report, assemble_report
from ..utils.logging import get_logger
from .mailer import Attachment, Mailer, MailMessage, SmtpMailer
from .sheets import GoogleSheetsStore, SheetsResult, SheetsStore

logger = get_logger(__name__)

Renderer = Callable[[Report], bytes]


@dataclass(frozen=True)
class SubmissionOutcome:
    success: bool
    score: int
    tier: Tier
    respondent_email_sent: bool
    notification_sent: bool
    sheets_updated: bool
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConsultationOutcome:
    success: bool
    admin_notified: bool
    confirmation_sent: bool
    sheets_updated: bool
    warnings: List[str] = field(default_factory=list)


def default_renderer(settings: Settings) -> Renderer:
    return partial(render_pdf, font_path=settings.REPORT_FONT_PATH)


def build_delivery(settings: Settings) -> Tuple[SmtpMailer, GoogleSheetsStore]:
    return SmtpMailer(settings), GoogleSheetsStore(settings)


def _run_effects(effects: Dict[str, Callable[[], object]]) -> Tuple[Dict[str, object], Dict[str, str]]:
    """Run independent effects concurrently; collect results and per-effect errors."""
    results: Dict[str, object] = {}
    errors: Dict[str, str] = {}
    if not effects:
        return results, errors
    with concurrent.futures.ThreadPoolExecutor(max_workers=len(effects)) as executor:
        futures = {executor.submit(fn): name for name, fn in effects.items()}
        for future in concurrent.futures.as_completed(futures):
            name = futures[future]
            try:
                results[name] = future.result()
            except DeliveryError as exc:
                logger.error("Effect %s failed: %s", name, exc)
                errors[name] = str(exc)
            except Exception as exc:
                logger.exception("Effect %s raised unexpectedly", name)
                errors[name] = f"{name}: {exc}"
    return results, errors


def _sheet_outcome(name: str, results: Dict[str, object], errors: Dict[str, str], warnings: List[str]) -> bool:
    if name in errors:
        warnings.append(errors[name])
        return False
    result = results.get(name)
    if isinstance(result, SheetsResult) and not result.success:
        warnings.append(result.error or "sheets: not updated")
        return False
    return isinstance(result, SheetsResult)


def _mail_outcome(name: str, errors: Dict[str, str], warnings: List[str]) -> bool:
    if name in errors:
        warnings.append(errors[name])
        return False
    return True


def _header_questions(settings: Settings, domain_ids, fallback: Sequence[Question]) -> Sequence[Question]:
    """Sheet headers always use the default-language wording so the header stays stable."""
    try:
        return filter_by_domains(load_catalog(DEFAULT_LANGUAGE, settings.DATA_DIR), domain_ids)
    except CatalogError as exc:
        logger.warning("Default catalog unavailable for sheet headers: %s", exc)
        return fallback


def submit_assessment(
    submission: Union[AssessmentSubmission, Mapping[str, object]],
    settings: Settings,
    mailer: Mailer,
    sheets: SheetsStore,
    renderer: Optional[Renderer] = None,
    domain_ids: Optional[Sequence[str]] = None,
    generated_on: Optional[date] = None,
) -> SubmissionOutcome:
    """Validate, score, report and deliver one completed assessment.

    Raises SubmissionError (before any side effect) when the respondent or the
    answer set is invalid. `success` mirrors the respondent email.
    """
    payload = submission.model_dump() if isinstance(submission, AssessmentSubmission) else submission
    language = normalize_language(str(payload.get("language") or settings.DEFAULT_LANGUAGE))
    bundle = load_translations(language, settings.DATA_DIR)
    catalog = load_catalog(language, settings.DATA_DIR)
    questions = filter_by_domains(catalog, domain_ids)

    parsed = parse_submission(payload, bundle, settings.blocked_email_domains)
    answers = validate_answers(questions, parsed.answers, bundle)
    respondent = parsed.personal_info

    score = total_score(questions, answers)
    if parsed.score is not None and parsed.score != score:
        logger.warning("Client score %s differs from recomputed %s for %s; using recomputed",
                       parsed.score, score, respondent.email)

    report = assemble_report(respondent, answers, questions, bundle, score=score,
                             generated_on=generated_on, page_capacity=settings.REPORT_PAGE_CAPACITY)
    warnings: List[str] = []

    render = renderer or default_renderer(settings)
    attachments: Tuple[Attachment, ...] = ()
    try:
        attachments = (Attachment(attachment_filename(respondent.company), render(report)),)
    except Exception as exc:
        logger.exception("PDF generation failed for %s", respondent.email)
        warnings.append(f"pdf: {exc}")

    user_mail = respondent_email(report, respondent.name, bundle)
    internal_mail = internal_notification_email(report, bundle)
    header_questions = _header_questions(settings, domain_ids, questions)

    effects: Dict[str, Callable[[], object]] = {
        "respondent_email": lambda: mailer.send(MailMessage(
            to=[respondent.email],
            subject=user_mail.subject,
            html=user_mail.html,
            reply_to=settings.REPLY_TO_EMAIL,
            attachments=attachments,
        )),
        "internal_email": lambda: mailer.send(MailMessage(
            to=settings.internal_recipients,
            subject=internal_mail.subject,
            html=internal_mail.html,
            reply_to=respondent.email,
        )),
        "sheets": lambda: sheets.append_assessment(
            respondent, answers, score, language, questions, header_questions=header_questions,
        ),
    }
    results, errors = _run_effects(effects)

    respondent_sent = _mail_outcome("respondent_email", errors, warnings)
    notification_sent = _mail_outcome("internal_email", errors, warnings)
    sheets_updated = _sheet_outcome("sheets", results, errors, warnings)

    logger.info("Assessment from %s (%s): score=%s tier=%s email=%s internal=%s sheets=%s",
                respondent.email, language, score, report.tier.tier.value,
                respondent_sent, notification_sent, sheets_updated)
    return SubmissionOutcome(
        success=respondent_sent,
        score=score,
        tier=report.tier.tier,
        respondent_email_sent=respondent_sent,
        notification_sent=notification_sent,
        sheets_updated=sheets_updated,
        warnings=warnings,
    )


def generate_report_artifact(
    respondent: Union[Respondent, Mapping[str, object]],
    score: Optional[int],
    answers: Mapping[str, str],
    language: Optional[str] = None,
    settings: Optional[Settings] = None,
    renderer: Optional[Renderer] = None,
    bundle: Optional[TranslationBundle] = None,
    questions: Optional[Sequence[Question]] = None,
    generated_on: Optional[date] = None,
) -> bytes:
    """PDF bytes for the download button; no email or spreadsheet effect.

    A supplied score is used as-is, otherwise it is computed from the answers.
    """
    settings = settings or get_settings()
    lang = normalize_language(language or settings.DEFAULT_LANGUAGE)
    bundle = bundle or load_translations(lang, settings.DATA_DIR)
    if questions is None:
        questions = load_catalog(lang, settings.DATA_DIR).questions
    if not isinstance(respondent, Respondent):
        respondent = validate_respondent(respondent, bundle)
    report = assemble_report(respondent, answers, questions, bundle, score=score,
                             generated_on=generated_on, page_capacity=settings.REPORT_PAGE_CAPACITY)
    render = renderer or default_renderer(settings)
    return render(report)


def book_consultation(
    data: Union[ConsultationRequest, Mapping[str, object]],
    settings: Settings,
    mailer: Mailer,
    sheets: SheetsStore,
    bundle: Optional[TranslationBundle] = None,
    submitted_at: Optional[datetime] = None,
) -> ConsultationOutcome:
    """Notify the team, thank the requester and log the request. Raises SubmissionError if invalid."""
    request = data if isinstance(data, ConsultationRequest) else validate_consultation(data, bundle)
    when = submitted_at or datetime.now(timezone.utc)
    admin_mail = consultation_admin_email(request, when)
    user_mail = consultation_user_email(request)

    effects: Dict[str, Callable[[], object]] = {
        "admin_email": lambda: mailer.send(MailMessage(
            to=settings.consultation_recipients,
            subject=admin_mail.subject,
            html=admin_mail.html,
            reply_to=request.email,
        )),
        "user_email": lambda: mailer.send(MailMessage(
            to=[request.email],
            subject=user_mail.subject,
            html=user_mail.html,
            reply_to=settings.REPLY_TO_EMAIL,
        )),
        "sheets": lambda: sheets.append_consultation(request),
    }
    results, errors = _run_effects(effects)

    warnings: List[str] = []
    admin_notified = _mail_outcome("admin_email", errors, warnings)
    confirmation_sent = _mail_outcome("user_email", errors, warnings)
    sheets_updated = _sheet_outcome("sheets", results, errors, warnings)
    logger.info("Consultation request from %s: admin=%s user=%s sheets=%s",
                request.email, admin_notified, confirmation_sent, sheets_updated)
    return ConsultationOutcome(
        success=admin_notified,
        admin_notified=admin_notified,
        confirmation_sent=confirmation_sent,
        sheets_updated=sheets_updated,
        warnings=warnings,
    )
