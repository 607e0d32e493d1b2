# main.py
from __future__ import annotations

import json
import time
from datetime import date
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import streamlit as st

from carbon_readiness.components.charts import gauge_chart, radar_chart
from carbon_readiness.config import Settings, get_settings
from carbon_readiness.core.catalog import (
    LANGUAGE_NAMES,
    SUPPORTED_LANGUAGES,
    Question,
    QuestionCatalog,
    find_option,
    is_rtl,
    load_all_catalogs,
)
from carbon_readiness.core.scoring import score_assessment
from carbon_readiness.core.state import (
    AssessmentState,
    Stage,
    back,
    change_language,
    initial_state,
    mark_submitted,
    next_step,
    reset,
    select_answer,
    start,
    submit_personal_info,
)
from carbon_readiness.core.submission import validate_respondent
from carbon_readiness.core.tiers import classify_result
from carbon_readiness.core.translations import TranslationBundle, format_text, load_translations, resolve
from carbon_readiness.delivery.orchestrator import (
    book_consultation,
    build_delivery,
    generate_report_artifact,
    submit_assessment,
)
from carbon_readiness.errors import CatalogError, SubmissionError
from carbon_readiness.reports.email_templates import attachment_filename
from carbon_readiness.reports.report_model import assemble_report, footer_lines, report_to_dict
from carbon_readiness.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


# ----------------------------
# Cached resources
# ----------------------------
@st.cache_resource
def load_catalogs(data_dir: str) -> Dict[str, QuestionCatalog]:
    return load_all_catalogs(data_dir)


@st.cache_resource
def load_bundle(language: str, data_dir: str) -> TranslationBundle:
    return load_translations(language, data_dir)


@st.cache_resource
def delivery():
    return build_delivery(get_settings())


# ----------------------------
# Session state
# ----------------------------
def get_state(settings: Settings) -> AssessmentState:
    if "assessment" not in st.session_state:
        st.session_state.assessment = initial_state(settings.DEFAULT_LANGUAGE)
    return st.session_state.assessment


def set_state(state: AssessmentState, rerun: bool = True) -> None:
    st.session_state.assessment = state
    if rerun:
        st.rerun()


def translator(bundle: TranslationBundle):
    def t(key: str, default: str = "") -> str:
        return resolve(bundle, key, default)
    return t


def apply_direction(language: str) -> None:
    if is_rtl(language):
        st.markdown(
            "<style>.main .block-container, section.main { direction: rtl; text-align: right; }</style>",
            unsafe_allow_html=True,
        )


# ----------------------------
# Screens
# ----------------------------
def render_guidance(state: AssessmentState, catalog: QuestionCatalog, bundle: TranslationBundle,
                    settings: Settings) -> None:
    t = translator(bundle)

    st.subheader(t("assessment_guidance.title", "Assessment Guidance"))
    st.markdown(f"### {t('assessment_guidance.instructions', 'Instructions')}")
    st.write(t("assessment_guidance.instructions_description"))
    for d in catalog.domains:
        st.write(f"- **{d.name}** ({d.points})")
    st.info(t("assessment_guidance.scoring"))

    with st.expander(t("assessment_guidance.disclaimer", "Disclaimer"), expanded=False):
        st.write(t("assessment_guidance.disclaimer_text"))

    st.caption(
        f"{t('assessment_guidance.agree_to_terms')} "
        f"[{t('assessment_guidance.privacy_policy')}]({settings.PRIVACY_POLICY_URL}) "
        f"{t('assessment_guidance.and')} "
        f"[{t('assessment_guidance.terms_and_conditions')}]({settings.TERMS_URL})."
    )
    if st.button(t("assessment_guidance.begin_assessment", "Begin Assessment"), type="primary"):
        set_state(start(state))


def render_personal_info(state: AssessmentState, bundle: TranslationBundle, settings: Settings) -> None:
    t = translator(bundle)
    prev = state.respondent

    st.subheader(t("personal_info", "Personal Information"))
    st.write(t("please_provide"))
    with st.form("personal_info_form"):
        name = st.text_input(t("name", "Name"), value=prev.name if prev else "",
                             placeholder=t("placeholders.name"))
        email = st.text_input(t("business_email", "Business Email"), value=prev.email if prev else "",
                              placeholder=t("placeholders.email"))
        company = st.text_input(t("company", "Company"), value=prev.company if prev else "",
                                placeholder=t("placeholders.company"))
        position = st.text_input(t("position", "Position"), value=prev.position if prev else "",
                                 placeholder=t("placeholders.position"))
        submitted = st.form_submit_button(t("continue_to_questions", "Continue to Questions"), type="primary")

    if st.button(t("back", "Back")):
        set_state(back(state))

    if submitted:
        try:
            respondent = validate_respondent(
                {"name": name, "email": email, "company": company, "position": position},
                bundle,
                settings.blocked_email_domains,
            )
        except SubmissionError as exc:
            for msg in exc.messages:
                st.error(msg)
            return
        set_state(submit_personal_info(state, respondent))


def render_question(state: AssessmentState, questions: List[Question], bundle: TranslationBundle) -> None:
    t = translator(bundle)
    q = state.current(questions)
    if q is None:
        return
    total = len(questions)

    st.caption(format_text(t("question_indicator", "Question {current} of {total}"),
                           current=state.current_question, total=total))
    st.progress(state.progress(total) / 100.0)

    labels = [o.label for o in q.options]
    chosen = find_option(q, state.answers.get(q.id))
    index = labels.index(chosen.label) if chosen else None
    choice = st.radio(q.text, labels, index=index, key=f"q_{q.id}_{state.language}")
    if choice is not None:
        value = q.options[labels.index(choice)].value
        if value != state.answers.get(q.id):
            state = select_answer(state, q.id, value)
            set_state(state, rerun=False)
        opt = find_option(q, value)
        if opt and opt.report_context:
            st.info(opt.report_context)

    for msg in state.errors:
        st.error(msg)

    col1, col2 = st.columns(2)
    with col1:
        if st.button(t("back", "Back"), disabled=state.current_question <= 1):
            set_state(back(state))
    with col2:
        label = t("finish", "Finish") if state.current_question == total else t("next", "Next")
        if st.button(label, type="primary"):
            set_state(next_step(state, questions, bundle))


def reveal_score(score: int, label: str) -> None:
    placeholder = st.empty()
    step = max(1, score // 25)
    for value in range(0, score, step):
        placeholder.metric(label, value)
        time.sleep(0.02)
    placeholder.metric(label, score)


def render_results(state: AssessmentState, catalog: QuestionCatalog, bundle: TranslationBundle,
                   settings: Settings) -> None:
    t = translator(bundle)
    questions = catalog.questions
    score = state.score or 0
    respondent = state.respondent
    tier = classify_result(score, bundle)
    mailer, sheets = delivery()

    st.subheader(t("assessment_results", "Assessment Results"))
    if not state.submitted:
        reveal_score(score, t("your_score", "Your Score"))
    else:
        st.metric(t("your_score", "Your Score"), score)

    fig = gauge_chart(score, bundle)
    st.pyplot(fig)
    plt.close(fig)

    st.markdown(f"### {tier.result}")
    st.write(tier.suggestion)
    st.markdown(
        f"{t('result_consultation.prefix')}[{t('result_consultation.link_text')}]({settings.BOOK_APPOINTMENT_URL})"
        f"{t('result_consultation.middle')}[{settings.RESULTS_CONTACT_EMAIL}](mailto:{settings.RESULTS_CONTACT_EMAIL})."
    )

    # Submit once per completed assessment
    if not state.submitted and respondent is not None:
        payload = {
            "personal_info": respondent.model_dump(),
            "answers": dict(state.answers),
            "score": score,
            "language": state.language,
        }
        with st.spinner("..."):
            try:
                outcome = submit_assessment(payload, settings, mailer, sheets)
            except SubmissionError as exc:
                for msg in exc.messages:
                    st.error(msg)
                outcome = None
        st.session_state.submission_outcome = outcome
        set_state(mark_submitted(state), rerun=False)

    outcome = st.session_state.get("submission_outcome")
    if outcome is not None:
        if not outcome.success:
            st.warning(t("errors.submission"))
        for warning in outcome.warnings:
            st.caption(warning)

    st.markdown(f"### {t('domain_breakdown', 'Score by Dimension')}")
    breakdown = score_assessment(catalog, state.answers)
    left, right = st.columns([1, 1])
    with left:
        for ds in breakdown.domain_scores:
            st.progress(ds.percent / 100.0, text=f"{ds.name}: {ds.earned} / {ds.available}")
    with right:
        if len(breakdown.domain_scores) >= 3:
            radar = radar_chart(breakdown.domain_scores, breakdown.tier)
            st.pyplot(radar)
            plt.close(radar)

    st.divider()
    if respondent is not None:
        render_downloads(state, questions, bundle, settings)
        render_consultation(state, bundle, settings)

    if st.button(t("restart", "Start Again")):
        st.session_state.pop("submission_outcome", None)
        set_state(reset(state))


def render_downloads(state: AssessmentState, questions: List[Question], bundle: TranslationBundle,
                     settings: Settings) -> None:
    t = translator(bundle)
    respondent = state.respondent
    report = assemble_report(respondent, state.answers, questions, bundle, score=state.score,
                             page_capacity=settings.REPORT_PAGE_CAPACITY)
    col1, col2 = st.columns(2)
    with col1:
        try:
            pdf_bytes: Optional[bytes] = generate_report_artifact(
                respondent, state.score, state.answers, state.language, settings,
                bundle=bundle, questions=questions,
            )
        except Exception:
            logger.exception("PDF generation failed for download")
            st.error(t("errors.pdf_generation", "Error generating PDF"))
            pdf_bytes = None
        if pdf_bytes:
            st.download_button(
                t("download_report", "Download PDF Report"),
                data=pdf_bytes,
                file_name=attachment_filename(respondent.company),
                mime="application/pdf",
            )
    with col2:
        st.download_button(
            t("download_json", "Download JSON Report"),
            data=json.dumps(report_to_dict(report), indent=2, ensure_ascii=False),
            file_name="carbon_readiness_report.json",
            mime="application/json",
        )


def render_consultation(state: AssessmentState, bundle: TranslationBundle, settings: Settings) -> None:
    t = translator(bundle)
    mailer, sheets = delivery()

    with st.expander(t("consultation.title", "Book a Consultation"), expanded=False):
        with st.form("consultation_form"):
            first_name = st.text_input(t("consultation.first_name", "First Name"))
            last_name = st.text_input(t("consultation.last_name", "Last Name"))
            email = st.text_input(t("consultation.email", "Email"),
                                  value=state.respondent.email if state.respondent else "")
            phone = st.text_input(t("consultation.phone", "Phone"))
            submitted = st.form_submit_button(t("consultation.submit", "Submit Request"))
        if not submitted:
            return
        data = {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone": phone,
            "context": {
                "personal_info": state.respondent.model_dump() if state.respondent else None,
                "score": state.score,
            },
        }
        try:
            outcome = book_consultation(data, settings, mailer, sheets, bundle)
        except SubmissionError as exc:
            for msg in exc.messages:
                st.error(msg)
            return
        if outcome.success:
            st.success(t("consultation.success"))
        else:
            st.error(t("errors.submission"))


# ----------------------------
# Main app
# ----------------------------
def main():
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    st.set_page_config(page_title="Carbon Credit Readiness Assessment", layout="centered")

    state = get_state(settings)
    language = st.sidebar.selectbox(
        "Language",
        SUPPORTED_LANGUAGES,
        index=SUPPORTED_LANGUAGES.index(state.language),
        format_func=lambda code: LANGUAGE_NAMES.get(code, code),
    )
    if language != state.language:
        set_state(change_language(state, language))

    data_dir = str(settings.DATA_DIR)
    try:
        catalog = load_catalogs(data_dir)[state.language]
        bundle = load_bundle(state.language, data_dir)
    except CatalogError as exc:
        logger.exception("Catalogs could not be loaded")
        st.error(str(exc))
        st.stop()

    apply_direction(state.language)
    st.title(resolve(bundle, "app_title", catalog.title))

    if state.stage == Stage.GUIDANCE:
        render_guidance(state, catalog, bundle, settings)
    elif state.stage == Stage.PERSONAL_INFO:
        render_personal_info(state, bundle, settings)
    elif state.stage == Stage.QUESTIONS:
        render_question(state, catalog.questions, bundle)
    else:
        render_results(state, catalog, bundle, settings)

    st.divider()
    for line in footer_lines(bundle, date.today().year):
        if line:
            st.caption(line)


if __name__ == "__main__":
    main()
