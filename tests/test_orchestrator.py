"""Tests for the submission and consultation flows."""

import pytest
from conftest import FakeMailer, FakeSheets, best_answers, fake_renderer

from carbon_readiness.core.submission import AssessmentSubmission
from carbon_readiness.core.tiers import Tier
from carbon_readiness.delivery.orchestrator import (
    book_consultation,
    generate_report_artifact,
    submit_assessment,
)
from carbon_readiness.delivery.sheets import GoogleSheetsStore, SheetsResult
from carbon_readiness.errors import SubmissionError

PERSON = {"name": "Jane Doe", "email": "jane@acme.com", "company": "Acme", "position": "CSO"}


@pytest.fixture
def payload(en_catalog):
    return {"personal_info": dict(PERSON), "answers": best_answers(en_catalog), "score": 100, "language": "en"}


class TestSubmitAssessment:
    def test_happy_path(self, payload, settings, mailer, sheets):
        outcome = submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer)

        assert outcome.success
        assert outcome.score == 100
        assert outcome.tier is Tier.ADVANCED
        assert outcome.respondent_email_sent and outcome.notification_sent and outcome.sheets_updated
        assert outcome.warnings == []

        [user_mail] = mailer.to("jane@acme.com")
        assert user_mail.reply_to == "carbon@test.local"
        [attachment] = user_mail.attachments
        assert attachment.filename == "Acme_Carbon_Readiness_Report.pdf"
        assert attachment.content.startswith(b"%PDF")

        [internal] = mailer.to("team@test.local")
        assert list(internal.to) == ["team@test.local", "lead@test.local"]
        assert internal.attachments == ()
        assert internal.reply_to == "jane@acme.com"

        [row] = sheets.assessments
        assert row["score"] == 100
        assert row["language"] == "en"

    def test_sheet_failure_keeps_overall_success(self, payload, settings, mailer):
        sheets = FakeSheets(SheetsResult(success=False, error="sheets: credentials missing"))
        outcome = submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer)
        assert outcome.success
        assert outcome.respondent_email_sent
        assert not outcome.sheets_updated
        assert outcome.warnings == ["sheets: credentials missing"]
        assert mailer.to("jane@acme.com")

    def test_missing_google_credentials_do_not_block_email(self, payload, settings, mailer):
        outcome = submit_assessment(payload, settings, mailer, GoogleSheetsStore(settings), renderer=fake_renderer)
        assert outcome.success
        assert not outcome.sheets_updated
        assert any("GOOGLE_APPLICATION_CREDENTIALS" in w for w in outcome.warnings)
        assert len(mailer.to("jane@acme.com")) == 1

    def test_respondent_email_failure_is_not_success(self, payload, settings, sheets):
        mailer = FakeMailer(fail_for=["jane@acme.com"])
        outcome = submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer)
        assert not outcome.success
        assert not outcome.respondent_email_sent
        assert outcome.notification_sent
        assert outcome.sheets_updated
        assert outcome.warnings == ["mail: refused jane@acme.com"]

    def test_internal_email_failure_is_isolated(self, payload, settings, sheets):
        mailer = FakeMailer(fail_for=["team@test.local"])
        outcome = submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer)
        assert outcome.success
        assert not outcome.notification_sent
        assert len(outcome.warnings) == 1

    def test_unexpected_sheet_error_is_recorded(self, payload, settings, mailer):
        class BrokenSheets(FakeSheets):
            def append_assessment(self, *args, **kwargs):
                raise RuntimeError("boom")

        outcome = submit_assessment(payload, settings, mailer, BrokenSheets(), renderer=fake_renderer)
        assert outcome.success
        assert not outcome.sheets_updated
        assert outcome.warnings == ["sheets: boom"]

    def test_pdf_failure_sends_email_without_attachment(self, payload, settings, mailer, sheets):
        def broken(report):
            raise ValueError("layout overflow")

        outcome = submit_assessment(payload, settings, mailer, sheets, renderer=broken)
        assert outcome.success
        assert outcome.warnings == ["pdf: layout overflow"]
        assert mailer.to("jane@acme.com")[0].attachments == ()

    def test_incomplete_answers_have_no_side_effects(self, payload, settings, mailer, sheets):
        payload["answers"] = {"q1": "expert"}
        with pytest.raises(SubmissionError):
            submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer)
        assert mailer.sent == []
        assert sheets.assessments == []

    def test_personal_email_domain_rejected(self, payload, settings, mailer, sheets):
        payload["personal_info"]["email"] = "jane@gmail.com"
        with pytest.raises(SubmissionError) as exc:
            submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer)
        assert exc.value.messages == ["Please use your business email address."]
        assert mailer.sent == []

    def test_recomputed_score_wins(self, payload, settings, mailer, sheets):
        payload["score"] = 5
        outcome = submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer)
        assert outcome.score == 100
        assert sheets.assessments[0]["score"] == 100

    def test_stale_values_score_zero(self, payload, settings, mailer, sheets):
        payload["answers"]["q1"] = "retired-option"
        outcome = submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer)
        assert outcome.score == 93
        assert outcome.tier is Tier.ADVANCED

    def test_arabic_submission_uses_english_sheet_headers(self, payload, settings, mailer, sheets, catalogs):
        payload["language"] = "ar"
        outcome = submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer)
        assert outcome.score == 100
        row = sheets.assessments[0]
        assert row["language"] == "ar"
        assert [q.text for q in row["header_questions"]] == [q.text for q in catalogs["en"].questions]

    def test_accepts_model_instance(self, en_catalog, settings, mailer, sheets):
        submission = AssessmentSubmission(personal_info=PERSON, answers=best_answers(en_catalog))
        outcome = submit_assessment(submission, settings, mailer, sheets, renderer=fake_renderer)
        assert outcome.success

    def test_domain_subset(self, payload, settings, mailer, sheets):
        payload["answers"] = {"q11": "expert", "q12": "expert"}
        outcome = submit_assessment(payload, settings, mailer, sheets, renderer=fake_renderer, domain_ids=["mrv"])
        assert outcome.score == 15
        assert outcome.tier is Tier.URGENT


class TestGenerateReportArtifact:
    def test_real_pdf(self, en_catalog, settings):
        pdf = generate_report_artifact(PERSON, None, best_answers(en_catalog), "en", settings)
        assert pdf.startswith(b"%PDF")

    def test_supplied_score_is_kept(self, en_catalog, settings):
        seen = []

        def capture(report):
            seen.append(report)
            return b"%PDF"

        generate_report_artifact(PERSON, 42, best_answers(en_catalog), "fr", settings, renderer=capture)
        assert seen[0].score == 42
        assert seen[0].language == "fr"

    def test_invalid_respondent(self, settings):
        with pytest.raises(SubmissionError):
            generate_report_artifact({**PERSON, "name": ""}, 10, {}, "en", settings, renderer=fake_renderer)


class TestBookConsultation:
    REQUEST = {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@acme.com",
        "phone": "+966 555 1234",
        "context": {"personal_info": PERSON, "score": 72},
    }

    def test_notifies_thanks_and_logs(self, settings, mailer, sheets):
        outcome = book_consultation(dict(self.REQUEST), settings, mailer, sheets)
        assert outcome.success and outcome.confirmation_sent and outcome.sheets_updated
        [admin] = mailer.to("sales@test.local")
        assert admin.reply_to == "jane@acme.com"
        assert "Acme" in admin.html
        [thanks] = mailer.to("jane@acme.com")
        assert thanks.subject == "Thank you for booking a consultation"
        assert sheets.consultations[0].context.score == 72

    def test_invalid_request_has_no_side_effects(self, settings, mailer, sheets, en_bundle):
        with pytest.raises(SubmissionError) as exc:
            book_consultation({**self.REQUEST, "phone": "12"}, settings, mailer, sheets, en_bundle)
        assert exc.value.messages == ["Please enter a valid phone number."]
        assert mailer.sent == []
        assert sheets.consultations == []

    def test_admin_failure_is_reported(self, settings, sheets):
        mailer = FakeMailer(fail_for=["sales@test.local"])
        outcome = book_consultation(dict(self.REQUEST), settings, mailer, sheets)
        assert not outcome.success
        assert outcome.confirmation_sent
        assert outcome.sheets_updated
