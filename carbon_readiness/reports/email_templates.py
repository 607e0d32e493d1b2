"""HTML bodies for the assessment and consultation emails.

Tables are built from the same `Report` as the PDF.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Optional
import re

from ..core.submission import ConsultationRequest
from ..core.translations import TranslationBundle, resolve
from .report_model import Report


@dataclass(frozen=True)
class EmailContent:
    subject: str
    html: str


def attachment_filename(company: str) -> str:
    safe = re.sub(r"[^\w\-]+", "_", company.strip(), flags=re.UNICODE).strip("_") or "Company"
    return f"{safe}_Carbon_Readiness_Report.pdf"


def _direction(report: Report) -> str:
    return "rtl" if report.rtl else "ltr"


def _qa_rows_html(report: Report) -> str:
    rows = []
    for row in report.rows:
        rows.append(
            f"<tr><td>{escape(row.question)}</td><td>{escape(row.answer)}</td></tr>"
        )
    return "".join(rows)


def respondent_email(report: Report, respondent_name: str, bundle: Optional[TranslationBundle]) -> EmailContent:
    """Thank-you email sent to the respondent with the PDF attached."""
    def t(key: str, default: str = "") -> str:
        return escape(resolve(bundle, key, default))

    closing = "<br>".join(escape(line) for line in resolve(bundle, "email.closing", "").splitlines())
    appointment_email = escape(resolve(bundle, "email.appointment_email", ""))
    align = "right" if report.rtl else "left"
    html = f"""<!DOCTYPE html>
<html lang="{escape(report.language)}" dir="{_direction(report)}">
<head><meta charset="UTF-8"><title>{t("email.subject", "Your Assessment Results")}</title></head>
<body style="margin:0;padding:0;font-family:Helvetica,Arial,sans-serif;color:#333333;">
  <table width="100%" cellpadding="0" cellspacing="0" border="0">
    <tr><td align="center" style="padding:30px 20px;">
      <table width="600" cellpadding="0" cellspacing="0" border="0" style="text-align:{align};">
        <tr><td>
          <h1 style="color:#002E5D;">{t("email.heading", "Your Assessment Report Is Ready")}</h1>
          <p>{t("email.greeting", "Dear")} {escape(respondent_name)},</p>
          <p>{t("email.body")}</p>
          <p>{t("email.body_purpose")}</p>
        </td></tr>
        <tr><td style="padding:10px 0;">
          <strong>{t("pdf_labels.score", "Score")}: {report.score}</strong> &middot; {escape(report.tier.result)}
        </td></tr>
        <tr><td style="padding:10px 0;"><em>{t("email.attachment_note")}</em></td></tr>
        <tr><td style="background:#002E5D;color:#ffffff;padding:30px;border-radius:16px;">
          <h3 style="color:#ffffff;">{t("email.support_title")}</h3>
          <p style="color:#e0e0e0;">{t("email.support_text")}</p>
          <a href="mailto:{appointment_email}" style="color:#ffffff;font-weight:bold;">{t("email.appointment_text", "Contact us")}</a>
        </td></tr>
        <tr><td style="padding-top:20px;border-top:1px solid #eeeeee;">
          <p style="font-size:12px;color:#777777;"><strong>Disclaimer:</strong> {t("email.disclaimer")}</p>
          <p style="font-size:12px;color:#999999;">{closing}<br>{"<br>".join(escape(line) for line in report.footer_lines)}</p>
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""
    return EmailContent(subject=resolve(bundle, "email.subject", "Your Assessment Results"), html=html)


def internal_notification_email(report: Report, bundle: Optional[TranslationBundle]) -> EmailContent:
    """Summary for the internal team; no attachment."""
    align = "right" if report.rtl else "left"
    info_rows = "".join(
        f"<tr><td><strong>{escape(r.label)}:</strong></td><td>{escape(r.value)}</td></tr>"
        for r in report.respondent_rows
    )
    html = f"""<html dir="{_direction(report)}">
<head><style>
  body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
  table {{ width: 100%; border-collapse: collapse; margin-top: 20px; }}
  th, td {{ border: 1px solid #ddd; padding: 12px; text-align: {align}; }}
  th {{ background-color: #f2f2f2; }}
</style></head>
<body>
  <h1>{escape(report.title)}</h1>
  <table>
    <tr><th colspan="2">{escape(resolve(bundle, "pdf_labels.personal_info", "Personal Information"))}</th></tr>
    {info_rows}
  </table>
  <h2>{escape(report.labels.score)}: {report.score} / {report.max_score} &middot; {escape(report.tier.result)}</h2>
  <table>
    <tr><th>{escape(report.labels.question)}</th><th>{escape(report.labels.answer)}</th></tr>
    {_qa_rows_html(report)}
  </table>
</body>
</html>"""
    return EmailContent(subject=report.title, html=html)


def consultation_admin_email(request: ConsultationRequest, submitted_at: datetime) -> EmailContent:
    rows = [
        ("First Name", request.first_name),
        ("Last Name", request.last_name),
        ("Email", request.email),
        ("Phone", request.phone),
    ]
    ctx = request.context
    if ctx and ctx.personal_info and ctx.personal_info.company:
        rows.append(("Company", ctx.personal_info.company))
    if ctx and ctx.score is not None:
        rows.append(("Assessment Score", str(ctx.score)))
    details = "".join(f"<tr><th>{escape(k)}</th><td>{escape(v)}</td></tr>" for k, v in rows)
    html = f"""<!DOCTYPE html>
<html lang="en">
<body style="font-family:Arial,sans-serif;background:#f5f7fb;padding:24px;color:#1b3a57;">
  <h1>New Consultation Request</h1>
  <p><strong>{escape(request.first_name)} {escape(request.last_name)}</strong> requested a consultation on
  {escape(submitted_at.strftime("%Y-%m-%d %H:%M %Z").strip())}</p>
  <table style="width:100%;border-collapse:collapse;">{details}</table>
  <p>Please respond to the client within 24 hours.</p>
</body>
</html>"""
    return EmailContent(subject="New consultation request from assessment summary", html=html)


def consultation_user_email(request: ConsultationRequest) -> EmailContent:
    html = f"""<!DOCTYPE html>
<html>
<body style="font-family:'Segoe UI',Arial,sans-serif;background:#f4f7fb;color:#1b3a57;">
  <h1>Thank you for your consultation request</h1>
  <p>Hi {escape(request.first_name)},</p>
  <p>Our team has received your details and will reach out shortly with available time slots.</p>
  <p><strong>Your Request Summary</strong><br>
  {escape(request.first_name)} {escape(request.last_name)} &middot; {escape(request.email)} &middot; {escape(request.phone)}</p>
  <p>If you need to add any more information, simply reply to this email.</p>
</body>
</html>"""
    return EmailContent(subject="Thank you for booking a consultation", html=html)
