from __future__ import annotations
from io import BytesIO
from pathlib import Path
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..core.tiers import TIER_COLORS
from ..utils.logging import get_logger
from .report_model import Report, ReportPage

logger = get_logger(__name__)

BRAND_BLUE = colors.HexColor("#009CD9")
NAVY = colors.HexColor("#1b3a57")
TEXT_GREY = colors.HexColor("#757574")
ROW_ALT = colors.HexColor("#f4f8fb")
CONTENT_WIDTH = 180 * mm

_registered_fonts: dict = {}


def _font_names(font_path: Optional[str]) -> tuple:
    """Regular/bold font names; a TTF is needed for non-Latin scripts such as Arabic."""
    if not font_path:
        return "Helvetica", "Helvetica-Bold"
    if font_path not in _registered_fonts:
        name = f"ReportFont{len(_registered_fonts)}"
        pdfmetrics.registerFont(TTFont(name, str(Path(font_path))))
        _registered_fonts[font_path] = name
    name = _registered_fonts[font_path]
    return name, name


def _styles(report: Report, font_path: Optional[str]) -> dict:
    regular, bold = _font_names(font_path)
    align = TA_RIGHT if report.rtl else TA_LEFT
    base = getSampleStyleSheet()["Normal"]
    return {
        "body": ParagraphStyle("body", parent=base, fontName=regular, fontSize=10, leading=13,
                               textColor=TEXT_GREY, alignment=align),
        "small": ParagraphStyle("small", parent=base, fontName=regular, fontSize=8, leading=10,
                                textColor=TEXT_GREY, alignment=align),
        "label": ParagraphStyle("label", parent=base, fontName=bold, fontSize=10, leading=13,
                                textColor=NAVY, alignment=align),
        "section": ParagraphStyle("section", parent=base, fontName=bold, fontSize=14, leading=18,
                                  textColor=NAVY, alignment=align, spaceAfter=6),
        "header_title": ParagraphStyle("header_title", parent=base, fontName=bold, fontSize=16,
                                       leading=20, textColor=colors.white, alignment=align),
        "header_date": ParagraphStyle("header_date", parent=base, fontName=regular, fontSize=10,
                                      textColor=colors.white, alignment=align),
        "table_head": ParagraphStyle("table_head", parent=base, fontName=bold, fontSize=10,
                                     textColor=colors.white, alignment=align),
        "score_label": ParagraphStyle("score_label", parent=base, fontName=bold, fontSize=12,
                                      textColor=NAVY, alignment=TA_CENTER),
        "score_value": ParagraphStyle("score_value", parent=base, fontName=bold, fontSize=36,
                                      leading=42, textColor=BRAND_BLUE, alignment=TA_CENTER),
        "result": ParagraphStyle("result", parent=base, fontName=bold, fontSize=14, leading=18,
                                 textColor=NAVY, alignment=TA_CENTER),
        "suggestion": ParagraphStyle("suggestion", parent=base, fontName=regular, fontSize=10,
                                     leading=14, textColor=TEXT_GREY, alignment=TA_CENTER),
        "footer": ParagraphStyle("footer", parent=base, fontName=regular, fontSize=9,
                                 textColor=colors.white, alignment=align),
    }


def _p(text: str, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(text or ""), style)


def _header(report: Report, st: dict) -> Table:
    tbl = Table([[_p(report.title, st["header_title"])], [_p(report.date, st["header_date"])]],
                colWidths=[CONTENT_WIDTH])
    tbl.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), BRAND_BLUE),
        ("LEFTPADDING", (0, 0), (-1, -1), 12),
        ("RIGHTPADDING", (0, 0), (-1, -1), 12),
        ("TOPPADDING", (0, 0), (-1, 0), 14),
        ("BOTTOMPADDING", (0, -1), (-1, -1), 12),
    ]))
    return tbl


def _footer(report: Report, st: dict) -> Table:
    tbl = Table([[_p(line, st["footer"])] for line in report.footer_lines] or [[""]],
                colWidths=[CONTENT_WIDTH])
    tbl.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), NAVY),
        ("LEFTPADDING", (0, 0), (-1, -1), 12),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    return tbl


def _info_table(report: Report, st: dict) -> Table:
    data = [[_p(f"{row.label}:", st["label"]), _p(row.value, st["body"])] for row in report.respondent_rows]
    widths = [45 * mm, CONTENT_WIDTH - 45 * mm]
    if report.rtl:
        data = [list(reversed(r)) for r in data]
        widths = list(reversed(widths))
    tbl = Table(data, colWidths=widths)
    tbl.setStyle(TableStyle([
        ("BOX", (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ("LINEBELOW", (0, 0), (-1, -2), 0.3, colors.lightgrey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
    ]))
    return tbl


def _score_block(report: Report, st: dict) -> Table:
    tier_color = colors.HexColor(TIER_COLORS[report.tier.tier])
    rows = [
        [_p(report.labels.score, st["score_label"])],
        [_p(str(report.score), st["score_value"])],
        [_p(report.tier.result, st["result"])],
    ]
    if report.tier.suggestion:
        rows.append([_p(report.tier.suggestion, st["suggestion"])])
    tbl = Table(rows, colWidths=[CONTENT_WIDTH])
    tbl.setStyle(TableStyle([
        ("BOX", (0, 0), (-1, -1), 1, tier_color),
        ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#f0fbff")),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]))
    return tbl


def _qa_table(report: Report, page: ReportPage, st: dict) -> Table:
    data: List[list] = []
    if page.show_header:
        data.append([_p(report.labels.question, st["table_head"]), _p(report.labels.answer, st["table_head"])])
    for row in page.rows:
        answer_cell = [_p(row.answer, st["body"])]
        if row.context:
            answer_cell.append(_p(row.context, st["small"]))
        data.append([_p(row.question, st["body"]), answer_cell])

    widths = [CONTENT_WIDTH * 0.55, CONTENT_WIDTH * 0.45]
    if report.rtl:
        data = [list(reversed(r)) for r in data]
        widths = list(reversed(widths))

    commands = [
        ("GRID", (0, 0), (-1, -1), 0.4, colors.lightgrey),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 6),
        ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
    ]
    offset = 1 if page.show_header else 0
    if page.show_header:
        commands.append(("BACKGROUND", (0, 0), (-1, 0), NAVY))
    for i, row in enumerate(page.rows):
        if row.striped:
            commands.append(("BACKGROUND", (0, i + offset), (-1, i + offset), ROW_ALT))
    tbl = Table(data, colWidths=widths)
    tbl.setStyle(TableStyle(commands))
    return tbl


def build_story(report: Report, font_path: Optional[str] = None) -> list:
    st = _styles(report, font_path)
    story: list = [
        _header(report, st),
        Spacer(1, 14),
        _p(report.labels.detailed_information, st["section"]),
        _info_table(report, st),
        Spacer(1, 14),
        _p(report.labels.assessment_results, st["section"]),
        _score_block(report, st),
    ]
    if report.summary_shows_footer:
        story += [Spacer(1, 20), _footer(report, st)]

    for page in report.pages:
        story.append(PageBreak())
        if page.show_header:
            story.append(_p(report.labels.assessment_details, st["section"]))
        story.append(_qa_table(report, page, st))
        if page.show_footer:
            story += [Spacer(1, 20), _footer(report, st)]
    return story


def render_pdf(report: Report, font_path: Optional[str] = None) -> bytes:
    """Render a report to PDF bytes (used for both download and email attachment)."""
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=report.title,
    )
    doc.build(build_story(report, font_path))
    pdf_bytes = buf.getvalue()
    buf.close()
    logger.debug("Rendered %d-byte PDF with %d answer pages", len(pdf_bytes), len(report.pages))
    return pdf_bytes

