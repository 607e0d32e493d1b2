"""Append-only Google Sheets store.

Calls the Sheets v4 REST API via httpx with a service-account bearer token.
Each flow owns one tab with a fixed header row; the header is written when
missing (and rewritten when it no longer matches, for the assessment tab).
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence
from urllib.parse import quote

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from ..config import PROJECT_ROOT, Settings
from ..core.catalog import Question, find_option, get_question
from ..core.submission import ConsultationRequest, Respondent
from ..errors import DeliveryError
from ..utils.logging import get_logger

logger = get_logger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

ASSESSMENT_BASE_HEADERS = ["Timestamp", "Name", "Email", "Company", "Position", "Score", "Language"]
CONSULTATION_HEADERS = ["Timestamp", "First Name", "Last Name", "Email", "Phone", "Company", "Score"]


@dataclass(frozen=True)
class SheetsResult:
    success: bool
    error: Optional[str] = None


def column_letter(column: int) -> str:
    """1 -> A, 26 -> Z, 27 -> AA."""
    if column < 1:
        raise ValueError("column numbers start at 1")
    letters = ""
    while column > 0:
        column, rem = divmod(column - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def question_header(question: Question) -> str:
    number = question.id[1:] if question.id.startswith("q") else question.id
    return f"Q{number} - {question.text[:50]}..."


def assessment_headers(questions: Sequence[Question]) -> List[str]:
    return ASSESSMENT_BASE_HEADERS + [question_header(q) for q in questions]


def assessment_row(
    respondent: Respondent,
    answers: Mapping[str, str],
    score: int,
    language: str,
    questions: Sequence[Question],
    header_questions: Optional[Sequence[Question]] = None,
    timestamp: Optional[str] = None,
) -> List[str]:
    """Cells follow the header's question order; labels come from `questions` by id."""
    labels = []
    for header_q in header_questions or questions:
        opt = find_option(get_question(questions, header_q.id), answers.get(header_q.id))
        labels.append(opt.label if opt else "")
    return [
        timestamp or utc_timestamp(),
        respondent.name,
        respondent.email,
        respondent.company,
        respondent.position,
        str(score),
        language.upper(),
    ] + labels


def consultation_row(request: ConsultationRequest, timestamp: Optional[str] = None) -> List[str]:
    ctx = request.context
    company = ctx.personal_info.company if ctx and ctx.personal_info else ""
    score = "" if not ctx or ctx.score is None else str(ctx.score)
    return [
        timestamp or utc_timestamp(),
        request.first_name,
        request.last_name,
        request.email,
        request.phone,
        company,
        score,
    ]


def load_credentials_info(settings: Settings) -> Optional[Dict[str, Any]]:
    """Service-account JSON from a file path, else from a single-line env value.

    Returns None (and logs) when absent or unparseable; the sheet path is then disabled.
    """
    key_path = settings.GOOGLE_APPLICATION_CREDENTIALS
    if key_path:
        path = Path(key_path)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Google credentials file error (%s): %s", path, exc)
            return None
    raw = settings.GOOGLE_SERVICE_ACCOUNT_CREDENTIALS
    if not raw:
        return None
    try:
        return json.loads(raw.strip())
    except json.JSONDecodeError as exc:
        logger.error("GOOGLE_SERVICE_ACCOUNT_CREDENTIALS is not valid single-line JSON: %s", exc)
        return None


def service_account_token_provider(info: Mapping[str, Any]) -> Callable[[], str]:
    credentials = service_account.Credentials.from_service_account_info(dict(info), scopes=SCOPES)

    def token() -> str:
        if not credentials.valid:
            credentials.refresh(Request())
        return credentials.token

    return token


class SheetsClient:
    """Minimal values.get / values.update / values.append wrapper for one tab."""

    def __init__(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        token_provider: Callable[[], str],
        http: httpx.Client,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.token_provider = token_provider
        self.http = http

    def _url(self, a1_range: str, suffix: str = "") -> str:
        return f"{SHEETS_API_URL}/{self.spreadsheet_id}/values/{quote(a1_range, safe='')}{suffix}"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token_provider()}"}

    def header_range(self, width: int) -> str:
        return f"{self.sheet_name}!A1:{column_letter(width)}1"

    def read_header(self, width: int) -> List[str]:
        response = self.http.get(self._url(self.header_range(width)), headers=self._headers())
        response.raise_for_status()
        values = response.json().get("values") or []
        return [str(v) for v in values[0]] if values else []

    def write_header(self, headers: Sequence[str]) -> None:
        response = self.http.put(
            self._url(self.header_range(len(headers))),
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": [list(headers)]},
            headers=self._headers(),
        )
        response.raise_for_status()

    def ensure_header(self, headers: Sequence[str], reconcile: bool = True) -> bool:
        """Write the header when missing (or mismatched if `reconcile`). Returns True if written."""
        try:
            existing = self.read_header(len(headers))
        except httpx.HTTPStatusError as exc:
            logger.warning("Reading header of %s failed (%s); rewriting it", self.sheet_name, exc)
            existing = []
        if existing == list(headers):
            return False
        if existing and not reconcile:
            return False
        self.write_header(headers)
        logger.info("Wrote %d-column header to %s", len(headers), self.sheet_name)
        return True

    def append_row(self, row: Sequence[str], width: int) -> None:
        response = self.http.post(
            self._url(f"{self.sheet_name}!A:{column_letter(width)}", ":append"),
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            json={"values": [list(row)]},
            headers=self._headers(),
        )
        response.raise_for_status()


class SheetsStore(Protocol):
    def append_assessment(
        self,
        respondent: Respondent,
        answers: Mapping[str, str],
        score: int,
        language: str,
        questions: Sequence[Question],
        header_questions: Optional[Sequence[Question]] = None,
    ) -> SheetsResult: ...

    def append_consultation(self, request: ConsultationRequest) -> SheetsResult: ...


class GoogleSheetsStore:
    def __init__(
        self,
        settings: Settings,
        http: Optional[httpx.Client] = None,
        token_provider: Optional[Callable[[], str]] = None,
    ):
        self.settings = settings
        self.http = http
        self._token_provider = token_provider

    def _tokens(self) -> Callable[[], str]:
        if self._token_provider is None:
            info = load_credentials_info(self.settings)
            if not info:
                raise DeliveryError(
                    "sheets",
                    "Google Sheets skipped: set GOOGLE_APPLICATION_CREDENTIALS (path to JSON file) "
                    "or GOOGLE_SERVICE_ACCOUNT_CREDENTIALS (single-line JSON).",
                )
            try:
                self._token_provider = service_account_token_provider(info)
            except (ValueError, KeyError) as exc:
                raise DeliveryError("sheets", f"invalid service account credentials: {exc}", exc) from exc
        return self._token_provider

    def _write(self, http: httpx.Client, spreadsheet_id, sheet_name, headers, row, reconcile) -> None:
        client = SheetsClient(spreadsheet_id, sheet_name, self._tokens(), http)
        client.ensure_header(headers, reconcile=reconcile)
        client.append_row(row, len(headers))

    def _append(self, spreadsheet_id, sheet_name, headers, row, reconcile) -> SheetsResult:
        try:
            if not spreadsheet_id:
                raise DeliveryError("sheets", f"no spreadsheet id configured for {sheet_name}")
            if self.http is not None:
                self._write(self.http, spreadsheet_id, sheet_name, headers, row, reconcile)
            else:
                with httpx.Client(timeout=self.settings.SHEETS_TIMEOUT) as http:
                    self._write(http, spreadsheet_id, sheet_name, headers, row, reconcile)
        except DeliveryError as exc:
            logger.warning("%s", exc)
            return SheetsResult(success=False, error=str(exc))
        except (httpx.HTTPError, GoogleAuthError) as exc:
            logger.exception("Error writing to Google Sheets tab %s", sheet_name)
            return SheetsResult(success=False, error=f"sheets: {exc}")
        logger.info("Appended row to Google Sheets tab %s", sheet_name)
        return SheetsResult(success=True)

    def append_assessment(
        self,
        respondent: Respondent,
        answers: Mapping[str, str],
        score: int,
        language: str,
        questions: Sequence[Question],
        header_questions: Optional[Sequence[Question]] = None,
    ) -> SheetsResult:
        headers = assessment_headers(header_questions or questions)
        row = assessment_row(respondent, answers, score, language, questions, header_questions)
        return self._append(self.settings.ASSESSMENT_SHEET_ID, self.settings.ASSESSMENT_SHEET_NAME,
                            headers, row, reconcile=True)

    def append_consultation(self, request: ConsultationRequest) -> SheetsResult:
        return self._append(self.settings.CONSULTATION_SHEET_ID, self.settings.CONSULTATION_SHEET_NAME,
                            CONSULTATION_HEADERS, consultation_row(request), reconcile=False)
