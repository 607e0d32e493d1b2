"""Configuration for the carbon readiness assessment."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    pass

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_BLOCKED_EMAIL_DOMAINS = (
    "gmail.com,yahoo.com,hotmail.com,outlook.com,aol.com,icloud.com,mail.com"
)


def split_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment / logging
    APP_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    LOG_FILE: Optional[str] = Field(default=None, description="Optional log file path")

    # Catalogs
    DATA_DIR: Path = Field(default=PROJECT_ROOT / "data", description="Question/translation JSON directory")
    DEFAULT_LANGUAGE: str = Field(default="en", description="Fallback language code")

    # SMTP
    SMTP_HOST: Optional[str] = Field(default=None, description="SMTP server host")
    SMTP_PORT: int = Field(default=587, description="SMTP server port")
    SMTP_SECURE: bool = Field(default=False, description="Use implicit TLS (SMTP_SSL) instead of STARTTLS")
    SMTP_USER: Optional[str] = Field(default=None, description="SMTP username")
    SMTP_PASS: Optional[str] = Field(default=None, description="SMTP password")
    SMTP_TIMEOUT: int = Field(default=20, description="SMTP timeout in seconds")
    FROM_EMAIL: str = Field(default="no-reply@example.com", description="Sender address")
    REPLY_TO_EMAIL: Optional[str] = Field(default=None, description="Reply-To for respondent emails")
    INTERNAL_RECIPIENTS: str = Field(default="", description="Comma-separated internal notification recipients")
    CONSULTATION_RECIPIENTS: str = Field(default="", description="Comma-separated consultation recipients")

    # Google Sheets
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = Field(
        default=None, description="Path to a service account JSON file"
    )
    GOOGLE_SERVICE_ACCOUNT_CREDENTIALS: Optional[str] = Field(
        default=None, description="Service account JSON on a single line"
    )
    ASSESSMENT_SHEET_ID: Optional[str] = Field(default=None, description="Spreadsheet for assessment rows")
    ASSESSMENT_SHEET_NAME: str = Field(default="Sheet1", description="Tab for assessment rows")
    CONSULTATION_SHEET_ID: Optional[str] = Field(default=None, description="Spreadsheet for consultation rows")
    CONSULTATION_SHEET_NAME: str = Field(default="Sheet2", description="Tab for consultation rows")
    SHEETS_TIMEOUT: int = Field(default=15, description="Sheets API timeout in seconds")

    # UI / report
    BOOK_APPOINTMENT_URL: str = Field(default="https://cal.com/", description="Consultation booking link")
    RESULTS_CONTACT_EMAIL: str = Field(default="carbon@example.com", description="Contact shown on results")
    PRIVACY_POLICY_URL: str = Field(default="https://example.com/privacy", description="Privacy notice link")
    TERMS_URL: str = Field(default="https://example.com/terms", description="Terms link")
    REPORT_FONT_PATH: Optional[str] = Field(
        default=None, description="TTF font for the PDF (needed for Arabic glyphs)"
    )
    REPORT_PAGE_CAPACITY: int = Field(default=11, description="Question rows per report page")
    BLOCKED_EMAIL_DOMAINS: str = Field(
        default=DEFAULT_BLOCKED_EMAIL_DOMAINS, description="Comma-separated non-business email domains"
    )

    @property
    def internal_recipients(self) -> List[str]:
        return split_csv(self.INTERNAL_RECIPIENTS)

    @property
    def consultation_recipients(self) -> List[str]:
        return split_csv(self.CONSULTATION_RECIPIENTS)

    @property
    def blocked_email_domains(self) -> List[str]:
        return [d.lower() for d in split_csv(self.BLOCKED_EMAIL_DOMAINS)]


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings."""
    return Settings()
