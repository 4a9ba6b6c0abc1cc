"""Pydantic models for the normalized credit report record."""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, NonNegativeInt, field_validator


class Address(BaseModel):
    """Postal address reported against a credit account holder."""

    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    country: str = "IB"
    type: Literal["current", "permanent", "office", "other"] = "current"

    def dedupe_key(self) -> tuple[str, str, str]:
        return (self.line1, self.line2, self.city)


class BasicDetails(BaseModel):
    """Identity of the report subject.

    Attributes:
        name: First and last name, ``"N/A"`` when the report carries none.
        mobile_phone: Mobile number, ``"N/A"`` when the report carries none.
        pan: Income-tax PAN, uppercased. Always present on a processed report.
        credit_score: Bureau score in the 300-900 range, or ``None``.
        bureau_score_confid_level: Bureau confidence level for the score.
        date_of_birth: Subject's date of birth when known.
    """

    name: str = "N/A"
    mobile_phone: str = "N/A"
    pan: str = Field(min_length=1)
    credit_score: Optional[int] = Field(default=None, ge=300, le=900)
    bureau_score_confid_level: Optional[str] = None
    date_of_birth: Optional[date] = None

    @field_validator("pan", mode="before")
    @classmethod
    def _normalize_pan(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class ReportSummary(BaseModel):
    """Account and enquiry counters from the summary sections of the report."""

    total_accounts: NonNegativeInt = 0
    active_accounts: NonNegativeInt = 0
    closed_accounts: NonNegativeInt = 0
    default_accounts: NonNegativeInt = 0
    current_balance: NonNegativeInt = 0
    secured_amount: NonNegativeInt = 0
    unsecured_amount: NonNegativeInt = 0
    secured_percentage: NonNegativeInt = 0
    unsecured_percentage: NonNegativeInt = 0
    last_7_days_enquiries: NonNegativeInt = 0
    last_30_days_enquiries: NonNegativeInt = 0
    last_90_days_enquiries: NonNegativeInt = 0
    last_180_days_enquiries: NonNegativeInt = 0
    credit_account_total: NonNegativeInt = 0
    credit_account_active: NonNegativeInt = 0
    credit_account_default: NonNegativeInt = 0
    credit_account_closed: NonNegativeInt = 0
    cad_suit_filed_current_balance: NonNegativeInt = 0


class CreditAccount(BaseModel):
    """One tradeline from the report, in source document order."""

    account_number: str = "N/A"
    account_type: str
    subscriber_name: str = "N/A"
    portfolio_type: Optional[str] = None
    open_date: Optional[date] = None
    credit_limit: int = 0
    highest_credit: int = 0
    current_balance: int = 0
    amount_overdue: int = 0
    account_status: str
    payment_rating: Optional[str] = None
    payment_history_profile: Optional[str] = None
    date_reported: Optional[date] = None
    date_closed: Optional[date] = None
    currency: str = "INR"
    account_holder_type: Optional[str] = None
    address: Optional[Address] = None
    identification_number: Optional[str] = None
    terms_duration: Optional[str] = None
    terms_frequency: Optional[str] = None
    scheduled_monthly_payment: int = 0
    special_comment: Optional[str] = None
    original_charge_off_amount: int = 0
    date_of_first_delinquency: Optional[date] = None
    date_of_last_payment: Optional[date] = None
    suit_filed_wilful_default: Optional[str] = None
    written_off_settled_status: Optional[str] = None
    value_of_collateral: int = 0
    type_of_collateral: Optional[str] = None
    written_off_amount_total: int = 0
    written_off_amount_principal: int = 0
    rate_of_interest: float = 0.0
    repayment_tenure: int = 0
    subscriber_comments: Optional[str] = None
    consumer_comments: Optional[str] = None


class ReportHeader(BaseModel):
    system_code: Optional[str] = None
    report_date: Optional[date] = None
    report_time: Optional[str] = None
    message_text: Optional[str] = None


class CreditProfileHeader(BaseModel):
    enquiry_username: Optional[str] = None
    report_date: Optional[date] = None
    report_time: Optional[str] = None
    version: Optional[str] = None
    report_number: Optional[str] = None
    subscriber_name: Optional[str] = None


class MatchResult(BaseModel):
    exact_match: Literal["Y", "N"] = "N"


class ExtractedReport(BaseModel):
    """Canonical output of one successful extraction run."""

    basic_details: BasicDetails
    report_summary: ReportSummary = Field(default_factory=ReportSummary)
    credit_accounts: List[CreditAccount] = Field(default_factory=list)
    addresses: List[Address] = Field(default_factory=list)
    header: ReportHeader = Field(default_factory=ReportHeader)
    credit_profile_header: CreditProfileHeader = Field(default_factory=CreditProfileHeader)
    match_result: MatchResult = Field(default_factory=MatchResult)


__all__ = [
    "Address",
    "BasicDetails",
    "CreditAccount",
    "CreditProfileHeader",
    "ExtractedReport",
    "MatchResult",
    "ReportHeader",
    "ReportSummary",
]
