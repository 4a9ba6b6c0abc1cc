"""Extraction engine mapping a parsed bureau report tree to an ExtractedReport.

Only PAN resolution can fail an extraction. Every other section degrades to
defaults when its source fields are missing or malformed, because a report with
partial summary data is still useful while one without a verifiable identity
is not.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from credit_ingest.extraction.coercion import is_sentinel_date, to_date, to_decimal, to_int, to_text
from credit_ingest.extraction.errors import ExtractionError, IdentityNotFoundError
from credit_ingest.extraction.reference_data import map_account_status, map_account_type
from credit_ingest.extraction.schema import (
    Address,
    BasicDetails,
    CreditAccount,
    CreditProfileHeader,
    ExtractedReport,
    MatchResult,
    ReportHeader,
    ReportSummary,
)
from credit_ingest.extraction.tree import TreeNode, as_list, get_mapping, get_mappings, get_node

LOGGER = logging.getLogger(__name__)

PROFILE_ROOT = "INProfileResponse"
MIN_CREDIT_SCORE = 300
MAX_CREDIT_SCORE = 900


def extract(tree: TreeNode) -> ExtractedReport:
    """Convert a parsed report tree into an :class:`ExtractedReport`.

    Args:
        tree: Output of :func:`credit_ingest.parsing.xml_tree.parse_xml`.

    Returns:
        The normalized report.

    Raises:
        IdentityNotFoundError: No account in the report carries a PAN.
        ExtractionError: The tree could not be mapped for any other reason.
    """

    if not isinstance(tree, Mapping):
        raise ExtractionError("Failed to extract data from XML: document root is not an element")

    profile = get_mapping(tree, PROFILE_ROOT) or {}
    try:
        basic_details = extract_basic_details(profile)
        return ExtractedReport(
            basic_details=basic_details,
            report_summary=extract_report_summary(profile),
            credit_accounts=extract_credit_accounts(profile),
            addresses=extract_addresses(profile),
            header=extract_header_info(profile),
            credit_profile_header=extract_credit_profile_header(profile),
            match_result=extract_match_result(profile),
        )
    except ExtractionError:
        raise
    except Exception as exc:
        LOGGER.exception("Unexpected failure while extracting report tree")
        raise ExtractionError(f"Failed to extract data from XML: {exc}") from exc


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


def account_details(profile: TreeNode) -> List[Mapping[str, Any]]:
    """Return the CAIS account entries as a list, whatever shape the parser produced."""

    return get_mappings(profile, "CAIS_Account", "CAIS_Account_DETAILS")


def resolve_pan(accounts: Iterable[Mapping[str, Any]]) -> Optional[str]:
    """Return the first PAN found across the holder and holder-ID blocks of ``accounts``.

    Joint accounts repeat the holder block, so every holder entry is checked.
    """

    for account in accounts:
        for holder in get_mappings(account, "CAIS_Holder_Details"):
            pan = to_text(holder.get("Income_TAX_PAN"))
            if pan:
                return pan
        for id_details in as_list(account.get("CAIS_Holder_ID_Details")):
            pan = to_text(get_node(id_details, "Income_TAX_PAN"))
            if pan:
                return pan
    return None


def _full_name(first: Any, last: Any) -> str:
    return f"{to_text(first) or ''} {to_text(last) or ''}".strip()


def _date_unless_sentinel(raw: Any):
    if raw is None or is_sentinel_date(raw):
        return None
    return to_date(raw)


def extract_basic_details(profile: TreeNode) -> BasicDetails:
    """Resolve PAN, name, mobile phone, date of birth, and bureau score.

    Name and date of birth come from the first account's holder block, then from
    the current-application section. The mobile phone comes from the
    current-application section, then from the first account's phone block.

    Raises:
        IdentityNotFoundError: When no account yields a PAN.
    """

    accounts = account_details(profile)
    pan = resolve_pan(accounts)

    name = ""
    mobile_phone = ""
    date_of_birth = None

    first_account = accounts[0] if accounts else {}
    holders = get_mappings(first_account, "CAIS_Holder_Details")
    if holders:
        holder = holders[0]
        name = _full_name(holder.get("First_Name_Non_Normalized"), holder.get("Surname_Non_Normalized"))
        date_of_birth = _date_unless_sentinel(holder.get("Date_of_birth"))

    if not name:
        applicant = get_mapping(
            profile, "Current_Application", "Current_Application_Details", "Current_Applicant_Details"
        )
        if applicant:
            name = _full_name(applicant.get("First_Name"), applicant.get("Last_Name"))
            mobile_phone = to_text(applicant.get("MobilePhoneNumber")) or ""
            applicant_dob = _date_unless_sentinel(applicant.get("Date_Of_Birth_Applicant"))
            if applicant_dob:
                date_of_birth = applicant_dob

    if not mobile_phone:
        for phone in get_mappings(first_account, "CAIS_Holder_Phone_Details"):
            mobile_phone = to_text(phone.get("Telephone_Number")) or ""
            if mobile_phone:
                break

    credit_score = to_int(get_node(profile, "SCORE", "BureauScore"), default=None)
    if credit_score is not None and not MIN_CREDIT_SCORE <= credit_score <= MAX_CREDIT_SCORE:
        LOGGER.warning("Ignoring bureau score outside %s-%s: %s", MIN_CREDIT_SCORE, MAX_CREDIT_SCORE, credit_score)
        credit_score = None

    if not pan:
        raise IdentityNotFoundError()

    return BasicDetails(
        name=name or "N/A",
        mobile_phone=mobile_phone or "N/A",
        pan=pan,
        credit_score=credit_score,
        bureau_score_confid_level=to_text(get_node(profile, "SCORE", "BureauScoreConfidLevel")),
        date_of_birth=date_of_birth,
    )


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

_CREDIT_ACCOUNT_FIELDS = {
    "total_accounts": "CreditAccountTotal",
    "active_accounts": "CreditAccountActive",
    "closed_accounts": "CreditAccountClosed",
    "default_accounts": "CreditAccountDefault",
    "credit_account_total": "CreditAccountTotal",
    "credit_account_active": "CreditAccountActive",
    "credit_account_default": "CreditAccountDefault",
    "credit_account_closed": "CreditAccountClosed",
    "cad_suit_filed_current_balance": "CADSuitFiledCurrentBalance",
}

_OUTSTANDING_BALANCE_FIELDS = {
    "current_balance": "Outstanding_Balance_All",
    "secured_amount": "Outstanding_Balance_Secured",
    "unsecured_amount": "Outstanding_Balance_UnSecured",
    "secured_percentage": "Outstanding_Balance_Secured_Percentage",
    "unsecured_percentage": "Outstanding_Balance_UnSecured_Percentage",
}

_ENQUIRY_FIELDS = {
    "last_7_days_enquiries": "TotalCAPSLast7Days",
    "last_30_days_enquiries": "TotalCAPSLast30Days",
    "last_90_days_enquiries": "TotalCAPSLast90Days",
    "last_180_days_enquiries": "TotalCAPSLast180Days",
}


def extract_report_summary(profile: TreeNode) -> ReportSummary:
    """Read account and enquiry counters; missing or negative counters are 0."""

    credit_account = get_node(profile, "CAIS_Account", "CAIS_Summary", "Credit_Account")
    outstanding = get_node(profile, "CAIS_Account", "CAIS_Summary", "Total_Outstanding_Balance")
    enquiries = get_node(profile, "TotalCAPS_Summary")

    values: Dict[str, int] = {}
    for blocks, source in (
        (_CREDIT_ACCOUNT_FIELDS, credit_account),
        (_OUTSTANDING_BALANCE_FIELDS, outstanding),
        (_ENQUIRY_FIELDS, enquiries),
    ):
        for field_name, source_key in blocks.items():
            values[field_name] = max(0, to_int(get_node(source, source_key), default=0))
    return ReportSummary(**values)


# ---------------------------------------------------------------------------
# Accounts + addresses
# ---------------------------------------------------------------------------


def _address_from_block(block: Mapping[str, Any]) -> Address:
    return Address(
        line1=to_text(block.get("First_Line_Of_Address_non_normalized")) or "",
        line2=to_text(block.get("Second_Line_Of_Address_non_normalized")) or "",
        city=to_text(block.get("City_non_normalized")) or "",
        state=to_text(block.get("State_non_normalized")) or "",
        pincode=to_text(block.get("ZIP_Postal_Code_non_normalized")) or "",
        country=to_text(block.get("CountryCode_non_normalized")) or "IB",
        type="current",
    )


def _account_address(account: Mapping[str, Any]) -> Optional[Address]:
    blocks = get_mappings(account, "CAIS_Holder_Address_Details")
    return _address_from_block(blocks[0]) if blocks else None


def map_credit_account(account: Mapping[str, Any]) -> CreditAccount:
    """Map one CAIS account entry onto a :class:`CreditAccount`."""

    return CreditAccount(
        account_number=to_text(account.get("Account_Number")) or "N/A",
        account_type=map_account_type(account.get("Account_Type")),
        subscriber_name=to_text(account.get("Subscriber_Name")) or "N/A",
        portfolio_type=to_text(account.get("Portfolio_Type")),
        open_date=to_date(account.get("Open_Date")),
        credit_limit=to_int(account.get("Credit_Limit_Amount")),
        highest_credit=to_int(account.get("Highest_Credit_or_Original_Loan_Amount")),
        current_balance=to_int(account.get("Current_Balance")),
        amount_overdue=to_int(account.get("Amount_Past_Due")),
        account_status=map_account_status(account.get("Account_Status")),
        payment_rating=to_text(account.get("Payment_Rating")),
        payment_history_profile=to_text(account.get("Payment_History_Profile")),
        date_reported=to_date(account.get("Date_Reported")),
        date_closed=to_date(account.get("Date_Closed")),
        currency=to_text(account.get("CurrencyCode")) or "INR",
        account_holder_type=to_text(account.get("AccountHoldertypeCode")),
        address=_account_address(account),
        identification_number=to_text(account.get("Identification_Number")),
        terms_duration=to_text(account.get("Terms_Duration")),
        terms_frequency=to_text(account.get("Terms_Frequency")),
        scheduled_monthly_payment=to_int(account.get("Scheduled_Monthly_Payment_Amount")),
        special_comment=to_text(account.get("Special_Comment")),
        original_charge_off_amount=to_int(account.get("Original_Charge_Off_Amount")),
        date_of_first_delinquency=to_date(account.get("Date_of_First_Delinquency")),
        date_of_last_payment=to_date(account.get("Date_of_Last_Payment")),
        suit_filed_wilful_default=to_text(account.get("SuitFiled_WilfulDefault")),
        written_off_settled_status=to_text(account.get("Written_off_Settled_Status")),
        value_of_collateral=to_int(account.get("Value_of_Collateral")),
        type_of_collateral=to_text(account.get("Type_of_Collateral")),
        written_off_amount_total=to_int(account.get("Written_Off_Amt_Total")),
        written_off_amount_principal=to_int(account.get("Written_Off_Amt_Principal")),
        rate_of_interest=to_decimal(account.get("Rate_of_Interest")),
        repayment_tenure=to_int(account.get("Repayment_Tenure")),
        subscriber_comments=to_text(account.get("Subscriber_comments")),
        consumer_comments=to_text(account.get("Consumer_comments")),
    )


def extract_credit_accounts(profile: TreeNode) -> List[CreditAccount]:
    """Map every CAIS account entry, preserving document order."""

    return [map_credit_account(account) for account in account_details(profile)]


def dedupe_addresses(addresses: Iterable[Address]) -> List[Address]:
    """Drop addresses repeating an earlier (line1, line2, city); keeps first-seen order."""

    seen = set()
    deduped: List[Address] = []
    for address in addresses:
        key = address.dedupe_key()
        if key in seen:
            continue
        seen.add(key)
        deduped.append(address)
    return deduped


def extract_addresses(profile: TreeNode) -> List[Address]:
    """Collect one address per account carrying an address block, deduplicated."""

    collected = [address for address in map(_account_address, account_details(profile)) if address is not None]
    return dedupe_addresses(collected)


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


def extract_header_info(profile: TreeNode) -> ReportHeader:
    header = get_node(profile, "Header")
    return ReportHeader(
        system_code=to_text(get_node(header, "SystemCode")),
        report_date=to_date(get_node(header, "ReportDate")),
        report_time=to_text(get_node(header, "ReportTime")),
        message_text=to_text(get_node(header, "MessageText")),
    )


def extract_credit_profile_header(profile: TreeNode) -> CreditProfileHeader:
    header = get_node(profile, "CreditProfileHeader")
    return CreditProfileHeader(
        enquiry_username=to_text(get_node(header, "Enquiry_Username")),
        report_date=to_date(get_node(header, "ReportDate")),
        report_time=to_text(get_node(header, "ReportTime")),
        version=to_text(get_node(header, "Version")),
        report_number=to_text(get_node(header, "ReportNumber")),
        subscriber_name=to_text(get_node(header, "Subscriber_Name")),
    )


def extract_match_result(profile: TreeNode) -> MatchResult:
    raw = to_text(get_node(profile, "Match_result", "Exact_match")) or ""
    return MatchResult(exact_match="Y" if raw.upper() == "Y" else "N")


__all__ = [
    "account_details",
    "dedupe_addresses",
    "extract",
    "extract_addresses",
    "extract_basic_details",
    "extract_credit_accounts",
    "extract_credit_profile_header",
    "extract_header_info",
    "extract_match_result",
    "extract_report_summary",
    "map_credit_account",
    "resolve_pan",
]
