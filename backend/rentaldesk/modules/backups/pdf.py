# rentaldesk/modules/backups/pdf.py
"""
Two-page rental agreement rendered with reportlab.

Page 1 content is computed first as titled sections of label/value rows
(`build_agreement_document`), then drawn (`render_agreement_pdf`). Optional
values that are absent never produce a row.
"""

import io
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from xml.sax.saxutils import escape
from zoneinfo import ZoneInfo

from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from rentaldesk.core.config import settings
from rentaldesk.modules.agreements.models import AgreementInDB

from .errors import ArtifactGenerationError

DATE_FORMAT = "%m/%d/%Y"
STAMP_FORMAT = "%m/%d/%Y %I:%M %p"
MARGIN = 50

TERMS = (
    "The renter agrees to return the vehicle in the same condition as received, normal wear and tear excepted.",
    "The renter is responsible for all traffic violations, tolls, and parking tickets incurred during the rental period.",
    "The vehicle must be returned with the same fuel level as when rented, or fuel charges will apply.",
    "Any damage to the vehicle during the rental period is the responsibility of the renter.",
    "The renter must have valid insurance coverage for the duration of the rental period.",
    "Late returns may incur additional daily charges.",
    "Smoking in the vehicle is strictly prohibited and will result in cleaning fees.",
    "The vehicle may not be used for illegal purposes or driven outside the authorized area.",
    "Only authorized drivers listed on this agreement may operate the vehicle.",
    "The renter agrees to notify {business} immediately in case of accident or mechanical failure.",
)


@dataclass(frozen=True)
class Letterhead:
    name: str
    address: str
    phone: str

    @classmethod
    def from_settings(cls) -> "Letterhead":
        return cls(settings.BUSINESS_NAME, settings.BUSINESS_ADDRESS, settings.BUSINESS_PHONE)


@dataclass
class Section:
    title: str
    rows: List[Tuple[str, str]] = field(default_factory=list)

    def add(self, label: str, value: Optional[str]) -> None:
        if value is not None and str(value).strip():
            self.rows.append((label, str(value)))


@dataclass
class AgreementDocument:
    letterhead: Letterhead
    agreement_number: str
    agreement_date: str
    sections: List[Section]
    terms: List[str]
    created_stamp: str

    def section(self, title: str) -> Optional[Section]:
        return next((s for s in self.sections if s.title == title), None)


def format_date(value, field_name: str, *, required: bool = True) -> Optional[str]:
    """MM/DD/YYYY, or None for an absent optional date. Anything unparsable is an error."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ArtifactGenerationError(f"Required date field '{field_name}' is missing")
        return None
    if isinstance(value, datetime):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    text = str(value).strip()
    try:
        return date.fromisoformat(text).strftime(DATE_FORMAT)
    except ValueError:
        pass
    try:
        # Calendar dates are taken as written, without shifting through a timezone
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ArtifactGenerationError(f"Date field '{field_name}' is not a valid date: {value!r}") from exc
    return parsed.strftime(DATE_FORMAT)


def _local(moment: datetime, tz: ZoneInfo) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz)


def _join(*parts: Optional[str]) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def build_agreement_document(
    agreement: AgreementInDB,
    *,
    letterhead: Optional[Letterhead] = None,
    tz: Optional[ZoneInfo] = None,
) -> AgreementDocument:
    letterhead = letterhead or Letterhead.from_settings()
    tz = tz or settings.timezone
    a = agreement

    renter = Section("RENTER INFORMATION")
    renter.add("Name:", a.renter_name)
    renter.add("Address:", a.renter_address)
    renter.add("City, State, ZIP:", f"{a.renter_city}, {a.renter_state} {a.renter_zip_code}")
    renter.add("Phone:", a.renter_phone)
    renter.add("Email:", a.renter_email)
    renter.add("Date of Birth:", format_date(a.date_of_birth, "date_of_birth"))

    license_info = Section("LICENSE INFORMATION")
    license_info.add("License Number:", a.drivers_license)
    license_info.add("License State:", a.license_state)
    license_info.add("License Expiration:", format_date(a.license_expiration, "license_expiration"))

    insurance = Section("INSURANCE INFORMATION")
    insurance.add("Insurance Company:", a.insurance_company)
    insurance.add("Policy Number:", a.policy_number)
    insurance.add("Policy Expiration:", format_date(a.policy_expiration, "policy_expiration"))
    insurance.add("Insurance Agent:", a.insurance_agent)
    insurance.add("Agent Phone:", a.agent_phone)
    insurance.add("Adjuster:", a.adjuster)
    insurance.add("Adjuster Phone:", a.adjuster_phone)
    insurance.add("Claim Number:", a.claim_number)
    insurance.add("Date of Loss:", format_date(a.date_of_loss, "date_of_loss", required=False))

    sections = [renter, license_info, insurance]

    if a.original_make and a.original_make.strip():
        original = Section("ORIGINAL VEHICLE (Damaged/In Shop)")
        original.add("Car Number:", a.original_car_number)
        original.add("License Plate:", a.original_license)
        original.add("Vehicle:", _join(a.original_year, a.original_make, a.original_model))
        original.add("Color:", a.original_color)
        sections.append(original)

    rental = Section("RENTAL VEHICLE")
    rental.add("Car Number:", a.current_car_number)
    rental.add("License Plate:", a.current_license)
    rental.add("Vehicle:", _join(a.current_year, a.current_make, a.current_model))
    rental.add("Color:", a.current_color)
    rental.add("Mileage Out:", a.mileage_out)
    rental.add("Fuel Gauge Out:", a.fuel_gauge_out)
    rental.add("Date Due Back:", format_date(a.date_due_back, "date_due_back", required=False))
    sections.append(rental)

    charges = Section("CHARGES & DEPOSITS")
    charges.add("Deposits:", f"${a.deposits}" if a.deposits else None)
    charges.add("Sales Tax Rate:", f"{a.sales_tax}%" if a.sales_tax else None)
    charges.add("State Sales Tax Rate:", f"{a.state_sales_tax}%" if a.state_sales_tax else None)
    charges.add("Fuel Charges per Gallon:", f"${a.fuel_charges}" if a.fuel_charges else None)
    sections.append(charges)

    created_local = _local(a.created_at, tz)
    return AgreementDocument(
        letterhead=letterhead,
        agreement_number=a.agreement_number,
        agreement_date=created_local.strftime(DATE_FORMAT),
        sections=sections,
        terms=[f"{i}. {term.format(business=letterhead.name)}" for i, term in enumerate(TERMS, start=1)],
        created_stamp=created_local.strftime(STAMP_FORMAT),
    )


def _styles() -> dict:
    return {
        "business": ParagraphStyle("business", fontName="Helvetica-Bold", fontSize=16, leading=20, alignment=TA_CENTER),
        "letterhead": ParagraphStyle("letterhead", fontName="Helvetica", fontSize=10, leading=13, alignment=TA_CENTER),
        "title": ParagraphStyle("title", fontName="Helvetica-Bold", fontSize=14, leading=18, alignment=TA_CENTER),
        "meta": ParagraphStyle("meta", fontName="Helvetica", fontSize=11, leading=14, alignment=TA_RIGHT),
        "heading": ParagraphStyle("heading", fontName="Helvetica-Bold", fontSize=12, leading=14, spaceBefore=4),
        "field": ParagraphStyle("field", fontName="Helvetica", fontSize=10, leading=12),
        "term": ParagraphStyle("term", fontName="Helvetica", fontSize=9, leading=12, spaceAfter=4),
        "footer": ParagraphStyle("footer", fontName="Helvetica", fontSize=8, leading=10),
    }


def _story(document: AgreementDocument) -> list:
    st = _styles()
    story = [
        Paragraph(escape(document.letterhead.name), st["business"]),
        Paragraph(escape(document.letterhead.address), st["letterhead"]),
        Paragraph(escape(f"Phone: {document.letterhead.phone}"), st["letterhead"]),
        Spacer(1, 8),
        Paragraph("RENTAL AGREEMENT", st["title"]),
        Spacer(1, 8),
        Paragraph(escape(f"Agreement Number: {document.agreement_number}"), st["meta"]),
        Paragraph(escape(f"Date: {document.agreement_date}"), st["meta"]),
        Spacer(1, 8),
    ]
    for section in document.sections:
        story.append(Paragraph(escape(section.title), st["heading"]))
        for label, value in section.rows:
            story.append(Paragraph(f"<b>{escape(label)}</b> {escape(value)}", st["field"]))
        story.append(Spacer(1, 4))

    story.append(PageBreak())
    story.append(Paragraph("RENTAL TERMS AND CONDITIONS", st["heading"]))
    story.append(Spacer(1, 6))
    story.extend(Paragraph(escape(term), st["term"]) for term in document.terms)
    story.append(Spacer(1, 24))
    story.append(Paragraph("I have read and agree to the terms and conditions stated above.", st["field"]))
    story.append(Spacer(1, 30))

    line = "_" * 45
    signatures = Table(
        [
            [line, line],
            ["Renter Signature", "Date"],
            ["", ""],
            [line, line],
            ["Agent Signature", "Date"],
        ],
        colWidths=[260, 220],
        rowHeights=[18, 14, 40, 18, 14],
    )
    signatures.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
    ]))
    story.append(signatures)
    story.append(Spacer(1, 36))
    story.append(Paragraph("For office use only:", st["footer"]))
    story.append(Paragraph(escape(f"Agreement created: {document.created_stamp}"), st["footer"]))
    return story


def render_agreement_pdf(
    agreement: AgreementInDB,
    *,
    letterhead: Optional[Letterhead] = None,
    tz: Optional[ZoneInfo] = None,
) -> bytes:
    """Renders the agreement to PDF bytes. Raises ArtifactGenerationError on bad dates."""
    document = build_agreement_document(agreement, letterhead=letterhead, tz=tz)
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=LETTER,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=f"Rental Agreement {document.agreement_number}",
        author=document.letterhead.name,
    )
    doc.build(_story(document))
    return buffer.getvalue()
