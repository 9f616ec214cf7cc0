# tests/modules/backups/test_agreement_pdf.py
import re
from zoneinfo import ZoneInfo

import pytest
from conftest import make_agreement

from rentaldesk.modules.backups.errors import ArtifactGenerationError
from rentaldesk.modules.backups.pdf import Letterhead, build_agreement_document, format_date, render_agreement_pdf

NY = ZoneInfo("America/New_York")
LETTERHEAD = Letterhead("ACME RENTALS", "1 Test Way, Providence, RI", "401-555-0000")


def _labels(document, title):
    section = document.section(title)
    return [label for label, _ in section.rows] if section else None


def test_original_vehicle_section_absent_without_original_make():
    document = build_agreement_document(make_agreement(original_model="Civic"), letterhead=LETTERHEAD, tz=NY)
    assert all("ORIGINAL" not in s.title for s in document.sections)


def test_original_vehicle_section_lists_only_supplied_fields():
    agreement = make_agreement(original_make="Honda", original_model="Civic", original_color="")
    document = build_agreement_document(agreement, letterhead=LETTERHEAD, tz=NY)

    section = document.section("ORIGINAL VEHICLE (Damaged/In Shop)")
    assert section is not None
    assert section.rows == [("Vehicle:", "Honda Civic")]


def test_absent_optional_fields_produce_no_rows():
    document = build_agreement_document(make_agreement(deposits=None), letterhead=LETTERHEAD, tz=NY)

    assert _labels(document, "INSURANCE INFORMATION") == ["Insurance Company:", "Policy Number:", "Policy Expiration:"]
    rental = _labels(document, "RENTAL VEHICLE")
    assert "Mileage Out:" not in rental
    assert "Date Due Back:" not in rental
    assert "Deposits:" not in _labels(document, "CHARGES & DEPOSITS")


def test_values_are_formatted():
    agreement = make_agreement(
        deposits="250.00",
        date_of_loss="2026-02-28",
        date_due_back="2026-03-19",
        adjuster="Pat Lee",
    )
    document = build_agreement_document(agreement, letterhead=LETTERHEAD, tz=NY)

    renter = dict(document.section("RENTER INFORMATION").rows)
    assert renter["Date of Birth:"] == "02/14/1985"
    assert renter["City, State, ZIP:"] == "Pawtucket, RI 02860"

    insurance = dict(document.section("INSURANCE INFORMATION").rows)
    assert insurance["Date of Loss:"] == "02/28/2026"
    assert insurance["Adjuster:"] == "Pat Lee"

    assert dict(document.section("RENTAL VEHICLE").rows)["Date Due Back:"] == "03/19/2026"

    charges = dict(document.section("CHARGES & DEPOSITS").rows)
    assert charges == {
        "Deposits:": "$250.00",
        "Sales Tax Rate:": "8.00%",
        "State Sales Tax Rate:": "7.00%",
        "Fuel Charges per Gallon:": "$5.99",
    }


def test_header_terms_and_creation_stamp():
    document = build_agreement_document(make_agreement(), letterhead=LETTERHEAD, tz=NY)

    assert document.agreement_number == "AGR-007"
    # 15:30 UTC is 10:30 in New York on 2026-03-05
    assert document.agreement_date == "03/05/2026"
    assert document.created_stamp == "03/05/2026 10:30 AM"
    assert len(document.terms) == 10
    assert document.terms[0].startswith("1. ")
    assert document.terms[-1].startswith("10. ")
    assert "ACME RENTALS" in document.terms[-1]


@pytest.mark.parametrize("field_name", ["date_of_birth", "license_expiration", "policy_expiration"])
def test_missing_required_date_fails(field_name):
    with pytest.raises(ArtifactGenerationError):
        build_agreement_document(make_agreement(**{field_name: ""}), letterhead=LETTERHEAD, tz=NY)


def test_unparsable_optional_date_still_fails():
    with pytest.raises(ArtifactGenerationError):
        build_agreement_document(make_agreement(date_of_loss="31/02/2026"), letterhead=LETTERHEAD, tz=NY)


def test_trailing_text_after_date_fails():
    with pytest.raises(ArtifactGenerationError):
        format_date("2026-03-05garbage", "date_of_birth")
    with pytest.raises(ArtifactGenerationError):
        build_agreement_document(make_agreement(date_of_birth="1990-01-15 or so"), letterhead=LETTERHEAD, tz=NY)


def test_format_date_accepts_iso_timestamps():
    assert format_date("2026-07-04T00:00:00Z", "x") == "07/04/2026"
    assert format_date(None, "x", required=False) is None


def test_render_produces_two_page_pdf():
    data = render_agreement_pdf(make_agreement(original_make="Honda", deposits="100"), letterhead=LETTERHEAD, tz=NY)

    assert data.startswith(b"%PDF")
    assert len(re.findall(rb"/Type /Page[^s]", data)) == 2
