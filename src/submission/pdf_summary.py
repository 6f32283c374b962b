"""
Claim Summary PDF Generator

Renders a submitted First Report of Injury as a one-document PDF summary
using ReportLab. Empty answers are left out; the SSN is masked to its last
four digits.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from submission.snapshot import ClaimSnapshot

logger = logging.getLogger(__name__)

Row = Tuple[str, str]


def mask_ssn(ssn: str) -> str:
    """Keep only the last four digits: XXX-XX-1234."""
    digits = "".join(ch for ch in ssn or "" if ch.isdigit())
    if not digits:
        return "N/A"
    return f"XXX-XX-{digits[-4:]}"


def _join(*parts: str, sep: str = " ") -> str:
    return sep.join(p for p in parts if p).strip()


def _address(street: str, city: str, state: str, zip_code: str) -> str:
    return _join(_join(street, city, sep=", "), _join(state, zip_code))


def _yes_no(value: Optional[str]) -> str:
    return "" if value in (None, "unset") else value.capitalize()


def _date(value: str) -> str:
    if not value:
        return ""
    try:
        return datetime.strptime(value, "%Y-%m-%d").strftime("%m/%d/%Y")
    except ValueError:
        return value


def _time(value: str) -> str:
    if not value:
        return ""
    try:
        return datetime.strptime(value, "%H:%M").strftime("%I:%M %p").lstrip("0")
    except ValueError:
        return value


class ClaimSummaryPDFGenerator:
    """Generates the PDF summary attached to every claim email."""

    def __init__(self, company_name: str = "Titanium Defense Group"):
        self.company_name = company_name
        self._styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Set up custom paragraph styles."""
        self._styles.add(ParagraphStyle(
            'CompanyHeader',
            parent=self._styles['Normal'],
            fontSize=20,
            leading=24,
            fontName='Helvetica-Bold',
            alignment=TA_CENTER,
            spaceAfter=4,
        ))

        self._styles.add(ParagraphStyle(
            'ReportTitle',
            parent=self._styles['Normal'],
            fontSize=14,
            leading=18,
            alignment=TA_CENTER,
            spaceAfter=4,
        ))

        self._styles.add(ParagraphStyle(
            'Generated',
            parent=self._styles['Normal'],
            fontSize=10,
            textColor=colors.HexColor("#666666"),
            alignment=TA_CENTER,
        ))

        self._styles.add(ParagraphStyle(
            'ClaimSection',
            parent=self._styles['Heading2'],
            fontSize=12,
            fontName='Helvetica-Bold',
            textColor=colors.HexColor("#1e293b"),
            spaceBefore=14,
            spaceAfter=6,
        ))

        self._styles.add(ParagraphStyle(
            'ClaimBody',
            parent=self._styles['Normal'],
            fontSize=10,
            leading=14,
            textColor=colors.HexColor("#334155"),
        ))

        self._styles.add(ParagraphStyle(
            'RedFlag',
            parent=self._styles['Normal'],
            fontSize=10,
            leading=14,
            fontName='Helvetica-Bold',
            textColor=colors.HexColor("#dc2626"),
            spaceBefore=12,
        ))

    def sections(self, snapshot: ClaimSnapshot) -> List[Tuple[str, List[Row]]]:
        """Section title and (label, value) rows; empty and hidden answers dropped."""
        hidden = set(snapshot.hidden_fields)

        def v(field_id: str, default=""):
            return default if field_id in hidden else snapshot.value(field_id, default)

        raw: List[Tuple[str, Sequence[Row]]] = [
            ("Employee Personal Information", [
                ("Name", _join(v("firstName"), v("lastName"))),
                ("Address", _address(v("mailingAddress"), v("city"), v("state"), v("zipCode"))),
                ("Phone", v("phone")),
                ("Date of Birth", _date(v("dateOfBirth"))),
                ("Date of Hire", _date(v("dateOfHire"))),
                ("Gender", v("gender").capitalize()),
                ("SSN", mask_ssn(v("ssn"))),
                ("Occupation", v("occupation")),
                ("Preferred Language", v("preferredLanguage")),
            ]),
            ("Claim Information", [
                ("Employing Entity", v("entity")),
                ("Date Reported", _date(v("dateReported"))),
                ("Weekly Wage", v("weeklyWage")),
                ("Days Per Week", v("daysPerWeek")),
                ("Work Week Type", v("workWeekType").capitalize()),
                ("Employee Work Type", v("employeeWorkType")),
                ("Contract/Agency Employee", _yes_no(v("isContractEmployee", None))),
            ]),
            ("Injury Information", [
                ("Date of Injury", _date(v("dateOfInjury"))),
                ("Time of Injury", _time(v("timeOfInjury"))),
                ("Nature of Injury", v("injuryType").replace("_", " ").capitalize()),
                ("Body Parts Injured", ", ".join(v("bodyParts", []))),
                ("Cause of Injury", v("causeOfInjury")),
                ("Medical Treatment", _yes_no(v("soughtMedicalTreatment", None))),
                ("Treatment Facility", v("facilityName")),
                ("Facility Address", _address(
                    v("facilityAddress"), v("facilityCity"), v("facilityState"), v("facilityZip"))),
                ("Treatment Date", _date(v("treatmentDate"))),
                ("Refused Treatment", _yes_no(v("refusedTreatment", None))),
                ("Resulted in Death", _yes_no(v("resultedInDeath", None))),
            ]),
            ("Evidence", [
                ("Video Available", _yes_no(v("hasVideo", None))),
                ("Video Location", v("videoLocation")),
                ("Witness", _join(v("witnessName"), v("witnessPhone"), sep=", ")),
                ("Second Witness", _join(v("witness2Name"), v("witness2Phone"), sep=", ")),
                ("Third Witness", _join(v("witness3Name"), v("witness3Phone"), sep=", ")),
            ]),
            ("Work Status", [
                ("Losing Time from Work", _yes_no(v("losingTime", None))),
                ("Began Losing Time", _date(v("dateBeganLosingTime"))),
                ("Date Last Worked", _date(v("dateLastWorked"))),
                ("Return Status", v("returnStatus")),
                ("Return Date", _date(v("returnDate"))),
                ("Paid in Full on Date of Injury", _yes_no(v("paidInFull", None))),
                ("Still Being Paid", _yes_no(v("stillBeingPaid", None))),
            ]),
            ("Accident Location", [
                ("Accident Location", _address(
                    v("accidentStreet"), v("accidentCity"), v("accidentState"), v("accidentZip"))),
            ]),
            ("Root Cause", [
                ("Root Cause", v("rootCause")),
                ("Contributing Factors", ", ".join(v("contributingFactors", []))),
                ("Procedures in Place", _yes_no(v("proceduresInPlace", None))),
                ("Procedures Followed", _yes_no(v("proceduresFollowed", None))),
                ("Training Provided", _yes_no(v("trainingProvided", None))),
                ("Training Frequency", v("trainingFrequency")),
                ("Last Training Date", _date(v("lastTrainingDate"))),
                ("Discipline Policy", _yes_no(v("disciplinePolicy", None))),
                ("Discipline Applied", _yes_no(v("disciplineApplied", None))),
                ("Corrective Action", v("correctiveAction")),
            ]),
            ("Investigation", [
                ("Investigator", v("investigatorName")),
                ("Validity Concerns", _yes_no(v("validityConcerns", None))),
                ("Concern Details", v("concernDetails")),
                ("Third Party Involved", _yes_no(v("thirdPartyInvolved", None))),
                ("Third Party Details", v("thirdPartyDetails")),
            ]),
            ("Submitted By", [
                ("Name", v("submitterName")),
                ("Phone", v("submitterPhone")),
                ("Email", v("submitterEmail")),
                ("Additional Comments", v("additionalComments")),
            ]),
        ]

        sections = []
        for title, rows in raw:
            kept = [
                (label, str(value)) for label, value in rows
                if value and value != "N/A"
            ]
            if kept:
                sections.append((title, kept))
        return sections

    def generate_pdf(self, snapshot: ClaimSnapshot, reference_number: str) -> bytes:
        """
        Generate the claim summary PDF.

        Args:
            snapshot: Serialized form captured at submission
            reference_number: Claim reference shown in the header

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()

        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=0.75 * inch,
            leftMargin=0.75 * inch,
            topMargin=0.75 * inch,
            bottomMargin=0.75 * inch,
            title=f"{reference_number} Summary",
        )

        story = []
        story.append(Paragraph(escape(self.company_name.upper()), self._styles['CompanyHeader']))
        story.append(Paragraph(
            "Employer's First Report of Work-Related Injury/Illness",
            self._styles['ReportTitle'],
        ))
        story.append(Paragraph(
            f"Reference: {escape(reference_number)} &nbsp;&nbsp; "
            f"Generated: {datetime.now().strftime('%m/%d/%Y %I:%M %p')} &nbsp;&nbsp; "
            f"Completion: {snapshot.completion_score}%",
            self._styles['Generated'],
        ))
        story.append(Spacer(1, 0.25 * inch))

        for title, rows in self.sections(snapshot):
            story.append(Paragraph(escape(title), self._styles['ClaimSection']))
            table = Table(
                [
                    [Paragraph(f"<b>{escape(label)}:</b>", self._styles['ClaimBody']),
                     Paragraph(escape(value), self._styles['ClaimBody'])]
                    for label, value in rows
                ],
                colWidths=[2.0 * inch, 5.0 * inch],
            )
            table.setStyle(TableStyle([
                ('VALIGN', (0, 0), (-1, -1), 'TOP'),
                ('LINEABOVE', (0, 0), (-1, 0), 0.5, colors.HexColor("#cbd5e1")),
                ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
                ('TOPPADDING', (0, 0), (-1, -1), 2),
            ]))
            story.append(table)

            if title == "Injury Information" and snapshot.value("accidentDescription"):
                story.append(Spacer(1, 0.1 * inch))
                story.append(Paragraph("<b>Accident Description:</b>", self._styles['ClaimBody']))
                story.append(Paragraph(
                    escape(snapshot.value("accidentDescription")).replace("\n", "<br/>"),
                    self._styles['ClaimBody'],
                ))

        if snapshot.value("priorInjuries"):
            story.append(Paragraph("Red Flags / Prior Injuries:", self._styles['RedFlag']))
            story.append(Paragraph(
                escape(snapshot.value("priorInjuries")).replace("\n", "<br/>"),
                self._styles['ClaimBody'],
            ))

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"Generated claim summary PDF for {reference_number} ({len(pdf_bytes)} bytes)")
        return pdf_bytes
