# naga_health/services/documents.py
"""Printable documents for completed consults and the LGU trend workbook.

PDFs are drawn with reportlab's canvas on A4; the workbook is written with
pandas (openpyxl engine).
"""
import io
import logging
from datetime import date
from typing import Callable, Iterable, Optional

import pandas as pd
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from naga_health.models.booking import Booking, BookingStatus, CompletedBooking
from naga_health.services import projections
from naga_health.services.errors import BookingValidationError, InvalidTransitionError
from naga_health.services.lifecycle import describe_state
from naga_health.utils.dates import calculate_age

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
LEFT = 56
RIGHT = PAGE_WIDTH - 56
CENTER = PAGE_WIDTH / 2
SIGNATURE_X = 450

SIGNATORY = ("DR. JOHN BONGAT, MD", "Medical Officer IV", "License No: 0123456", "PTR No: 9876543")

DOCUMENT_KINDS = ("certificate", "prescription", "lab-request")


def _top(offset: float) -> float:
    return PAGE_HEIGHT - offset


def _wrapped(pdf: canvas.Canvas, text: str, x: float, y: float, font: str = "Helvetica", size: int = 11) -> float:
    """Draw wrapped text and return the y below the last line."""
    for line in simpleSplit(text, font, size, RIGHT - x):
        pdf.drawString(x, y, line)
        y -= size + 4
    return y


def _require_completed(booking: Booking, document: str) -> CompletedBooking:
    if booking.status != BookingStatus.COMPLETED:
        raise InvalidTransitionError(booking.id, f"issue a {document} for", describe_state(booking))
    return booking


def document_filename(title: str, booking: Booking) -> str:
    return f"{'_'.join(title.split())}_{'_'.join(booking.patient_name.split())}.pdf"


def _standard_pdf(title: str, booking: CompletedBooking, body: Callable[[canvas.Canvas], None]) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(title)

    facility_name = booking.facility_name or "Naga Health Facility"
    issued = booking.completion_date or booking.date
    age = calculate_age(booking.patient_birth_date)

    # Header
    pdf.setFont("Helvetica", 10)
    pdf.drawCentredString(CENTER, _top(42), "Republic of the Philippines")
    pdf.drawCentredString(CENTER, _top(56), "Province of Camarines Sur")
    pdf.drawCentredString(CENTER, _top(70), "CITY HEALTH OFFICE, NAGA CITY")
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawCentredString(CENTER, _top(90), facility_name.upper())
    pdf.setLineWidth(0.5)
    pdf.line(LEFT, _top(102), RIGHT, _top(102))

    pdf.drawCentredString(CENTER, _top(136), title)
    pdf.setFont("Helvetica", 10)
    pdf.drawRightString(RIGHT, _top(156), f"Date Issued: {issued}")

    # Patient block
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(LEFT, _top(184), "PATIENT INFORMATION")
    pdf.setFont("Helvetica", 10)
    pdf.drawString(LEFT, _top(204), f"Name: {booking.patient_name.upper()}")
    pdf.drawString(LEFT, _top(220), f"Age/Sex: {age if age is not None else '-'} / {booking.patient_sex}")
    pdf.drawString(LEFT, _top(236), f"Address: Brgy. {booking.patient_barangay}, Naga City")
    pdf.line(LEFT, _top(252), RIGHT, _top(252))

    body(pdf)

    # Signature
    footer_y = 120
    pdf.line(SIGNATURE_X - 85, footer_y + 14, SIGNATURE_X + 85, footer_y + 14)
    pdf.setFont("Courier-Oblique", 8)
    pdf.drawCentredString(SIGNATURE_X, footer_y + 22, "[DIGITALLY SIGNED]")
    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawCentredString(SIGNATURE_X, footer_y, SIGNATORY[0])
    pdf.setFont("Helvetica", 9)
    for i, line in enumerate(SIGNATORY[1:], start=1):
        pdf.drawCentredString(SIGNATURE_X, footer_y - 13 * i, line)

    pdf.showPage()
    pdf.save()
    buffer.seek(0)
    return buffer.getvalue()


def medical_certificate_pdf(booking: Booking) -> bytes:
    completed = _require_completed(booking, "medical certificate")

    def body(pdf: canvas.Canvas) -> None:
        pdf.setFont("Helvetica", 11)
        pdf.drawString(LEFT, _top(296), "TO WHOM IT MAY CONCERN:")
        y = _wrapped(
            pdf,
            "This is to certify that the above-named patient was seen and examined at this facility "
            f"on {completed.completion_date or completed.date} with the following clinical findings:",
            LEFT,
            _top(322),
        )
        pdf.setFont("Helvetica-Bold", 11)
        pdf.drawString(LEFT, y - 16, "DIAGNOSIS:")
        pdf.setFont("Helvetica", 11)
        pdf.drawString(LEFT + 80, y - 16, completed.diagnosis or "General Consultation / Routine Check-up")

        pdf.setFont("Helvetica-Bold", 11)
        pdf.drawString(LEFT, y - 56, "RECOMMENDATIONS:")
        pdf.setFont("Helvetica", 11)
        y = _wrapped(
            pdf,
            completed.non_pharma or "Patient is advised rest and to follow the prescribed medication regimen.",
            LEFT,
            y - 76,
        )
        _wrapped(
            pdf,
            "This certification is being issued upon request of the patient for whatever "
            "medical/legal purpose it may serve.",
            LEFT,
            y - 30,
        )

    logger.info(f"📄 Medical certificate issued for booking {completed.id}")
    return _standard_pdf("MEDICAL CERTIFICATE", completed, body)


def prescription_pdf(booking: Booking) -> bytes:
    completed = _require_completed(booking, "prescription")

    def body(pdf: canvas.Canvas) -> None:
        pdf.setFont("Helvetica-Bold", 24)
        pdf.drawString(LEFT, _top(300), "Rx")

        y = _top(336)
        if completed.prescriptions:
            for drug in completed.prescriptions:
                pdf.setFont("Helvetica-Bold", 11)
                pdf.drawString(LEFT + 28, y, f"{drug.drug_name} {drug.strength}".strip())
                pdf.drawRightString(RIGHT, y, f"Qty: {drug.quantity}")
                pdf.setFont("Helvetica", 9)
                pdf.drawString(LEFT + 28, y - 14, f"Sig: {drug.dose} {drug.frequency} for {drug.duration}")
                y -= 44
        else:
            pdf.setFont("Helvetica", 11)
            pdf.drawString(LEFT + 28, y, "No medications prescribed.")
            y -= 44

        if completed.non_pharma:
            pdf.setFont("Helvetica-Bold", 11)
            pdf.drawString(LEFT, y - 10, "Special Instructions:")
            pdf.setFont("Helvetica", 11)
            _wrapped(pdf, completed.non_pharma, LEFT, y - 30)

    logger.info(f"💊 Prescription issued for booking {completed.id}")
    return _standard_pdf("PRESCRIPTION (Rx)", completed, body)


def lab_request_pdf(booking: Booking) -> bytes:
    completed = _require_completed(booking, "laboratory request")
    labs = [lab.strip() for lab in (completed.requested_labs or "Routine Examination").split(",") if lab.strip()]

    def body(pdf: canvas.Canvas) -> None:
        pdf.setFont("Helvetica-Bold", 11)
        pdf.drawString(LEFT, _top(296), "TEST(S) REQUESTED:")
        pdf.setFont("Helvetica", 11)
        y = _top(322)
        for lab in labs:
            pdf.rect(LEFT, y - 2, 10, 10)
            pdf.drawString(LEFT + 18, y, lab)
            y -= 24

        pdf.setFont("Helvetica-Bold", 11)
        pdf.drawString(LEFT, y - 20, "CLINICAL INDICATION:")
        pdf.setFont("Helvetica", 11)
        pdf.drawString(LEFT, y - 40, completed.diagnosis or "For further clinical evaluation")
        pdf.setFont("Helvetica", 9)
        pdf.drawString(
            LEFT,
            y - 70,
            "Note: Fasting may be required for blood chemistry. Please present this at the laboratory counter.",
        )

    logger.info(f"🧪 Laboratory request issued for booking {completed.id}")
    return _standard_pdf("LABORATORY REQUEST", completed, body)


RENDERERS = {
    "certificate": ("MEDICAL CERTIFICATE", medical_certificate_pdf),
    "prescription": ("PRESCRIPTION (Rx)", prescription_pdf),
    "lab-request": ("LABORATORY REQUEST", lab_request_pdf),
}


# -------------------------------
# LGU surveillance workbook
# -------------------------------
def surveillance_frames(bookings: Iterable[Booking], today: Optional[date] = None):
    bookings = list(bookings)
    consults = projections.completed_consults(bookings)
    if not consults:
        raise BookingValidationError("completedConsults", "No data available to export.")

    aggregate = projections.barangay_diagnosis_aggregate(bookings)
    updated = (today or date.today()).isoformat()

    summary_rows = [
        {"Metric": "Total Consultations", "Value": len(consults)},
        {"Metric": "Active Barangays Reporting", "Value": len(aggregate)},
        {"Metric": "City Alert Level", "Value": projections.city_alert_level(bookings)},
        {"Metric": "", "Value": ""},
        {"Metric": "TOP 5 DIAGNOSES", "Value": ""},
    ]
    summary_rows += [{"Metric": diag, "Value": count} for diag, count in projections.top_diagnoses(bookings)]

    trend_rows = [
        {"Barangay": brgy, "Diagnosis": diag, "Case Count": count, "Last Updated": updated}
        for brgy, diagnoses in aggregate.items()
        for diag, count in diagnoses.items()
    ]
    return pd.DataFrame(summary_rows), pd.DataFrame(trend_rows)


def surveillance_workbook(bookings: Iterable[Booking], today: Optional[date] = None) -> bytes:
    summary, trends = surveillance_frames(bookings, today)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        summary.to_excel(writer, sheet_name="City Overview", index=False)
        trends.to_excel(writer, sheet_name="Barangay Trends", index=False)
    buffer.seek(0)
    logger.info(f"📊 Exported surveillance workbook ({len(trends)} barangay/diagnosis rows)")
    return buffer.getvalue()
