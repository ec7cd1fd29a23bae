"""
Report Service - printable clinical record for a stored prescription
Renders an A4 PDF with pymupdf: physician, patient, diagnosis, medicine
regimen table and the OCR source text.
"""
import logging
import math
from datetime import date
from typing import Optional

import pymupdf

from rxscan.models.prescription import PrescriptionAnalysis, format_analysis_date
from rxscan.services.storage_service import StorageService, storage_service

logger = logging.getLogger(__name__)

MARGIN = 50
HEADER_HEIGHT = 120
ROW_HEIGHT = 25
CELL_PADDING = 5
COLUMN_SHARES = (0.4, 0.2, 0.2, 0.2)
CELL_FONTS = ("hebo", "helv", "helv", "helv")
LINE_SPACING = 1.4

INDIGO = (0.118, 0.227, 0.541)
SLATE = (0.278, 0.333, 0.412)
INK = (0.059, 0.090, 0.165)
MUTED = (0.580, 0.639, 0.722)
STRIPE = (0.973, 0.980, 0.988)
WHITE = (1, 1, 1)


def _text_height(text: str, box_width: float, fontname: str, fontsize: float) -> float:
    """Rough height of text wrapped to box_width"""
    length = pymupdf.get_text_length(text or "", fontname=fontname, fontsize=fontsize)
    lines = max(1, math.ceil(length / max(box_width, 1)))
    return lines * fontsize * LINE_SPACING


def _write_box(page: pymupdf.Page, rect: pymupdf.Rect, text: str, fontsize: float,
               fontname: str = "helv", color=INK, attempts: int = 4) -> float:
    """
    Write wrapped text into rect, growing it downward until the text fits.
    Returns the bottom edge actually used.
    """
    for _ in range(attempts):
        # A negative result means nothing was written and that much height was missing
        spare = page.insert_textbox(rect, text or "", fontsize=fontsize, fontname=fontname, color=color)
        if spare >= 0:
            return rect.y1
        rect = pymupdf.Rect(rect.x0, rect.y0, rect.x1, rect.y1 - spare + 1)
    logger.warning(f"Could not fit report text in {rect}: {(text or '')[:40]!r}")
    return rect.y1


class ReportService:
    """Builds and stores the clinical record PDF"""

    def __init__(self, storage: StorageService = None):
        self.storage = storage or storage_service

    def render(
        self,
        record_id: str,
        analysis: PrescriptionAnalysis,
        extracted_text: str = "",
        patient_name: Optional[str] = None,
        issued: Optional[date] = None
    ) -> bytes:
        doc = pymupdf.open()
        doc.set_metadata({"title": "Clinical Prescription Record", "author": "Sehat Safe"})
        width, height = pymupdf.paper_size("a4")
        page = doc.new_page(width=width, height=height)

        # Header band
        page.draw_rect(pymupdf.Rect(0, 0, width, HEADER_HEIGHT), color=None, fill=INDIGO)
        page.insert_text((MARGIN, 60), "SEHAT SAFE", fontsize=28, fontname="hebo", color=WHITE)
        page.insert_text((MARGIN, 88), "Intelligent Clinical Documentation", fontsize=12, color=WHITE)
        issued_on = format_analysis_date(issued or date.today())
        page.insert_text((width - 200, 55), f"Record ID: {record_id[:8].upper()}", fontsize=10, color=WHITE)
        page.insert_text((width - 200, 70), f"Date Issued: {issued_on}", fontsize=10, color=WHITE)

        y = 160
        page.insert_text((MARGIN, y), "Official Prescription Record", fontsize=20, fontname="hebo", color=INK)
        y += 40

        # Physician and patient
        column_two = width / 2 + 20
        page.insert_text((MARGIN, y), "ATTENDING PHYSICIAN", fontsize=10, fontname="hebo", color=SLATE)
        name_box = pymupdf.Rect(MARGIN, y + 5, column_two - 20,
                                y + 5 + _text_height(analysis.doctor_name, column_two - 20 - MARGIN, "helv", 14))
        name_bottom = _write_box(page, name_box, analysis.doctor_name, fontsize=14)
        page.insert_text((column_two, y), "PATIENT INFORMATION", fontsize=10, fontname="hebo", color=SLATE)
        page.insert_text((column_two, y + 18), patient_name or "Registered Patient", fontsize=14, color=INK)
        page.insert_text((column_two, y + 34), f"Encounter Date: {analysis.date}", fontsize=10, color=MUTED)
        y = max(y + 70, name_bottom + 20)

        # Diagnosis
        page.insert_text((MARGIN + 15, y + 20), "PRIMARY CLINICAL IMPRESSION", fontsize=10, fontname="hebo", color=INDIGO)
        text_width = width - 2 * MARGIN - 30
        inner = pymupdf.Rect(MARGIN + 15, y + 28, width - MARGIN - 15,
                             y + 28 + _text_height(analysis.diagnosis, text_width, "helv", 14))
        box_bottom = _write_box(page, inner, analysis.diagnosis, fontsize=14) + 12
        page.draw_rect(pymupdf.Rect(MARGIN, y, width - MARGIN, box_bottom), color=MUTED, fill=STRIPE, overlay=False)
        y = box_bottom + 30

        # Regimen table
        page.insert_text((MARGIN, y), "Prescribed Regimen", fontsize=16, fontname="hebo", color=INK)
        table_width = width - 2 * MARGIN
        columns = []
        offset = MARGIN
        for share in COLUMN_SHARES:
            columns.append((offset, table_width * share))
            offset += table_width * share

        top = self._table_header(page, y + 10, columns, width)

        for i, medicine in enumerate(analysis.medicines):
            cells = (medicine.name, medicine.dosage, medicine.frequency, medicine.duration)
            row_height = max(
                ROW_HEIGHT,
                max(_text_height(value, w - 2 * CELL_PADDING, font, 11)
                    for value, (_, w), font in zip(cells, columns, CELL_FONTS)) + 2 * CELL_PADDING
            )
            if top + row_height > height - 100:
                page = doc.new_page(width=width, height=height)
                top = self._table_header(page, MARGIN, columns, width)

            bottom = top + row_height
            for value, (start, w), font in zip(cells, columns, CELL_FONTS):
                cell = pymupdf.Rect(start + CELL_PADDING, top + CELL_PADDING,
                                    start + w - CELL_PADDING, top + row_height)
                bottom = max(bottom, _write_box(page, cell, value, fontsize=11, fontname=font))
            if i % 2 == 0:
                page.draw_rect(pymupdf.Rect(MARGIN, top, width - MARGIN, bottom), color=None, fill=STRIPE, overlay=False)
            top = bottom
        y = top

        # Source text
        if extracted_text.strip():
            y += 20
            if y > height - 150:
                page = doc.new_page(width=width, height=height)
                y = MARGIN
            page.insert_text((MARGIN, y), "Original Digital OCR Source", fontsize=12, fontname="hebo", color=SLATE)
            page.insert_textbox(
                pymupdf.Rect(MARGIN, y + 10, width - MARGIN, height - MARGIN),
                extracted_text, fontsize=9, color=MUTED
            )

        content = doc.tobytes()
        doc.close()
        return content

    @staticmethod
    def _table_header(page: pymupdf.Page, top: float, columns, page_width: float) -> float:
        """Draw the regimen column titles; returns the top of the first row"""
        page.draw_rect(pymupdf.Rect(MARGIN, top, page_width - MARGIN, top + ROW_HEIGHT), color=None, fill=STRIPE)
        for (start, _), title in zip(columns, ("MEDICATION", "DOSAGE", "FREQUENCY", "DURATION")):
            page.insert_text((start + CELL_PADDING, top + 16), title, fontsize=10, fontname="hebo", color=SLATE)
        return top + ROW_HEIGHT

    def generate(
        self,
        record_id: str,
        analysis: PrescriptionAnalysis,
        extracted_text: str = "",
        patient_name: Optional[str] = None
    ) -> str:
        """Render and store the record; returns its URL"""
        content = self.render(record_id, analysis, extracted_text, patient_name)
        reference = self.storage.store_blob(content, f"clinical_record_{record_id}.pdf")
        logger.info(f"Clinical record generated: {reference.url}")
        return reference.url


report_service = ReportService()
