#!/usr/bin/env python3
"""
PDF rendering of the monthly treasury report
Draws a ReportDocument onto A4 pages with reportlab.

Usage:
    python3 -m treasury.pdf_report --month 2024-01
    python3 -m treasury.pdf_report --month 2024-01 --output ~/planilla.pdf
"""

import argparse
import logging
import sys
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from treasury.reports import ReportDocument, ReportRow, ReportSection

logger = logging.getLogger(__name__)

PAGE_W, PAGE_H = A4

# Layout constants
MARGIN = 14*mm
CONTENT_W = PAGE_W - 2*MARGIN
AMOUNT_COL_W = 40*mm
ROW_H = 4.5*mm
SECTION_H = 6*mm
BOTTOM = 15*mm
SIGNATURE_Y = 30*mm
SIGNATURE_SPACE = 40*mm  # content must end above this on the last page

HEADER_FILL = colors.Color(245/255, 245/255, 245/255)
HEADER_STROKE = colors.Color(220/255, 220/255, 220/255)
GROUP_FILL = colors.Color(252/255, 252/255, 252/255)
ROW_LINE = colors.Color(230/255, 230/255, 230/255)
TOTAL_STROKE = colors.Color(50/255, 50/255, 50/255)


def _new_page(c: canvas.Canvas) -> float:
    c.showPage()
    return PAGE_H - 15*mm


def _ensure_space(c: canvas.Canvas, y: float, needed: float) -> float:
    if y - needed < BOTTOM:
        return _new_page(c)
    return y


def _draw_header(c: canvas.Canvas, document: ReportDocument) -> float:
    c.setFont("Times-Bold", 16)
    c.setFillColor(colors.black)
    c.drawCentredString(PAGE_W / 2, PAGE_H - 15*mm, document.title)

    c.setFont("Helvetica", 10)
    c.drawString(MARGIN, PAGE_H - 25*mm, f"Mes de: {document.month_name}")
    c.drawString(75*mm, PAGE_H - 25*mm, f"de: {document.year}")
    c.drawString(120*mm, PAGE_H - 25*mm, f"Iglesia de: {document.organization}")
    return PAGE_H - 32*mm


def _section_header(c: canvas.Canvas, y: float, title: str) -> float:
    c.setFillColor(HEADER_FILL)
    c.setStrokeColor(HEADER_STROKE)
    c.rect(MARGIN, y - SECTION_H, CONTENT_W, SECTION_H, fill=1, stroke=1)
    c.setFillColor(colors.black)
    c.setFont("Times-BoldItalic", 11)
    c.drawCentredString(PAGE_W / 2, y - SECTION_H + 1.6*mm, title)
    return y - SECTION_H


def _group_header(c: canvas.Canvas, y: float, title: str) -> float:
    c.setFillColor(GROUP_FILL)
    c.setStrokeColor(ROW_LINE)
    c.setLineWidth(0.1)
    c.rect(MARGIN, y - ROW_H, CONTENT_W, ROW_H, fill=1, stroke=1)
    c.setFillColor(colors.black)
    c.setFont("Helvetica-Bold", 8)
    c.drawCentredString(PAGE_W / 2, y - ROW_H + 1.3*mm, title)
    return y - ROW_H


def _draw_rows(c: canvas.Canvas, y: float, rows) -> float:
    for row in rows:
        y = _ensure_space(c, y, ROW_H)
        _draw_row(c, y, row)
        y -= ROW_H
    return y


def _draw_row(c: canvas.Canvas, y: float, row: ReportRow):
    c.setStrokeColor(ROW_LINE)
    c.setLineWidth(0.1)
    c.rect(MARGIN, y - ROW_H, CONTENT_W, ROW_H, fill=0, stroke=1)
    c.line(PAGE_W - MARGIN - AMOUNT_COL_W, y, PAGE_W - MARGIN - AMOUNT_COL_W, y - ROW_H)

    c.setFillColor(colors.black)
    c.setFont("Helvetica", 8)
    c.drawString(MARGIN + 1*mm, y - ROW_H + 1.3*mm, row.label)
    if row.amount_text:
        c.drawRightString(PAGE_W - MARGIN - 1*mm, y - ROW_H + 1.3*mm, row.amount_text)


def _total_box(c: canvas.Canvas, y: float, label: str, amount_text: str,
               font: str = "Helvetica-BoldOblique", size: int = 9) -> float:
    y = _ensure_space(c, y, SECTION_H)
    c.setStrokeColor(TOTAL_STROKE)
    c.setLineWidth(0.5)
    c.rect(MARGIN, y - SECTION_H, CONTENT_W, SECTION_H, fill=0, stroke=1)
    c.setFillColor(colors.black)
    c.setFont(font, size)
    c.drawString(MARGIN + 2*mm, y - SECTION_H + 2*mm, label)
    c.drawRightString(PAGE_W - MARGIN - 2*mm, y - SECTION_H + 2*mm, amount_text)
    return y - SECTION_H


def _draw_section(c: canvas.Canvas, y: float, section: ReportSection) -> float:
    y = _ensure_space(c, y, SECTION_H + ROW_H)
    y = _section_header(c, y, section.title)
    y = _draw_rows(c, y, section.rows)

    for sub in section.subsections:
        y = _ensure_space(c, y, 2 * ROW_H)
        y = _group_header(c, y, sub.title)
        y = _draw_rows(c, y, sub.rows)
        y = _total_box(c, y, sub.total_label, sub.total_amount_text, font="Helvetica-Bold", size=8)

    y = _total_box(c, y, section.total_label, section.total_amount_text)
    return y - 3*mm


def _draw_signatures(c: canvas.Canvas, document: ReportDocument):
    treasurer, pastor = document.signatures
    c.setStrokeColor(colors.black)
    c.setLineWidth(0.5)
    c.setFillColor(colors.black)

    c.line(25*mm, SIGNATURE_Y, 85*mm, SIGNATURE_Y)
    c.setFont("Helvetica", 9)
    c.drawCentredString(55*mm, SIGNATURE_Y - 4*mm, treasurer)

    c.setFont("Helvetica", 8)
    c.drawCentredString(105*mm, SIGNATURE_Y - 4*mm, document.stamp_label)

    c.line(125*mm, SIGNATURE_Y, 185*mm, SIGNATURE_Y)
    c.setFont("Helvetica", 9)
    c.drawCentredString(155*mm, SIGNATURE_Y - 4*mm, pastor)


def render_report_pdf(document: ReportDocument, output: str) -> str:
    """
    Draw the report to a PDF file.

    Args:
        document: Result of reports.compose_monthly_report()
        output: Destination path

    Returns:
        Path of the written file
    """
    output_path = Path(output).expanduser()
    output_path.parent.mkdir(parents=True, exist_ok=True)

    c = canvas.Canvas(str(output_path), pagesize=A4)
    c.setTitle(f"{document.title} {document.month}")

    y = _draw_header(c, document)
    for section in document.sections:
        y = _draw_section(c, y, section)

    if y < SIGNATURE_SPACE:
        _new_page(c)
    _draw_signatures(c, document)

    c.save()
    logger.info(f"Report saved to: {output_path}")
    return str(output_path)


def default_report_path(month: str) -> Path:
    return Path.home() / "Documents" / "Tesoreria" / f"Planilla_Tesoreria_{month}.pdf"


def main():
    from treasury.config import get_user_config
    from treasury.reports import compose_monthly_report
    from treasury.store import load_catalog, load_transactions

    parser = argparse.ArgumentParser(description="Generate the monthly treasury PDF")
    parser.add_argument("--month", "-m", required=True, help="Month (YYYY-MM)")
    parser.add_argument("--output", "-o", type=str, help="Output PDF path")
    parser.add_argument("--currency", "-c", help="Only include this currency")
    args = parser.parse_args()

    config = get_user_config()

    try:
        _, movement_types = load_catalog(config["catalog_file"])
        transactions = load_transactions(config["transactions_file"])
        document = compose_monthly_report(
            transactions, movement_types, args.month,
            expense_groups=config["expense_groups"],
            organization=config["organization"],
            currency=args.currency.upper() if args.currency else None,
            default_currency=config["default_currency"],
        )
    except (OSError, KeyError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if document.transaction_count == 0:
        print(f"No transactions for {args.month}")
        sys.exit(1)

    output = args.output or str(default_report_path(args.month))
    print(f"✓ Report saved to: {render_report_pdf(document, output)}")


if __name__ == "__main__":
    main()
