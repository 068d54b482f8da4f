"""
Sale invoice PDF renderer using fpdf2.

Layout, top to bottom: letterhead (logo image or company name), BILL TO and
INVOICE DETAILS blocks, the item table, the TOTAL AMOUNT box, payment terms
with bank details, and a footer on every page. Every amount printed comes from
the stored sale; nothing is re-priced here.
"""
import os
from datetime import datetime
from typing import Optional

from fpdf import FPDF
from fpdf.enums import MethodReturnValue, XPos, YPos
from pydantic import BaseModel

from pos_api.common.currency import format_rupiah_plain
from pos_api.common.dates import APP_TZ, ensure_aware
from pos_api.common.logging import get_logger
from pos_api.pricing.schemas import PricingType
from pos_api.sales.constants import WALK_IN_CUSTOMER_NAME
from pos_api.sales.schemas import SaleInfo, SaleItemInfo

logger = get_logger(__name__)

FOOTER_TEXT = "This is a computer-generated invoice and requires no signature."
PAYMENT_TERMS = "Payment terms: Due upon receipt. Thank you for your business!"

TABLE_HEADERS = ["Item Description", "Quantity", "Price / Unit", "Amount"]
# Share of the printable width taken by each column
COLUMN_RATIOS = [0.45, 0.15, 0.20, 0.20]
LINE_HEIGHT = 5
ROW_MIN_HEIGHT = 10

TEXT_COLOR = (33, 37, 41)
MUTED_COLOR = (108, 117, 125)
ACCENT_FILL = (241, 243, 245)


class InvoiceSettings(BaseModel):
    """Letterhead and payment details printed on every invoice."""
    company_name: str = "YOUR COMPANY"
    company_tagline: str = "Digital Printing Indoor - Outdoor"
    company_contact: str = "Offset & Media Promotion"
    logo_path: str = ""
    bank_name: str = ""
    bank_account_no: str = ""
    bank_account_name: str = ""

    @classmethod
    def from_env(cls) -> "InvoiceSettings":
        defaults = cls()
        return cls(
            company_name=os.environ.get("INVOICE_COMPANY_NAME", defaults.company_name),
            company_tagline=os.environ.get("INVOICE_COMPANY_TAGLINE", defaults.company_tagline),
            company_contact=os.environ.get("INVOICE_COMPANY_CONTACT", defaults.company_contact),
            logo_path=os.environ.get("INVOICE_LOGO_PATH", ""),
            bank_name=os.environ.get("INVOICE_BANK_NAME", ""),
            bank_account_no=os.environ.get("INVOICE_BANK_ACCOUNT_NO", ""),
            bank_account_name=os.environ.get("INVOICE_BANK_ACCOUNT_NAME", ""),
        )


def invoice_number(sale_id) -> str:
    """Sale ID left-padded with zeros to at least six characters."""
    return str(sale_id).rjust(6, "0")


def invoice_filename(sale_id) -> str:
    return f"invoice-{invoice_number(sale_id)}.pdf"


def format_invoice_date(created_at: Optional[str]) -> str:
    """ISO timestamp to "Mon D, YYYY" in local time, e.g. "Mar 5, 2024"."""
    if not created_at:
        return ""
    moment = ensure_aware(datetime.fromisoformat(created_at)).astimezone(APP_TZ)
    return f"{moment:%b} {moment.day}, {moment.year}"


def _format_dimension(value: Optional[float]) -> str:
    if value is None:
        return "0"
    return f"{value:g}"


def describe_item(item: SaleItemInfo) -> str:
    """Product name, optional note and, for size items, the printed dimensions."""
    text = item.productName or "Unknown Product"
    if item.description:
        text = f"{text} - {item.description}"
    if item.pricingType == PricingType.SIZE:
        text = f"{text} ({_format_dimension(item.width)} × {_format_dimension(item.height)} cm)"
    return text


def _safe_text(text: str) -> str:
    """Core PDF fonts only cover latin-1; anything else prints as '?'."""
    return text.encode("latin-1", "replace").decode("latin-1")


class _InvoicePdf(FPDF):
    """FPDF subclass that renders the invoice footer on every page."""

    def footer(self) -> None:
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(*MUTED_COLOR)
        self.cell(0, 5, FOOTER_TEXT, align="C")


class InvoiceRenderer:
    """Renders a saved sale into invoice PDF bytes."""

    def __init__(self, settings: Optional[InvoiceSettings] = None) -> None:
        self._settings = settings or InvoiceSettings.from_env()

    def render(self, sale: SaleInfo) -> bytes:
        pdf = _InvoicePdf()
        pdf.set_auto_page_break(auto=True, margin=25)
        pdf.add_page()
        pdf.set_text_color(*TEXT_COLOR)

        self._render_letterhead(pdf)
        self._render_parties(pdf, sale)
        self._render_items_table(pdf, sale)
        self._render_total(pdf, sale)
        self._render_payment_details(pdf)

        return bytes(pdf.output())

    def _render_letterhead(self, pdf: FPDF) -> None:
        settings = self._settings
        top = pdf.get_y()
        logo_path = settings.logo_path
        text_x = pdf.l_margin

        if logo_path and os.path.isfile(logo_path):
            try:
                pdf.image(logo_path, x=pdf.l_margin, y=top, h=20)
                text_x = pdf.l_margin + 50
                pdf.set_xy(text_x, top + 4)
            except (OSError, RuntimeError, ValueError) as e:
                logger.warning("invoice_logo_unreadable", path=logo_path, error=str(e))
                self._render_company_name(pdf)
        else:
            self._render_company_name(pdf)

        pdf.set_font("Helvetica", "", 10)
        pdf.cell(0, LINE_HEIGHT, _safe_text(settings.company_tagline),
                 new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_x(text_x)
        pdf.set_font("Helvetica", "", 9)
        pdf.cell(0, LINE_HEIGHT, _safe_text(settings.company_contact),
                 new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        pdf.set_y(max(pdf.get_y(), top + 24))
        self._render_rule(pdf)

    def _render_company_name(self, pdf: FPDF) -> None:
        pdf.set_font("Helvetica", "B", 16)
        pdf.cell(0, 8, _safe_text(self._settings.company_name),
                 new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    @staticmethod
    def _render_rule(pdf: FPDF) -> None:
        y = pdf.get_y() + 2
        pdf.set_draw_color(*TEXT_COLOR)
        pdf.line(pdf.l_margin, y, pdf.w - pdf.r_margin, y)
        pdf.set_y(y + 4)

    def _render_parties(self, pdf: FPDF, sale: SaleInfo) -> None:
        top = pdf.get_y()
        half = (pdf.w - pdf.l_margin - pdf.r_margin) / 2
        details_x = pdf.l_margin + half

        customer = sale.customer
        pdf.set_font("Helvetica", "B", 12)
        pdf.cell(half, 7, "BILL TO:", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(half, 6, _safe_text(customer.name or WALK_IN_CUSTOMER_NAME),
                 new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font("Helvetica", "", 10)
        if customer.phone:
            pdf.cell(half, LINE_HEIGHT, _safe_text(f"Phone: {customer.phone}"),
                     new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        if customer.email:
            pdf.cell(half, LINE_HEIGHT, _safe_text(f"Email: {customer.email}"),
                     new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        bill_to_bottom = pdf.get_y()

        pdf.set_xy(details_x, top)
        pdf.set_font("Helvetica", "B", 12)
        pdf.cell(half, 7, "INVOICE DETAILS:", new_x=XPos.LEFT, new_y=YPos.NEXT)
        pdf.set_font("Helvetica", "", 10)
        for label, value in (
            ("Invoice #", invoice_number(sale.id)),
            ("Date", format_invoice_date(sale.createdAt)),
        ):
            pdf.set_x(details_x)
            pdf.cell(35, LINE_HEIGHT, label)
            pdf.cell(half - 35, LINE_HEIGHT, _safe_text(value), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        pdf.set_y(max(bill_to_bottom, pdf.get_y()) + 4)

    def _render_items_table(self, pdf: FPDF, sale: SaleInfo) -> None:
        content_width = pdf.w - pdf.l_margin - pdf.r_margin
        widths = [content_width * ratio for ratio in COLUMN_RATIOS]
        aligns = ["L", "C", "C", "R"]

        self._render_rule(pdf)
        pdf.set_font("Helvetica", "B", 10)
        for width, header, align in zip(widths, TABLE_HEADERS, aligns):
            pdf.cell(width, 7, header, align=align)
        pdf.ln(7)
        self._render_rule(pdf)

        for item in sale.items:
            description = _safe_text(describe_item(item))
            pdf.set_font("Helvetica", "", 10)
            lines = pdf.multi_cell(widths[0], LINE_HEIGHT, description,
                                   dry_run=True, output=MethodReturnValue.LINES)
            row_height = max(ROW_MIN_HEIGHT, len(lines) * LINE_HEIGHT + 3)
            if pdf.get_y() + row_height > pdf.page_break_trigger:
                pdf.add_page()

            row_top = pdf.get_y()
            pdf.multi_cell(widths[0], LINE_HEIGHT, description, new_x=XPos.RIGHT, new_y=YPos.TOP)
            pdf.set_font("Helvetica", "", 9)
            pdf.cell(widths[1], LINE_HEIGHT, str(item.quantity or 1), align="C")
            pdf.cell(widths[2], LINE_HEIGHT, format_rupiah_plain(item.displayUnitPrice), align="C")
            pdf.cell(widths[3], LINE_HEIGHT, format_rupiah_plain(item.itemTotal), align="R")
            pdf.set_xy(pdf.l_margin, row_top + row_height)

        pdf.ln(4)

    @staticmethod
    def _render_total(pdf: FPDF, sale: SaleInfo) -> None:
        box_width = 115
        box_height = 18
        if pdf.get_y() + box_height + 30 > pdf.page_break_trigger:
            pdf.add_page()

        x = pdf.w - pdf.r_margin - box_width
        y = pdf.get_y()
        pdf.set_fill_color(*ACCENT_FILL)
        pdf.rect(x, y, box_width, box_height, style="F")

        pdf.set_xy(x + 5, y + 4)
        pdf.set_font("Helvetica", "B", 12)
        pdf.cell(45, 10, "TOTAL AMOUNT")
        pdf.set_font("Helvetica", "B", 16)
        pdf.cell(box_width - 55, 10, format_rupiah_plain(sale.totalPrice), align="R")
        pdf.set_xy(pdf.l_margin, y + box_height + 8)

    def _render_payment_details(self, pdf: FPDF) -> None:
        settings = self._settings
        pdf.set_font("Helvetica", "", 9)
        pdf.cell(0, LINE_HEIGHT, PAYMENT_TERMS, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        bank_lines = [
            (label, value) for label, value in (
                ("Bank", settings.bank_name),
                ("Account No", settings.bank_account_no),
                ("Account Name", settings.bank_account_name),
            ) if value
        ]
        if not bank_lines:
            return

        pdf.ln(3)
        pdf.set_font("Helvetica", "B", 9)
        pdf.cell(0, LINE_HEIGHT, "Payment Details:", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font("Helvetica", "", 9)
        for label, value in bank_lines:
            pdf.cell(0, LINE_HEIGHT, _safe_text(f"{label}: {value}"),
                     new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def render_sale_invoice(sale: SaleInfo, settings: Optional[InvoiceSettings] = None) -> bytes:
    """Render a saved sale as invoice PDF bytes."""
    return InvoiceRenderer(settings).render(sale)
