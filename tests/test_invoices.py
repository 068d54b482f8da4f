"""
Tests for invoice rendering and download.
"""
import zlib
from datetime import datetime

import pytest

from pos_api.common.dates import APP_TZ
from pos_api.invoices.renderer import (
    InvoiceSettings,
    describe_item,
    format_invoice_date,
    invoice_filename,
    invoice_number,
    render_sale_invoice,
)
from pos_api.sales.schemas import CustomerSummary, SaleInfo, SaleItemInfo


def _extract_pdf_text(pdf_bytes: bytes) -> str:
    """Decompress FlateDecode streams in *pdf_bytes* and return all text.

    fpdf2 compresses page content with zlib, so each ``stream ... endstream``
    block is inflated and decoded; good enough to look for printed strings.
    """
    texts = [pdf_bytes.decode("latin-1")]
    start_marker = b"stream\n"
    end_marker = b"\nendstream"
    idx = 0
    while True:
        s = pdf_bytes.find(start_marker, idx)
        if s == -1:
            break
        s += len(start_marker)
        e = pdf_bytes.find(end_marker, s)
        if e == -1:
            break
        try:
            texts.append(zlib.decompress(pdf_bytes[s:e]).decode("latin-1", errors="replace"))
        except zlib.error:
            pass
        idx = e + len(end_marker)
    return "\n".join(texts)


@pytest.fixture
def settings():
    return InvoiceSettings(
        company_name="Test Printing",
        company_tagline="Digital Printing Indoor - Outdoor",
        company_contact="Offset & Media Promotion",
        bank_name="Test Bank",
        bank_account_no="1234567890",
        bank_account_name="Test Owner",
    )


@pytest.fixture
def sale():
    return SaleInfo(
        id="42",
        customerId=None,
        customer=CustomerSummary(name="Walk-in Customer"),
        totalPrice=147000,
        createdAt=APP_TZ.localize(datetime(2024, 3, 5, 9, 30, 0)).isoformat(),
        items=[
            SaleItemInfo(
                id="item-1", saleId="42", productId="p-sticker", productName="Sticker",
                pricingType="quantity", quantity=3, pricePerUnit=15000, costPrice=5000,
                itemTotal=45000, displayUnitPrice=15000
            ),
            SaleItemInfo(
                id="item-2", saleId="42", productId="p-banner", productName="Banner",
                pricingType="size", quantity=3, width=10, height=10, pricePerUnit=337,
                itemTotal=102000, displayUnitPrice=34000
            ),
        ],
    )


def test_invoice_number_is_zero_padded():
    assert invoice_number(123) == "000123"
    assert invoice_number("A1B2C3D4") == "A1B2C3D4"
    assert invoice_filename(123) == "invoice-000123.pdf"


def test_format_invoice_date():
    assert format_invoice_date("2024-03-05T09:30:00+07:00") == "Mar 5, 2024"
    assert format_invoice_date(None) == ""


def test_describe_size_item(sale):
    banner = sale.items[1]
    assert describe_item(banner) == "Banner (10 × 10 cm)"

    noted = banner.model_copy(update={"description": "Front door", "width": 12.5})
    assert describe_item(noted) == "Banner - Front door (12.5 × 10 cm)"


def test_describe_quantity_item(sale):
    assert describe_item(sale.items[0]) == "Sticker"


def test_render_invoice(sale, settings):
    pdf_bytes = render_sale_invoice(sale, settings)

    assert pdf_bytes.startswith(b"%PDF")
    text = _extract_pdf_text(pdf_bytes)
    for expected in (
        "Test Printing",
        "BILL TO:",
        "Walk-in Customer",
        "INVOICE DETAILS:",
        "000042",
        "Mar 5, 2024",
        "Item Description",
        "Price / Unit",
        "Rp 34.000",
        "Rp 102.000",
        "TOTAL AMOUNT",
        "Rp 147.000",
        "Due upon receipt. Thank you for your business!",
        "Account No: 1234567890",
        "This is a computer-generated invoice and requires no signature.",
    ):
        assert expected in text, expected


def test_render_invoice_without_bank_details(sale):
    pdf_bytes = render_sale_invoice(sale, InvoiceSettings())

    text = _extract_pdf_text(pdf_bytes)
    assert "YOUR COMPANY" in text
    assert "Payment Details:" not in text


def test_render_invoice_with_customer_contact(sale, settings):
    sale = sale.model_copy(update={
        "customer": CustomerSummary(id="c1", name="Budi", phone="0812", email="budi@example.com")
    })

    text = _extract_pdf_text(render_sale_invoice(sale, settings))

    assert "Budi" in text
    assert "Phone: 0812" in text
    assert "Email: budi@example.com" in text


def test_download_invoice(client, collections, make_doc):
    collections["sales"].document.return_value.get.return_value = make_doc("000123", {
        "customerId": None, "customerName": None, "totalPrice": 45000, "itemCount": 1,
        "createdAt": APP_TZ.localize(datetime(2024, 3, 5, 9, 30, 0))
    })
    collections["sale_items"].where.return_value.stream.return_value = [
        make_doc("item-1", {
            "saleId": "000123", "productId": "p-sticker", "productName": "Sticker",
            "pricingType": "quantity", "quantity": 3, "pricePerUnit": 15000, "itemTotal": 45000
        })
    ]

    response = client.get("/sales/000123/invoice")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="invoice-000123.pdf"'
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert response.content.startswith(b"%PDF")


def test_download_invoice_for_missing_sale(client, collections, make_doc):
    collections["sales"].document.return_value.get.return_value = make_doc("nope", exists=False)

    response = client.get("/sales/nope/invoice")

    assert response.headers["content-type"].startswith("application/json")
    assert response.json()["status"] == "error"
    assert response.json()["code"] == 404
