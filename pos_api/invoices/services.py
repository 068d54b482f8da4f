"""
Services for producing sale invoices.
"""
from typing import Tuple

from pos_api.common.logging import get_logger
from pos_api.sales.services import get_sale_service
from .renderer import invoice_filename, render_sale_invoice

logger = get_logger(__name__)


async def generate_invoice_service(sale_id: str) -> Tuple[str, bytes]:
    """
    Render the invoice of a saved sale.

    Returns:
        (download filename, PDF bytes)

    Raises:
        HTTPException: 404 if the sale does not exist
    """
    sale = await get_sale_service(sale_id)
    pdf_bytes = render_sale_invoice(sale)
    logger.info("invoice_generated", sale_id=sale_id, size=len(pdf_bytes), items=len(sale.items))
    return invoice_filename(sale.id), pdf_bytes
