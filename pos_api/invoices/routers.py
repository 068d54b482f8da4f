"""
Invoice download router.
"""
from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import JSONResponse, Response

from pos_api.auth.dependencies import require_admin
from pos_api.common.schemas import JSendResponse
from .services import generate_invoice_service

router = APIRouter()


@router.get("/{sale_id}/invoice")
async def download_invoice(
    sale_id: str = Path(..., description="Sale ID"),
    user_id: str = Depends(require_admin)
):
    """
    Download a sale's invoice as a PDF attachment.

    Errors are returned as a JSend JSON body instead of a PDF.
    """
    try:
        filename, pdf_bytes = await generate_invoice_service(sale_id)
    except HTTPException as e:
        return JSONResponse(content=JSendResponse.error(str(e.detail), code=e.status_code).model_dump(mode="json"))
    except Exception as e:
        return JSONResponse(content=JSendResponse.error(
            f"Failed to generate PDF: {str(e)}",
            code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).model_dump(mode="json"))

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        }
    )
