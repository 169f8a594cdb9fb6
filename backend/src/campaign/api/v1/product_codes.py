"""Product code API v1 endpoints (admin only)."""

from fastapi import APIRouter, Depends, File, UploadFile

from campaign.auth.middleware import require_admin
from campaign.auth.models import Principal
from campaign.product_codes.service import product_code_service

router = APIRouter(prefix="/admin/product-codes", tags=["product-codes"])


@router.post("/upload")
async def upload_product_codes(
    file: UploadFile = File(...),
    admin: Principal = Depends(require_admin),
):
    """Import product codes from a CSV or Excel file."""
    content = await file.read()
    result = product_code_service.import_file(file.filename or "", content)
    return {
        "title": "Upload Successful!",
        "detail": f"{result.imported:,} product codes have been imported.",
        "result": result.to_dict(),
        "stats": product_code_service.stats(),
    }


@router.get("/stats")
async def product_code_stats(admin: Principal = Depends(require_admin)):
    """Total, used and available codes plus the usage rate."""
    return product_code_service.stats()
