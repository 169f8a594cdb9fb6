"""Product code inventory."""

from campaign.product_codes.service import ImportResult, ProductCodeService, product_code_service, read_codes

__all__ = ["ImportResult", "ProductCodeService", "product_code_service", "read_codes"]
