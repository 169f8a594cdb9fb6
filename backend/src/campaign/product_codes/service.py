"""Bulk import and statistics for product codes."""

import csv
import io
import uuid
import zipfile
from dataclasses import asdict, dataclass
from pathlib import PurePath
from typing import Any, Iterator

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError

from campaign.errors import ConflictError, ValidationError
from campaign.logging_config import get_logger
from campaign.settings import settings
from campaign.storage.db import db
from campaign.storage.models import ProductCode, utcnow
from campaign.validators import is_valid_product_code, normalize_code

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = {".csv", ".xlsx"}
HEADER_NAMES = {"CODE", "PRODUCT_CODE", "PRODUCT CODE"}


@dataclass
class ImportResult:
    """Outcome of a bulk upload."""
    imported: int = 0
    duplicates: int = 0  # repeated within the file
    already_exists: int = 0  # stored before this upload
    invalid: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _read_csv(content: bytes) -> Iterator[Any]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("CSV files must be UTF-8 encoded.", title="Invalid File") from None
    for row in csv.reader(io.StringIO(text)):
        yield row[0] if row else None


def _read_xlsx(content: bytes) -> Iterator[Any]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError):
        raise ValidationError("The Excel file could not be read.", title="Invalid File") from None
    try:
        sheet = workbook.active
        for row in sheet.iter_rows(values_only=True):
            yield row[0] if row else None
    finally:
        workbook.close()


def _existing_codes(session, batch: list[str]) -> set[str]:
    return set(session.scalars(select(ProductCode.code).where(ProductCode.code.in_(batch))))


def read_codes(filename: str, content: bytes) -> Iterator[Any]:
    """Yield the first-column cells of a CSV or XLSX upload."""
    extension = PurePath(filename or "").suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationError("Please upload a CSV or Excel file.", title="Invalid File Type")
    if extension == ".csv":
        return _read_csv(content)
    return _read_xlsx(content)


class ProductCodeService:
    """Service for product code inventory."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def parse(self, filename: str, content: bytes) -> tuple[list[str], ImportResult]:
        """Normalize the uploaded cells into a list of unique, valid codes."""
        result = ImportResult()
        seen: set[str] = set()
        codes: list[str] = []

        for index, cell in enumerate(read_codes(filename, content)):
            if cell is None:
                continue
            code = normalize_code(str(cell))
            if not code:
                continue
            if index == 0 and code in HEADER_NAMES:
                continue
            if not is_valid_product_code(code):
                result.invalid += 1
                continue
            if code in seen:
                result.duplicates += 1
                continue
            seen.add(code)
            codes.append(code)
            if len(codes) > settings.max_upload_codes:
                raise ValidationError(
                    f"Uploads are limited to {settings.max_upload_codes:,} codes.",
                    title="File Too Large",
                )

        return codes, result

    def import_file(self, filename: str, content: bytes) -> ImportResult:
        """Import product codes from a CSV or Excel upload.

        Codes already stored are skipped. Rows are inserted in batches inside
        one transaction, so a failed upload leaves the inventory untouched.

        Args:
            filename: Original file name, used to pick the CSV or XLSX reader.
            content: Raw file bytes.

        Returns:
            Counts of imported, duplicate, already stored and invalid codes.

        Raises:
            ValidationError: The file is unreadable, empty or too large.
            ConflictError: Another upload stored some of the same codes first.
        """
        codes, result = self.parse(filename, content)
        if not codes:
            raise ValidationError("The file does not contain any product codes.", title="Empty File")

        batch_size = settings.upload_batch_size
        with db.session() as session:
            for start in range(0, len(codes), batch_size):
                batch = codes[start:start + batch_size]
                existing = _existing_codes(session, batch)
                now = utcnow()
                rows = [
                    {"id": str(uuid.uuid4()), "code": code, "is_used": False, "created_at": now}
                    for code in batch
                    if code not in existing
                ]
                result.already_exists += len(existing)
                if rows:
                    try:
                        session.execute(insert(ProductCode), rows)
                    except IntegrityError:
                        self.logger.warning("product_codes_import_conflict", filename=filename)
                        raise ConflictError(
                            "Some of these product codes were just added by another upload. "
                            "Please upload the file again.",
                            title="Upload Conflict",
                        ) from None
                    result.imported += len(rows)

        self.logger.info(
            "product_codes_imported",
            filename=filename,
            **result.to_dict(),
        )
        return result

    def stats(self) -> dict[str, Any]:
        """Inventory totals for the admin dashboard."""
        with db.session() as session:
            total = session.scalar(select(func.count(ProductCode.id))) or 0
            used = session.scalar(
                select(func.count(ProductCode.id)).where(ProductCode.is_used.is_(True))
            ) or 0

        return {
            "total": total,
            "used": used,
            "available": total - used,
            "usage_rate": round(used / total * 100, 1) if total else 0.0,
        }


# Singleton instance
product_code_service = ProductCodeService()
