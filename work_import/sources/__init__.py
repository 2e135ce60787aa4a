from .ocr import (
    IMAGE_EXTENSIONS,
    PRODUCT_CODE_PATTERN,
    TextExtractor,
    extract_product_codes,
    extract_text,
    parse_invoice_text,
    read_invoice_image,
)
from .spreadsheet import SPREADSHEET_EXTENSIONS, read_spreadsheet

__all__ = [
    "IMAGE_EXTENSIONS",
    "PRODUCT_CODE_PATTERN",
    "SPREADSHEET_EXTENSIONS",
    "TextExtractor",
    "extract_product_codes",
    "extract_text",
    "parse_invoice_text",
    "read_invoice_image",
    "read_spreadsheet",
]
