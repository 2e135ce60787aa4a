"""Staged import & reconciliation engine.

Spreadsheet rows (attendance, material catalog) and invoice OCR text are read,
normalized, resolved against master data and classified before anything is
written. See ``work_import.services.engine.ImportEngine`` for the entry point.
"""

__version__ = "0.1.0"
