from __future__ import annotations

"""Localized user-facing message catalog.

Errors carry a message key plus parameters; rendering to text happens at the
edge (preview/commit results, CLI output) in the configured locale. Unknown
locales fall back to English.
"""

__all__ = [
    "DEFAULT_LOCALE",
    "MESSAGES",
    "render_message",
    "render_row_message",
]

DEFAULT_LOCALE = "en"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "row": "Row {row}: {message}",
        "unsupported_file_type": "unsupported file type '{extension}'",
        "no_rows_found": "no rows found",
        "unreadable_file": "unreadable file: {detail}",
        "missing_headers": "missing required columns: {columns}",
        "ocr_timeout": "text extraction timed out after {seconds}s",
        "ocr_failed": "text extraction failed: {detail}",
        "missing_value": "{field} is missing",
        "invalid_value": "{field} has an invalid value '{value}'",
        "not_found": "{field} '{value}' not found",
        "ambiguous": "{field} '{value}' matches more than one record",
        "open_ended": "{field} is missing: only complete clock-in/clock-out pairs can be imported",
        "clock_order": "clock-out {clock_out} must be after clock-in {clock_in}",
        "hours_range": "worked hours {hours} must be greater than 0 and at most 24",
        "non_positive": "{field} must be greater than 0 (got {value})",
        "negative_amount": "{field} cannot be negative (got {value})",
        "persistence_failed": "could not be saved: {detail}",
        "unknown_kind": "unknown import kind '{kind}'",
    },
    "it": {
        "row": "Riga {row}: {message}",
        "unsupported_file_type": "tipo di file non supportato '{extension}'",
        "no_rows_found": "nessuna riga trovata",
        "unreadable_file": "file non leggibile: {detail}",
        "missing_headers": "colonne obbligatorie mancanti: {columns}",
        "ocr_timeout": "lettura del testo interrotta dopo {seconds}s",
        "ocr_failed": "errore nella lettura del testo dall'immagine: {detail}",
        "missing_value": "{field} mancante",
        "invalid_value": "{field} non valido '{value}'",
        "not_found": "{field} '{value}' non trovato",
        "ambiguous": "{field} '{value}' corrisponde a più record",
        "open_ended": "{field} mancante: si importano solo coppie entrata/uscita complete",
        "clock_order": "l'uscita {clock_out} deve essere successiva all'entrata {clock_in}",
        "hours_range": "le ore lavorate {hours} devono essere maggiori di 0 e al massimo 24",
        "non_positive": "{field} deve essere maggiore di 0 (valore {value})",
        "negative_amount": "{field} non può essere negativo (valore {value})",
        "persistence_failed": "salvataggio non riuscito: {detail}",
        "unknown_kind": "tipo di importazione sconosciuto '{kind}'",
    },
}


def render_message(key: str, locale: str = DEFAULT_LOCALE, **params: object) -> str:
    catalog = MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])
    template = catalog.get(key) or MESSAGES[DEFAULT_LOCALE].get(key, key)
    return template.format(**params)


def render_row_message(row: int, message: str, locale: str = DEFAULT_LOCALE) -> str:
    """Prefix a rendered message with its user-facing row number."""
    return render_message("row", locale, row=row, message=message)
