from __future__ import annotations

import asyncio
import io

"""Tesseract-backed TextExtractor (optional ``ocr`` extra: pytesseract + Pillow).

The engine call is blocking, so it runs in a worker thread; the caller's
timeout still applies to the awaited call.
"""

__all__ = [
    "TesseractExtractor",
]


class TesseractExtractor:
    def __init__(self, language: str = "ita") -> None:
        self.language = language

    def _recognize(self, image: bytes) -> str:
        import pytesseract
        from PIL import Image

        with Image.open(io.BytesIO(image)) as picture:
            return pytesseract.image_to_string(picture, lang=self.language) or ""

    async def extract(self, image: bytes) -> str:
        return await asyncio.to_thread(self._recognize, image)
