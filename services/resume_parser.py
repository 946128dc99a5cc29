import io
from pathlib import Path
from typing import Union

from pypdf import PdfReader


class ResumeParser:
    @staticmethod
    def parse_pdf(file_bytes: bytes) -> str:
        """
        Parse a PDF file and extract its text content
        """
        pdf = PdfReader(io.BytesIO(file_bytes))

        # Extract text from all pages
        text = ""
        for page in pdf.pages:
            text += (page.extract_text() or "") + "\n"

        return text.strip()

    @classmethod
    def read_document(cls, path: Union[str, Path]) -> str:
        """Read a work experience or job description file as text, parsing PDFs"""
        path = Path(path).expanduser()
        if path.suffix.lower() == ".pdf":
            return cls.parse_pdf(path.read_bytes())
        return path.read_text(encoding="utf-8")
