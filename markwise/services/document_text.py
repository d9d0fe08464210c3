"""
Plain-text extraction for reference documents supplied by URL.
"""
import io
import logging
from urllib.parse import urlparse

import fitz  # PyMuPDF
import requests
from docx import Document
from docx.table import Table
from docx.text.paragraph import Paragraph

from markwise.config import DOCUMENT_FETCH_TIMEOUT
from markwise.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    'application/pdf': '.pdf',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': '.docx',
    'text/plain': '.txt',
    'text/markdown': '.txt',
}


def extract_pdf_text(file_data: bytes) -> str:
    """Extract text from PDF bytes using PyMuPDF."""
    doc = fitz.open(stream=file_data, filetype="pdf")
    try:
        return "\n\n".join(page.get_text() for page in doc)
    finally:
        doc.close()


def extract_docx_text(file_data: bytes) -> str:
    """Extract paragraphs and table rows from DOCX bytes, in document order."""
    doc = Document(io.BytesIO(file_data))
    full_text = []
    for element in doc.element.body:
        if element.tag.endswith('}p'):
            para = Paragraph(element, doc)
            if para.text.strip():
                full_text.append(para.text)
        elif element.tag.endswith('}tbl'):
            table = Table(element, doc)
            for row in table.rows:
                row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if row_text:
                    full_text.append(' | '.join(row_text))
    return '\n'.join(full_text)


def extract_text(file_data: bytes, extension: str) -> str:
    extension = extension.lower()
    if extension == '.pdf':
        return extract_pdf_text(file_data)
    if extension == '.docx':
        return extract_docx_text(file_data)
    if extension in ('.txt', '.md'):
        return file_data.decode('utf-8', errors='ignore')
    raise ValidationError("Unsupported file type. Use .pdf, .docx, or .txt")


def _guess_extension(file_url: str, content_type: str) -> str:
    path = urlparse(file_url).path.lower()
    for ext in ('.pdf', '.docx', '.txt', '.md'):
        if path.endswith(ext):
            return ext
    content_type = (content_type or '').split(';')[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(content_type, '')


def fetch_document_text(file_url: str) -> str:
    """Download a document and return its plain text."""
    try:
        response = requests.get(file_url, timeout=DOCUMENT_FETCH_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        raise UpstreamError(f"Failed to fetch document: {e}") from e

    extension = _guess_extension(file_url, response.headers.get('Content-Type'))
    text = extract_text(response.content, extension)
    logger.info("Extracted %d characters from %s", len(text), urlparse(file_url).path)
    return text
