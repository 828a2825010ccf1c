import base64
import binascii
import io
import mimetypes
import re
from pathlib import PurePath

import fitz  # PyMuPDF
from docx import Document as DocxDocument
from pydantic import BaseModel

from ..errors import EncodingError

PDF = "application/pdf"
TEXT = "text/plain"
MARKDOWN = "text/markdown"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SUPPORTED_MIME_TYPES = (PDF, TEXT, MARKDOWN, DOCX)

_EXTENSIONS = {
    ".pdf": PDF,
    ".txt": TEXT,
    ".md": MARKDOWN,
    ".markdown": MARKDOWN,
    ".docx": DOCX,
}

_DATA_URI_RE = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+)(?P<params>(;[\w-]+=[^;,]*)*);base64,(?P<data>.*)$", re.S)


class UploadedMaterial(BaseModel):
    filename: str
    media_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def resolve_media_type(filename: str, declared: str | None) -> str:
    """Prefer the declared type; fall back to the filename extension."""
    declared = (declared or "").split(";")[0].strip().lower()
    if declared and declared != "application/octet-stream":
        return declared
    suffix = PurePath(filename or "").suffix.lower()
    if suffix in _EXTENSIONS:
        return _EXTENSIONS[suffix]
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or "application/octet-stream"


def to_data_uri(content: bytes, media_type: str) -> str:
    try:
        encoded = base64.b64encode(content).decode("ascii")
    except TypeError as e:
        raise EncodingError(f"Could not encode file contents: {e}") from e
    return f"data:{media_type};base64,{encoded}"


def encode_material(material: UploadedMaterial) -> str:
    return to_data_uri(material.content, material.media_type)


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    m = _DATA_URI_RE.match(uri or "")
    if not m:
        raise EncodingError("Expected a base64 data URI: 'data:<mimetype>;base64,<encoded_data>'.")
    try:
        content = base64.b64decode(m.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"Invalid base64 payload: {e}") from e
    return m.group("type").lower(), content


def _pdf_text(content: bytes) -> str:
    with fitz.open(stream=content, filetype="pdf") as doc:
        pages = []
        for p in doc:
            t = p.get_text() or ""
            pages.append(re.sub(r"[ \t]+", " ", t).strip())
    return "\n\n".join(p for p in pages if p)


def _docx_text(content: bytes) -> str:
    doc = DocxDocument(io.BytesIO(content))
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip())


def _plain_text(content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def extract_text(media_type: str, content: bytes) -> str:
    try:
        if media_type == PDF:
            return _pdf_text(content)
        if media_type == DOCX:
            return _docx_text(content)
        if media_type in (TEXT, MARKDOWN):
            return _plain_text(content)
    except EncodingError:
        raise
    except Exception as e:
        raise EncodingError(f"Could not read {media_type} document: {e}") from e
    raise EncodingError(f"Unsupported media type: {media_type}")
