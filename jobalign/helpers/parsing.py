import base64
import binascii
import os
import re
import tempfile
from pathlib import Path

from docx import Document
from pdfminer.high_level import extract_text as pdf_extract

from jobalign.utils.exceptions import EmptyInputError, ProcessingError, ValidationError
from jobalign.utils.logging_config import get_logger

logger = get_logger(__name__)

TEXT_EXTENSIONS = {".txt", ".md", ".tex", ".json"}
BINARY_EXTENSIONS = {".pdf", ".docx"}
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | BINARY_EXTENSIONS


def read_txt(p: Path) -> str:
    return p.read_text(errors="ignore")


def read_docx(p: Path) -> str:
    doc = Document(str(p))
    return "\n".join([para.text for para in doc.paragraphs])


def read_pdf(p: Path) -> str:
    try:
        text = pdf_extract(str(p))
    except Exception as e:
        logger.warning(f"pdfminer failed on {p.name}, falling back to unstructured: {e}")
        text = ""
    if text.strip():
        return text
    from unstructured.partition.auto import partition
    elems = partition(filename=str(p))
    return "\n".join([e.text for e in elems if getattr(e, "text", None)])


def clean_text(x: str) -> str:
    # keep line breaks, they separate bullets
    x = re.sub(r"[ \t\r\f\v]+", " ", x)
    x = re.sub(r"\n\s*\n+", "\n\n", x)
    return x.strip()


def read_document(path) -> str:
    p = Path(path)
    ext = p.suffix.lower()
    if ext in TEXT_EXTENSIONS:
        text = read_txt(p)
    elif ext == ".pdf":
        text = read_pdf(p)
    elif ext == ".docx":
        text = read_docx(p)
    else:
        raise ValidationError(f"Unsupported file type: {ext or 'none'}", field="filename", value=p.name)
    return clean_text(text)


def decode_upload(filename: str, content_base64: str) -> str:
    """Turn a base64 upload into plain text"""
    ext = Path(filename or "").suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValidationError(f"Unsupported file type: {ext or 'none'}", field="filename", value=filename)

    try:
        raw = base64.b64decode(content_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("File content is not valid base64", field="content_base64", cause=e) from e
    if not raw:
        raise EmptyInputError("Uploaded file is empty", field="content_base64")

    if ext in TEXT_EXTENSIONS:
        return clean_text(raw.decode("utf-8", errors="ignore"))

    fd, tmp_path = tempfile.mkstemp(suffix=ext)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(raw)
        return read_document(tmp_path)
    except ValidationError:
        raise
    except Exception as e:
        raise ProcessingError(f"Could not read {filename}: {e}", document_name=filename, stage="read", cause=e) from e
    finally:
        os.unlink(tmp_path)
