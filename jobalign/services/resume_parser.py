from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from jobalign.helpers.parsing import decode_upload
from jobalign.helpers.prompts import RESUME_PARSER_PROMPT
from jobalign.models.models import StructuredDocument
from jobalign.utils.exceptions import EmptyInputError, ProcessingError
from jobalign.utils.logging_config import get_logger, log_function_call
from jobalign.utils.usage import TokenUsage
from jobalign.utils.utils import ollama_generate, safe_json

logger = get_logger(__name__)

RESUME_SCHEMA = StructuredDocument.model_json_schema()


@log_function_call
def parse_resume_text(text: str, usage: Optional[TokenUsage] = None) -> StructuredDocument:
    """Extract a StructuredDocument from résumé text. Parsing failures are fatal."""
    if not text or not text.strip():
        raise EmptyInputError("Resume text is empty", field="resume")

    resp = ollama_generate(
        RESUME_PARSER_PROMPT.format(resume=text),
        temperature=0,
        schema=RESUME_SCHEMA,
        usage=usage,
    )
    data = safe_json(resp, fallback=None)
    if not isinstance(data, dict):
        raise ProcessingError("Resume parser returned no usable JSON", stage="parse")

    try:
        document = StructuredDocument.model_validate(data)
    except PydanticValidationError as e:
        raise ProcessingError("Resume parser output does not match the schema", stage="parse", cause=e) from e

    if document.is_empty():
        raise ProcessingError("Resume parser found no content in the document", stage="parse")
    logger.info(
        f"Parsed resume: {len(document.work_experience)} roles, {len(document.projects)} projects, "
        f"{len(document.education)} education entries"
    )
    return document


def parse_resume_upload(filename: str, content_base64: str, usage: Optional[TokenUsage] = None) -> StructuredDocument:
    text = decode_upload(filename, content_base64)
    if not text.strip():
        raise EmptyInputError(f"No text could be extracted from {filename}", field="content_base64")
    try:
        return parse_resume_text(text, usage=usage)
    except ProcessingError as e:
        e.details.setdefault("document_name", filename)
        raise
