from typing import List, Optional

from jobalign.helpers.prompts import REQUIREMENTS_PROMPT, REQUIREMENTS_SCHEMA
from jobalign.models.ai_settings import get_settings
from jobalign.utils.exceptions import ExternalServiceError
from jobalign.utils.logging_config import get_logger
from jobalign.utils.usage import TokenUsage
from jobalign.utils.utils import as_list, ollama_generate, safe_json

logger = get_logger(__name__)


def _requirements_from(data) -> List[str]:
    if isinstance(data, dict):
        # some models wrap the array, e.g. {"requirements": [...]}
        data = next((v for v in data.values() if isinstance(v, list)), [])
    if not isinstance(data, list):
        return []
    return as_list(data)


def extract_requirements(jd_text: str, count: int = 6, usage: Optional[TokenUsage] = None) -> List[str]:
    """Up to ``count`` concrete hiring requirements from a job description.

    Falls back to the head of the JD itself so retrieval always has a query.
    """
    if not jd_text or not jd_text.strip():
        return []

    settings = get_settings()
    requirements: List[str] = []
    try:
        resp = ollama_generate(
            REQUIREMENTS_PROMPT.format(count=count, jd=jd_text),
            model=settings.llm.extraction_model,
            temperature=0.2,
            schema=REQUIREMENTS_SCHEMA,
            usage=usage,
        )
        requirements = _requirements_from(safe_json(resp, fallback=[]))[:count]
    except ExternalServiceError as e:
        logger.warning(f"Requirement extraction failed, falling back to JD text: {e.message}")

    if not requirements:
        logger.info("No requirements extracted, using truncated JD as the query")
        requirements = [jd_text[:settings.processing.requirement_fallback_chars]]
    return requirements
