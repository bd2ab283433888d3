"""
Rewrites evidence chunks into retrieval-friendly sentences with tags.

Enrichment is fail-soft: a chunk the LLM cannot handle still yields an item, whose
content is the raw chunk text.
"""
import asyncio
import uuid
from typing import Callable, List, Optional

from jobalign.helpers.prompts import ENRICH_PROMPT, ENRICH_SCHEMA
from jobalign.models.ai_settings import get_settings
from jobalign.models.models import EnrichedItem, EvidenceChunk
from jobalign.utils.logging_config import get_logger
from jobalign.utils.usage import TokenUsage
from jobalign.utils.utils import as_list, as_text, ollama_generate, safe_json

logger = get_logger(__name__)

FALLBACK_CATEGORY = "unknown"

ProgressCallback = Callable[[int, int], None]


def new_item_id() -> str:
    return uuid.uuid4().hex


def fallback_item(chunk: EvidenceChunk) -> EnrichedItem:
    return EnrichedItem(
        id=new_item_id(),
        content=chunk.text,
        keywords=[],
        skills_implied=[],
        category=FALLBACK_CATEGORY,
        raw_source=chunk.text,
        metadata=dict(chunk.metadata),
    )


def enrich_chunk(chunk: EvidenceChunk, usage: Optional[TokenUsage] = None) -> EnrichedItem:
    """Enrich one chunk. Never raises; failures return the fallback item."""
    try:
        resp = ollama_generate(
            ENRICH_PROMPT.format(chunk=chunk.text),
            temperature=0.1,
            schema=ENRICH_SCHEMA,
            usage=usage,
        )
        data = safe_json(resp, fallback=None)
        if not isinstance(data, dict):
            raise ValueError("enrichment response is not a JSON object")

        content = as_text(data.get("fused_sentence"))
        if not content:
            raise ValueError("enrichment response has no fused_sentence")

        return EnrichedItem(
            id=new_item_id(),
            content=content,
            keywords=as_list(data.get("keywords")),
            skills_implied=as_list(data.get("skills_implied")),
            category=as_text(data.get("category")) or str(chunk.metadata.get("type", "")),
            raw_source=chunk.text,
            metadata=dict(chunk.metadata),
        )
    except Exception as e:
        logger.warning(f"Enrichment failed, keeping raw chunk: {e}")
        return fallback_item(chunk)


async def enrich_corpus(
    chunks: List[EvidenceChunk],
    on_progress: Optional[ProgressCallback] = None,
    usage: Optional[TokenUsage] = None,
    batch_size: Optional[int] = None,
) -> List[EnrichedItem]:
    """Enrich all chunks in order.

    Each batch runs concurrently; the next batch starts only once the previous
    one has fully finished. Progress is reported as (done, 2 * len(chunks)).
    """
    batch_size = batch_size or get_settings().processing.enrich_batch_size
    total = len(chunks) * 2
    items: List[EnrichedItem] = []

    loop = asyncio.get_running_loop()

    for start in range(0, len(chunks), batch_size):
        batch = chunks[start:start + batch_size]
        results = await asyncio.gather(*[
            loop.run_in_executor(None, enrich_chunk, chunk, usage) for chunk in batch
        ])
        items.extend(results)

        done = min(start + batch_size, len(chunks))
        logger.debug(f"Enriched {done}/{len(chunks)} chunks")
        if on_progress:
            on_progress(done, total)

    degraded = sum(1 for item in items if item.category == FALLBACK_CATEGORY and item.content == item.raw_source)
    if degraded:
        logger.warning(f"{degraded}/{len(items)} chunks fell back to raw text during enrichment")
    return items
