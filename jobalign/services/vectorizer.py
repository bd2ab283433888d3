"""
Attaches embeddings to enriched items and builds the in-memory vector store.
"""
from typing import Callable, List, Optional

from jobalign.models.ai_settings import get_settings
from jobalign.models.models import EnrichedItem
from jobalign.utils.exceptions import ExternalServiceError
from jobalign.utils.logging_config import get_logger
from jobalign.utils.usage import TokenUsage
from jobalign.utils.utils import ollama_embed

logger = get_logger(__name__)


def embed_corpus(
    items: List[EnrichedItem],
    on_progress: Optional[Callable[[int, int], None]] = None,
    usage: Optional[TokenUsage] = None,
    batch_size: Optional[int] = None,
    corpus_size: Optional[int] = None,
) -> List[EnrichedItem]:
    """Embed item contents in fixed-size batches and return the vector store.

    Vectors are matched to items by position within their batch. Items left
    without a vector (failed batch, short response, empty content, wrong
    dimension) are dropped from the returned store, which keeps input order.
    """
    batch_size = batch_size or get_settings().processing.embed_batch_size
    corpus_size = len(items) if corpus_size is None else corpus_size
    total = corpus_size * 2
    dimension: Optional[int] = None

    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        # only non-empty texts are sent; remember where each one came from
        positions = [i for i, item in enumerate(batch) if item.content and item.content.strip()]
        if positions:
            try:
                vectors = ollama_embed([batch[i].content for i in positions], usage=usage)
            except ExternalServiceError as e:
                logger.error(f"Embedding batch starting at {start} failed: {e.message}")
                vectors = []

            for pos, vec in zip(positions, vectors):
                if not vec:
                    continue
                if dimension is None:
                    dimension = len(vec)
                elif len(vec) != dimension:
                    logger.warning(f"Dropping vector of dimension {len(vec)}, store uses {dimension}")
                    continue
                batch[pos].embedding = vec

            if len(vectors) < len(positions):
                logger.warning(f"Embedding batch starting at {start} returned {len(vectors)}/{len(positions)} vectors")

        if on_progress:
            on_progress(corpus_size + min(start + batch_size, len(items)), total)

    store = [item for item in items if item.embedding is not None]
    logger.info(f"Vector store built with {len(store)}/{len(items)} items")
    return store
