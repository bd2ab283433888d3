"""
Indexing pipeline: chunk -> enrich -> embed, wired as a LangGraph state graph.
"""
import asyncio
from functools import partial
from typing import Callable, List, Optional, TypedDict

from langgraph.graph import END, StateGraph

from jobalign.models.models import EnrichedItem, EvidenceChunk, StructuredDocument
from jobalign.services.chunker import chunk_document
from jobalign.services.enricher import enrich_corpus
from jobalign.services.vectorizer import embed_corpus
from jobalign.utils.logging_config import PerformanceMonitor, get_logger
from jobalign.utils.usage import TokenUsage

logger = get_logger(__name__)


class IndexState(TypedDict, total=False):
    document: StructuredDocument
    chunks: List[EvidenceChunk]
    items: List[EnrichedItem]
    vector_store: List[EnrichedItem]


class IndexPipeline:
    """Holds the per-run collaborators (progress observer, usage counter) for the graph nodes"""

    def __init__(
        self,
        on_progress: Optional[Callable[[int, int], None]] = None,
        usage: Optional[TokenUsage] = None,
    ):
        self.on_progress = on_progress
        self.usage = usage

    async def node_chunk(self, state: IndexState) -> IndexState:
        chunks = chunk_document(state["document"])
        logger.info(f"Chunked document into {len(chunks)} evidence units")
        return {"chunks": chunks}

    async def node_enrich(self, state: IndexState) -> IndexState:
        items = await enrich_corpus(state.get("chunks", []), on_progress=self.on_progress, usage=self.usage)
        return {"items": items}

    async def node_embed(self, state: IndexState) -> IndexState:
        items = state.get("items", [])
        loop = asyncio.get_running_loop()
        store = await loop.run_in_executor(None, partial(
            embed_corpus,
            items,
            on_progress=self.on_progress,
            usage=self.usage,
            corpus_size=len(state.get("chunks", items)),
        ))
        return {"vector_store": store}

    def build_graph(self):
        g = StateGraph(IndexState)
        g.add_node("chunk", self.node_chunk)
        g.add_node("enrich", self.node_enrich)
        g.add_node("embed", self.node_embed)
        g.set_entry_point("chunk")
        g.add_edge("chunk", "enrich")
        g.add_edge("enrich", "embed")
        g.add_edge("embed", END)
        return g.compile()


async def build_index(
    document: StructuredDocument,
    on_progress: Optional[Callable[[int, int], None]] = None,
    usage: Optional[TokenUsage] = None,
) -> List[EnrichedItem]:
    """Run the full indexing pipeline and return the vector store"""
    pipeline = IndexPipeline(on_progress=on_progress, usage=usage)
    with PerformanceMonitor("build_index", logger, threshold_ms=60000):
        out = await pipeline.build_graph().ainvoke({"document": document})
    return out.get("vector_store", [])
