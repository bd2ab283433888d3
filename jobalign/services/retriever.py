"""
Multi-query retrieval over a session's vector store.

The JD is split into requirements, each requirement picks its own top hits, and
hits are summed per item so evidence relevant to several asks rises to the top.
"""
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from jobalign.models.models import EnrichedItem, RetrievalOptions, RetrievalResult, ScoreEntry
from jobalign.services.chunker import TYPE_EDUCATION, TYPE_SUMMARY
from jobalign.services.requirements import extract_requirements
from jobalign.utils.exceptions import EmptyInputError, ExternalServiceError
from jobalign.utils.logging_config import PerformanceMonitor, get_logger
from jobalign.utils.usage import TokenUsage
from jobalign.utils.utils import ollama_embed

logger = get_logger(__name__)

MAX_TAGS = 8


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    den = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if den == 0.0:
        return 0.0
    return float(np.dot(va, vb)) / den


def fixed_inclusion_ids(store: List[EnrichedItem], include_summary: bool, include_education: bool) -> List[str]:
    wanted = set()
    if include_summary:
        wanted.add(TYPE_SUMMARY)
    if include_education:
        wanted.add(TYPE_EDUCATION)
    return [item.id for item in store if item.metadata.get("type") in wanted]


def rank_items(query: Sequence[float], store: List[EnrichedItem], top_k: int) -> List[ScoreEntry]:
    """Top ``top_k`` store items by cosine similarity to ``query``.

    Ties keep store order.
    """
    if not store or top_k <= 0:
        return []
    matrix = np.asarray([item.embedding for item in store], dtype=float)
    q = np.asarray(query, dtype=float)
    if q.ndim != 1 or q.shape[0] != matrix.shape[1]:
        logger.warning(f"Skipping query vector of dimension {q.shape}, store uses {matrix.shape[1]}")
        return []

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    sims = np.divide(matrix @ q, norms, out=np.zeros(len(store)), where=norms > 0)
    order = np.argsort(-sims, kind="stable")[:top_k]
    return [ScoreEntry(id=store[i].id, score=float(sims[i])) for i in order]


def aggregate_scores(query_vectors: Iterable[Sequence[float]], store: List[EnrichedItem], top_k: int) -> Dict[str, float]:
    """Sum each item's similarity over every query whose top-k it made"""
    totals: Dict[str, float] = {}
    for vec in query_vectors:
        for hit in rank_items(vec, store, top_k):
            totals[hit.id] = totals.get(hit.id, 0.0) + hit.score
    return totals


def select_ids(fixed_ids: List[str], scores: Dict[str, float], limit: int) -> List[str]:
    """Fixed ids first, then the best scored ids until ``limit`` extra slots are used"""
    selected = list(dict.fromkeys(fixed_ids))
    seen = set(selected)
    budget = limit + len(selected)
    # sorted() is stable, so equal scores keep first-hit order
    for uid, _ in sorted(scores.items(), key=lambda kv: kv[1], reverse=True):
        if len(selected) >= budget:
            break
        if uid not in seen:
            selected.append(uid)
            seen.add(uid)
    return selected


def render_item(item: EnrichedItem) -> str:
    category = (item.category or "General").upper()
    tags = ", ".join((list(item.keywords) + list(item.skills_implied))[:MAX_TAGS])
    return f"[{category}] {item.content}\n(Tags: {tags})"


def assemble_context(store: List[EnrichedItem], selected_ids: Iterable[str]) -> str:
    """Render selected items in store order, separated by blank lines"""
    wanted = set(selected_ids)
    return "\n\n".join(render_item(item) for item in store if item.id in wanted)


def _embed_requirements(requirements: List[str], usage: Optional[TokenUsage]) -> List[List[float]]:
    try:
        return [vec for vec in ollama_embed(requirements, usage=usage) if vec]
    except ExternalServiceError as e:
        logger.error(f"Embedding requirements failed, using fixed context only: {e.message}")
        return []


def retrieve(
    jd_text: str,
    vector_store: List[EnrichedItem],
    options: Optional[RetrievalOptions] = None,
    usage: Optional[TokenUsage] = None,
) -> RetrievalResult:
    if not jd_text or not jd_text.strip():
        raise EmptyInputError("Job description is empty", field="jd_text")
    options = options or RetrievalOptions()

    # only embedded items are searchable
    store = [item for item in vector_store if item.embedding is not None]
    if not store:
        logger.info("Vector store is empty, returning empty context")
        return RetrievalResult()

    with PerformanceMonitor("retrieve_context", logger, threshold_ms=5000):
        fixed = fixed_inclusion_ids(store, options.include_summary, options.include_education)
        requirements = extract_requirements(jd_text, options.requirement_count, usage=usage)

        scores: Dict[str, float] = {}
        if requirements:
            vectors = _embed_requirements(requirements, usage)
            scores = aggregate_scores(vectors, store, options.req_match_count)

        selected = select_ids(fixed, scores, options.final_context_limit)
        context = assemble_context(store, selected)

    logger.info(
        f"Selected {len(selected)} items ({len(fixed)} fixed) for {len(requirements)} requirements"
    )
    return RetrievalResult(context=context, requirements=requirements, selected_ids=selected, scores=scores)


def get_context(
    jd_text: str,
    vector_store: List[EnrichedItem],
    options: Optional[RetrievalOptions] = None,
    usage: Optional[TokenUsage] = None,
) -> str:
    return retrieve(jd_text, vector_store, options, usage).context
