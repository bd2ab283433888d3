import math
import random
from unittest.mock import MagicMock, patch

import pytest

from jobalign.models.models import RetrievalOptions
from jobalign.services.retriever import (
    aggregate_scores,
    assemble_context,
    cosine_similarity,
    get_context,
    rank_items,
    retrieve,
    select_ids,
)
from jobalign.utils.exceptions import EmptyInputError, ExternalServiceError


@pytest.fixture
def five_items(item_factory):
    return [
        item_factory("A", [1.0, 0.0]),
        item_factory("B", [0.0, 1.0]),
        item_factory("C", [1.0, 1.0]),
        item_factory("D", [1.0, -1.0]),
        item_factory("E", [-1.0, 0.0]),
    ]


class TestCosineSimilarity:
    """Test cases for the similarity metric"""

    def test_symmetric(self):
        rng = random.Random(7)
        for _ in range(20):
            a = [rng.uniform(-1, 1) for _ in range(8)]
            b = [rng.uniform(-1, 1) for _ in range(8)]
            assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_self_similarity_is_one(self):
        assert cosine_similarity([3.0, 4.0, 12.0], [3.0, 4.0, 12.0]) == pytest.approx(1.0)

    def test_opposite_and_orthogonal(self):
        assert cosine_similarity([1.0, 0.0], [-2.0, 0.0]) == pytest.approx(-1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 5.0]) == pytest.approx(0.0)

    def test_zero_vector(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


class TestRanking:
    """Test cases for per-requirement ranking and score aggregation"""

    def test_rank_top_k_with_stable_ties(self, five_items):
        hits = rank_items([1.0, 0.0], five_items, 3)

        # C and D tie; store order decides
        assert [h.id for h in hits] == ["A", "C", "D"]
        assert hits[0].score == pytest.approx(1.0)
        assert hits[1].score == pytest.approx(1 / math.sqrt(2))

    def test_rank_zero_k(self, five_items):
        assert rank_items([1.0, 0.0], five_items, 0) == []

    def test_rank_skips_mismatched_dimension(self, five_items):
        assert rank_items([1.0, 0.0, 0.0], five_items, 3) == []

    def test_shared_hit_scores_are_summed(self, five_items):
        scores = aggregate_scores([[1.0, 0.0], [0.0, 1.0]], five_items, 2)

        assert set(scores) == {"A", "B", "C"}
        assert scores["C"] == pytest.approx(2 / math.sqrt(2))
        assert scores["A"] == pytest.approx(1.0)
        assert scores["B"] == pytest.approx(1.0)

    def test_broad_item_outranks_single_best_hit(self, five_items):
        scores = aggregate_scores([[1.0, 0.0], [0.0, 1.0]], five_items, 2)

        assert select_ids([], scores, 1) == ["C"]

    def test_select_keeps_fixed_and_adds_budget(self):
        scores = {"x": 0.9, "fixed": 0.8, "y": 0.7, "z": 0.1}

        selected = select_ids(["fixed"], scores, 2)

        assert selected == ["fixed", "x", "y"]

    def test_select_zero_limit_returns_fixed_only(self):
        assert select_ids(["s", "e"], {"x": 1.0}, 0) == ["s", "e"]


class TestAssembly:
    """Test cases for context rendering"""

    def test_blocks_follow_store_order(self, item_factory):
        store = [
            item_factory("1", [1.0], category="project", keywords=["Kafka"]),
            item_factory("2", [1.0], category=""),
        ]

        text = assemble_context(store, ["2", "1"])

        assert text == (
            "[PROJECT] content of 1\n(Tags: Kafka)"
            "\n\n"
            "[GENERAL] content of 2\n(Tags: )"
        )

    def test_tags_are_capped_at_eight(self, item_factory):
        item = item_factory("1", [1.0], keywords=[f"k{i}" for i in range(6)])
        item.skills_implied = ["s1", "s2", "s3", "s4"]

        text = assemble_context([item], ["1"])

        assert text.endswith("(Tags: k0, k1, k2, k3, k4, k5, s1, s2)")


class TestGetContext:
    """Test cases for the full retrieval flow"""

    @patch('jobalign.services.retriever.ollama_embed')
    @patch('jobalign.services.retriever.extract_requirements')
    def test_single_item_scenario(self, mock_extract, mock_embed, item_factory):
        item = item_factory(
            "acme",
            [0.3, 0.4],
            category="work_experience",
            content="As an Engineer at Acme, I reduced latency by 40%.",
        )
        mock_extract.return_value = ["Low-latency systems"]
        mock_embed.return_value = [[0.3, 0.4]]

        context = get_context("Need someone who makes things fast", [item], RetrievalOptions(final_context_limit=15))

        assert context.count("\n\n") == 0
        assert context.startswith("[WORK_EXPERIENCE] As an Engineer at Acme, I reduced latency by 40%.")

    @patch('jobalign.services.retriever.ollama_embed')
    @patch('jobalign.services.retriever.extract_requirements')
    def test_block_count_is_bounded(self, mock_extract, mock_embed, item_factory):
        rng = random.Random(3)
        store = [item_factory(f"w{i}", [rng.uniform(-1, 1) for _ in range(4)]) for i in range(30)]
        store.append(item_factory("summary", [1.0, 0.0, 0.0, 0.0], item_type="summary", category="summary"))
        store.append(item_factory("degree", [0.0, 1.0, 0.0, 0.0], item_type="education", category="education"))
        mock_extract.return_value = ["r1", "r2", "r3"]
        mock_embed.return_value = [[rng.uniform(-1, 1) for _ in range(4)] for _ in range(3)]

        result = retrieve("jd", store, RetrievalOptions(final_context_limit=5, req_match_count=6))

        assert len(result.context.split("\n\n")) <= 5 + 2
        assert len(result.selected_ids) <= 7
        assert len(result.selected_ids) == len(set(result.selected_ids))
        assert result.selected_ids[:2] == ["summary", "degree"]

    @patch('jobalign.services.retriever.ollama_embed')
    @patch('jobalign.services.retriever.extract_requirements')
    def test_unembedded_items_never_selected(self, mock_extract, mock_embed, item_factory, five_items):
        ghost = item_factory("ghost", None)
        mock_extract.return_value = ["r1"]
        mock_embed.return_value = [[1.0, 0.0]]

        result = retrieve("jd", five_items + [ghost], RetrievalOptions(final_context_limit=10, req_match_count=10))

        assert "ghost" not in result.selected_ids
        assert "content of ghost" not in result.context

    @patch('jobalign.services.retriever.ollama_embed')
    @patch('jobalign.services.retriever.extract_requirements')
    def test_idempotent(self, mock_extract, mock_embed, five_items):
        mock_extract.return_value = ["r1", "r2"]
        mock_embed.return_value = [[1.0, 0.2], [0.1, 1.0]]
        options = RetrievalOptions(final_context_limit=3, req_match_count=2)

        assert get_context("jd", five_items, options) == get_context("jd", five_items, options)

    @patch('jobalign.services.retriever.ollama_embed')
    @patch('jobalign.services.retriever.extract_requirements')
    def test_embedding_failure_degrades_to_fixed(self, mock_extract, mock_embed, item_factory, five_items):
        summary = item_factory("summary", [1.0, 1.0], item_type="summary", category="summary")
        mock_extract.return_value = ["r1"]
        mock_embed.side_effect = ExternalServiceError("down")

        result = retrieve("jd", five_items + [summary])

        assert result.selected_ids == ["summary"]
        assert result.context.startswith("[SUMMARY]")

    @patch('jobalign.utils.utils.requests.post')
    @patch('jobalign.services.retriever.extract_requirements')
    def test_malformed_requirement_vectors_degrade_to_fixed(self, mock_extract, mock_post, item_factory, five_items):
        summary = item_factory("summary", [1.0, 1.0], item_type="summary", category="summary")
        mock_extract.return_value = ["r1"]
        resp = MagicMock()
        resp.json.return_value = {"embeddings": [["nan-ish"]]}
        mock_post.return_value = resp

        result = retrieve("jd", five_items + [summary])

        assert result.selected_ids == ["summary"]

    @patch('jobalign.services.retriever.ollama_embed')
    @patch('jobalign.services.retriever.extract_requirements')
    def test_fixed_inclusion_flags(self, mock_extract, mock_embed, item_factory):
        store = [
            item_factory("summary", [1.0, 0.0], item_type="summary"),
            item_factory("degree", [0.0, 1.0], item_type="education"),
        ]
        mock_extract.return_value = ["r1"]
        mock_embed.return_value = [[1.0, 0.0]]
        options = RetrievalOptions(include_summary=False, include_education=True, final_context_limit=0)

        assert retrieve("jd", store, options).selected_ids == ["degree"]

    @patch('jobalign.services.retriever.ollama_embed')
    @patch('jobalign.services.retriever.extract_requirements')
    def test_empty_store(self, mock_extract, mock_embed):
        assert get_context("some JD", []) == ""
        mock_extract.assert_not_called()
        mock_embed.assert_not_called()

    def test_blank_jd_raises(self, five_items):
        with pytest.raises(EmptyInputError):
            get_context("  ", five_items)

    @patch('jobalign.services.retriever.ollama_embed')
    @patch('jobalign.services.retriever.extract_requirements')
    def test_defaults_are_used(self, mock_extract, mock_embed, five_items):
        mock_extract.return_value = ["r1"]
        mock_embed.return_value = [[1.0, 0.0]]

        retrieve("jd", five_items)

        assert mock_extract.call_args.args[1] == 6
