from jobalign.models.models import StructuredDocument
from jobalign.services.chunker import chunk_document


class TestChunker:
    """Test cases for résumé chunking"""

    def test_one_chunk_per_fact(self, sample_document):
        chunks = chunk_document(sample_document)
        types = [c.metadata["type"] for c in chunks]

        # 2 bullets + 1 project bullet + degree + 1 achievement + 1 skill group + 1 cert + summary
        assert len(chunks) == 8
        assert types == [
            "work_experience", "work_experience",
            "project",
            "education", "education",
            "skill_group",
            "certification",
            "summary",
        ]

    def test_work_chunk_format(self, sample_document):
        chunk = chunk_document(sample_document)[0]

        assert chunk.text == (
            "ROLE: Engineer | COMPANY: Acme | LOCATION: Berlin | DATES: 2020-2023\n"
            "ACHIEVEMENT: Reduced latency by 40%"
        )
        assert chunk.metadata["company"] == "Acme"
        assert chunk.metadata["role"] == "Engineer"

    def test_project_chunk_carries_technologies(self, sample_document):
        chunk = [c for c in chunk_document(sample_document) if c.metadata["type"] == "project"][0]

        assert chunk.text.startswith("PROJECT: Tracer | ROLE: Author | TECH STACK: Python, Kafka\n")
        assert chunk.text.endswith("DETAIL: Built a distributed tracing pipeline")
        assert chunk.metadata["technologies"] == ["Python", "Kafka"]

    def test_education_degree_and_achievement(self, sample_document):
        edu = [c for c in chunk_document(sample_document) if c.metadata["type"] == "education"]

        assert [c.metadata["subtype"] for c in edu] == ["degree", "achievement"]
        assert edu[0].text.endswith("SUMMARY: Graduated with MSc Computer Science.")
        assert edu[1].text.endswith("ACHIEVEMENT: Graduated with distinction")
        assert "institution: TU Munich" in edu[0].text

    def test_skill_group_defaults_to_general(self):
        doc = StructuredDocument.model_validate({"skills": [{"category_name": "", "items": ["SQL", "dbt"]}]})
        chunks = chunk_document(doc)

        assert len(chunks) == 1
        assert chunks[0].text == "category: SKILLS | group: General\nLIST: SQL, dbt"
        assert chunks[0].metadata == {"type": "skill_group", "category": "General"}

    def test_empty_document_yields_no_chunks(self):
        assert chunk_document(StructuredDocument()) == []

    def test_null_collections_are_tolerated(self):
        doc = StructuredDocument.model_validate({
            "professional_summary": None,
            "work_experience": None,
            "projects": [{"project_name": "X", "technologies_used": None, "bullet_points": None}],
            "certifications": None,
        })

        assert chunk_document(doc) == []

    def test_blank_summary_is_skipped(self):
        doc = StructuredDocument(professional_summary="   ")
        assert chunk_document(doc) == []

    def test_single_bullet_scenario(self):
        doc = StructuredDocument.model_validate({
            "work_experience": [{
                "company_name": "Acme",
                "role_title": "Engineer",
                "bullet_points": [{"raw_text": "Reduced latency by 40%"}],
            }]
        })
        chunks = chunk_document(doc)

        assert len(chunks) == 1
        assert "ACHIEVEMENT: Reduced latency by 40%" in chunks[0].text
