import os

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest

from jobalign.models.ai_settings import reset_settings
from jobalign.models.models import EnrichedItem, StructuredDocument


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sample_document():
    return StructuredDocument.model_validate({
        "contact_info": {"full_name": "Jane Doe", "email": "jane@example.com"},
        "professional_summary": "Backend engineer focused on low-latency systems.",
        "work_experience": [
            {
                "company_name": "Acme",
                "role_title": "Engineer",
                "dates_employed": "2020-2023",
                "location": "Berlin",
                "bullet_points": [
                    {"raw_text": "Reduced latency by 40%"},
                    {"raw_text": "Mentored three junior engineers"},
                ],
            }
        ],
        "projects": [
            {
                "project_name": "Tracer",
                "role_title": "Author",
                "technologies_used": ["Python", "Kafka"],
                "bullet_points": [{"raw_text": "Built a distributed tracing pipeline"}],
            }
        ],
        "education": [
            {
                "institution_name": "TU Munich",
                "degree_obtained": "MSc Computer Science",
                "graduation_date": "2019",
                "achievements": ["Graduated with distinction"],
            }
        ],
        "skills": [{"category_name": "Languages", "items": ["Python", "Go"]}],
        "certifications": ["AWS Solutions Architect"],
    })


def make_item(item_id, embedding, item_type="work_experience", category="work_experience", keywords=None, content=None):
    return EnrichedItem(
        id=item_id,
        content=content or f"content of {item_id}",
        keywords=keywords or [],
        skills_implied=[],
        category=category,
        raw_source=f"raw {item_id}",
        metadata={"type": item_type},
        embedding=embedding,
    )


@pytest.fixture
def item_factory():
    return make_item
