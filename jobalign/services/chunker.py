"""
Turns a parsed résumé into atomic evidence chunks, each carrying its context header.
"""
from typing import List

from jobalign.models.models import EvidenceChunk, StructuredDocument

TYPE_WORK = "work_experience"
TYPE_PROJECT = "project"
TYPE_EDUCATION = "education"
TYPE_SKILLS = "skill_group"
TYPE_CERTIFICATION = "certification"
TYPE_SUMMARY = "summary"


def _present(text: str) -> bool:
    return bool(text and text.strip())


def _work_chunks(doc: StructuredDocument) -> List[EvidenceChunk]:
    out = []
    for job in doc.work_experience:
        header = (
            f"ROLE: {job.role_title} | COMPANY: {job.company_name} | "
            f"LOCATION: {job.location} | DATES: {job.dates_employed}"
        )
        meta = {
            "type": TYPE_WORK,
            "company": job.company_name,
            "role": job.role_title,
            "source_id": f"{job.company_name}_{job.role_title}",
        }
        for bullet in job.bullet_points:
            if _present(bullet.raw_text):
                out.append(EvidenceChunk(text=f"{header}\nACHIEVEMENT: {bullet.raw_text}", metadata=dict(meta)))
    return out


def _project_chunks(doc: StructuredDocument) -> List[EvidenceChunk]:
    out = []
    for proj in doc.projects:
        header = (
            f"PROJECT: {proj.project_name} | ROLE: {proj.role_title} | "
            f"TECH STACK: {', '.join(proj.technologies_used)}"
        )
        for bullet in proj.bullet_points:
            if _present(bullet.raw_text):
                out.append(EvidenceChunk(
                    text=f"{header}\nDETAIL: {bullet.raw_text}",
                    metadata={
                        "type": TYPE_PROJECT,
                        "project": proj.project_name,
                        "technologies": list(proj.technologies_used),
                    },
                ))
    return out


def _education_chunks(doc: StructuredDocument) -> List[EvidenceChunk]:
    out = []
    for edu in doc.education:
        header = (
            f"category: EDUCATION | degree: {edu.degree_obtained} | "
            f"institution: {edu.institution_name} | year: {edu.graduation_date}"
        )
        out.append(EvidenceChunk(
            text=f"{header}\nSUMMARY: Graduated with {edu.degree_obtained}.",
            metadata={"type": TYPE_EDUCATION, "subtype": "degree", "institution": edu.institution_name},
        ))
        for achievement in edu.achievements:
            if _present(achievement):
                out.append(EvidenceChunk(
                    text=f"{header}\nACHIEVEMENT: {achievement}",
                    metadata={"type": TYPE_EDUCATION, "subtype": "achievement", "institution": edu.institution_name},
                ))
    return out


def _skill_chunks(doc: StructuredDocument) -> List[EvidenceChunk]:
    out = []
    for group in doc.skills:
        category = group.category_name or "General"
        out.append(EvidenceChunk(
            text=f"category: SKILLS | group: {category}\nLIST: {', '.join(group.items)}",
            metadata={"type": TYPE_SKILLS, "category": category},
        ))
    return out


def _certification_chunks(doc: StructuredDocument) -> List[EvidenceChunk]:
    return [
        EvidenceChunk(text=f"category: CERTIFICATION\nTITLE: {cert}", metadata={"type": TYPE_CERTIFICATION})
        for cert in doc.certifications
        if _present(cert)
    ]


def _summary_chunks(doc: StructuredDocument) -> List[EvidenceChunk]:
    if not _present(doc.professional_summary):
        return []
    return [EvidenceChunk(
        text=f"category: PROFESSIONAL SUMMARY\nTEXT: {doc.professional_summary}",
        metadata={"type": TYPE_SUMMARY},
    )]


def chunk_document(doc: StructuredDocument) -> List[EvidenceChunk]:
    """One chunk per bullet, achievement, skill group, certification and summary.

    Order: work, projects, education, skills, certifications, summary.
    """
    return (
        _work_chunks(doc)
        + _project_chunks(doc)
        + _education_chunks(doc)
        + _skill_chunks(doc)
        + _certification_chunks(doc)
        + _summary_chunks(doc)
    )
