"""Prompt construction for transcription, COB analysis and document analysis."""

from __future__ import annotations

import re

from .types import LectureMetadata, SupportingTexts

DEFAULT_RUBRIC = """
**Standard K12 Classroom Observation Rubric**

**Category: Concepts (Weight: 50%)**
1. **Concepts & Explanation**: (Max Score: 2)
   - Criteria: Teacher must handle concepts accurately without errors. Explanations should be clear, detailed, and age-appropriate.
2. **Rectification - Concepts**: (Max Score: 2)
   - Criteria: Teacher must identify and correctly rectify any student misconceptions or errors immediately.

**Category: Delivery (Weight: 20%)**
3. **Subject Language**: (Max Score: 2)
   - Criteria: Teacher should use correct subject-specific terminology and clear language.
4. **Communication & Pace**: (Max Score: 2)
   - Criteria: Voice should be audible, modulated, and the pace should allow students to follow.

**Category: Facilitator-Student (Weight: 15%)**
5. **Interaction & Engagement**: (Max Score: 2)
   - Criteria: Teacher should ask questions, encourage participation, and ensure a two-way learning process.

**Category: Classroom Management (Weight: 15%)**
6. **Time Management & Discipline**: (Max Score: 2)
   - Criteria: Session should flow broadly according to plan, maintaining student discipline and focus.
""".strip()

TRANSCRIPTION_PROMPT = (
    "Transcribe the attached classroom lecture audio verbatim. "
    "Label speakers as Teacher or Student where it is clear. "
    "Return only the transcript text."
)

_KG_GRADES = {"KG1", "KG2"}
_NUMERIC_GRADE = re.compile(r"^(?:grade|class)?\s*(\d{1,2})$", re.IGNORECASE)


def rubric_category_for_grade(grade: str | None) -> str | None:
    """Map a lecture grade to the rubric category it is stored under."""

    if grade is None:
        return None
    value = grade.strip()
    if not value or value == "N/A":
        return None

    if re.sub(r"\s+", "", value).upper() in _KG_GRADES:
        return "KG 1 and KG 2"

    match = _NUMERIC_GRADE.match(value)
    if match:
        number = int(match.group(1))
        if 1 <= number <= 8:
            return "Grade 1 to 8"
        if 9 <= number <= 12:
            return "Grade 9 to 12"

    return value


def _or_default(value: str | None, default: str) -> str:
    return value if value and value.strip() else default


def build_analysis_prompt(
    *,
    metadata: LectureMetadata,
    transcript: str,
    rubric: str | None,
    supporting: SupportingTexts,
) -> str:
    """Assemble the auditor prompt sent to the analysis model list."""

    rubric_text = rubric if rubric and rubric.strip() else DEFAULT_RUBRIC

    return f"""
You are an elite Educational Auditor acting as a Classroom Observer.
Evaluate the classroom lecture transcript below STRICTLY against the rubric provided.

**METADATA CONTEXT:**
- Teacher Name: {_or_default(metadata.facilitator, "Identify from recording")}
- School: {_or_default(metadata.school, "Identify from recording")}
- Grade: {_or_default(metadata.grade, "Identify")}
- Section: {_or_default(metadata.section, "Identify")}
- Subject: {_or_default(metadata.subject, "Identify")}
- Date: {_or_default(metadata.date, "Today")}

**RUBRIC (follow exactly):**
\"\"\"{rubric_text}\"\"\"

**SUPPORTING MATERIALS:**
1. COB Parameters (if any): \"\"\"{supporting.cob_params or "N/A"}\"\"\"
2. Reading Material (if any): \"\"\"{supporting.reading_material or "N/A"}\"\"\"
3. Lesson Plan (if any): \"\"\"{supporting.lesson_plan or "N/A"}\"\"\"

**TRANSCRIPT:**
\"\"\"{transcript}\"\"\"

**INSTRUCTIONS:**
1. Extract every parameter, question or criterion from the rubric and evaluate each one. Do not skip any.
2. Score each parameter only from evidence in the transcript. Use the rubric's scale and marking scheme when it defines one; otherwise use 1-5.
3. Use the lesson plan and reading material to judge content accuracy and preparation.
4. Never answer "N/A" for duration; estimate it or use "45m".
5. Use the rubric's weightage for each parameter when present, otherwise "1".

**OUTPUT FORMAT (JSON only):**
{{
    "cob_report": {{
        "header": {{
            "facilitator": "{_or_default(metadata.facilitator, "Name")}",
            "school": "{_or_default(metadata.school, "School")}",
            "grade": "{_or_default(metadata.grade, "Grade")}",
            "section": "{_or_default(metadata.section, "Section")}",
            "subject": "{_or_default(metadata.subject, "Subject")}",
            "date": "{_or_default(metadata.date, "Date")}",
            "topic_blm": "Topic identified from the lecture",
            "duration": "45m",
            "session_type": "Classroom"
        }},
        "scores": {{
            "overall_percentage": "XX%",
            "summary": "Brief executive summary of the observation."
        }},
        "parameters": [
            {{
                "category": "Rubric category",
                "name": "Parameter name or question",
                "score": 0,
                "out_of": 0,
                "weight": "1",
                "comment": "Specific evidence from the lecture."
            }}
        ],
        "what_happened": ["Chronological notes on the session."],
        "highlights": ["Strength"],
        "other_observations": ["Improvement area"]
    }}
}}
""".strip()


DOCUMENT_ANALYSIS_TYPES: dict[str, str] = {
    "content": (
        "Provide a comprehensive analysis and summary of this content including "
        "main topics and themes, key points and takeaways, important details and overall purpose.\n"
        "Return as JSON with keys: topics, key_points, details, purpose"
    ),
    "structure": (
        "Provide a structural analysis of this document including document type and purpose, "
        "main sections and organization, key topics covered and overall structure.\n"
        "Return as JSON with keys: documentType, sections, topics, structure"
    ),
    "cob_params": (
        "This is a COB (Classroom Observation) Parameters document. Extract all observation "
        "parameters and criteria, scoring rubrics and weightages, categories and sub-categories, "
        "expected behaviors and standards, and any specific instructions for observers.\n"
        "Return as JSON with keys: parameters, categories, scoring_rubrics, instructions"
    ),
    "lesson_plan": (
        "Analyze this lesson plan and extract learning objectives, topic and subject, grade level, "
        "teaching methodology, planned activities, required resources, assessment methods and time allocation.\n"
        "Return as JSON with keys: objectives, topic, grade, methodology, activities, resources, assessment, timeline"
    ),
    "reading_material": (
        "Analyze this reading material and provide the main topic and theme, key concepts, "
        "difficulty level, important vocabulary, a summary and suggested discussion points.\n"
        "Return as JSON with keys: topic, key_concepts, difficulty, vocabulary, summary, discussion_points"
    ),
}


def build_document_prompt(text: str, analysis_type: str, source_type: str) -> str:
    instructions = DOCUMENT_ANALYSIS_TYPES[analysis_type]
    return (
        f"Analyze the following {source_type} document content:\n\n"
        f"{text}\n\n---\n\n{instructions}"
    )


__all__ = [
    "DEFAULT_RUBRIC",
    "DOCUMENT_ANALYSIS_TYPES",
    "TRANSCRIPTION_PROMPT",
    "build_analysis_prompt",
    "build_document_prompt",
    "rubric_category_for_grade",
]
