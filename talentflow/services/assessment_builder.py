"""
Assessment Builder - editing operations on an assessment document

Pure functions: each takes an AssessmentDocument and returns a new one,
leaving the input untouched. The document is persisted separately with
AssessmentService.upsert().

Conditional cleanup:
    A question may only depend on an earlier single-choice question. When a
    question is deleted, or its type changes away from single-choice, every
    `conditionalOn` that pointed at it is cleared. Deleting a section does
    the same for each of its questions.
"""

from typing import Any, List, Optional, Tuple

from talentflow.database import new_id
from talentflow.errors import InvalidInputError, NotFoundError
from talentflow.schemas.assessment import AssessmentDocument, ConditionalOn, Question, Section
from talentflow.services.assessment_schema import check_schema, flatten_questions


def find_question(document: AssessmentDocument, question_id: str) -> Tuple[Section, Question]:
    for section in document.sections:
        for question in section.questions:
            if question.id == question_id:
                return section, question
    raise NotFoundError("question", question_id)


def _find_section(document: AssessmentDocument, section_id: str) -> Section:
    for section in document.sections:
        if section.id == section_id:
            return section
    raise NotFoundError("section", section_id)


def _replace_sections(document: AssessmentDocument, sections: List[Section]) -> AssessmentDocument:
    return document.model_copy(update={"sections": sections})


# ==================== Sections ====================

def add_section(
    document: AssessmentDocument,
    title: str = "New Section",
    description: Optional[str] = None,
    section_id: Optional[str] = None,
) -> Tuple[AssessmentDocument, Section]:
    section = Section(id=section_id or new_id("section"), title=title, description=description)
    return _replace_sections(document, document.sections + [section]), section


def update_section(document: AssessmentDocument, section_id: str, **changes: Any) -> AssessmentDocument:
    """Change a section's title/description. Questions are edited separately."""
    _find_section(document, section_id)
    changes.pop("questions", None)
    changes.pop("id", None)
    sections = [
        s.model_copy(update=changes) if s.id == section_id else s
        for s in document.sections
    ]
    return _replace_sections(document, sections)


def delete_section(document: AssessmentDocument, section_id: str) -> AssessmentDocument:
    removed = _find_section(document, section_id)
    document = _replace_sections(
        document, [s for s in document.sections if s.id != section_id]
    )
    for question in removed.questions:
        document = clear_conditionals(document, question.id)
    return document


# ==================== Questions ====================

def add_question(
    document: AssessmentDocument,
    section_id: str,
    type: str = "short-text",
    text: str = "New Question",
    required: bool = False,
    question_id: Optional[str] = None,
    **extra: Any,
) -> Tuple[AssessmentDocument, Question]:
    _find_section(document, section_id)
    question = Question(
        id=question_id or new_id("q"),
        type=type,
        text=text,
        required=required,
        **extra,
    )
    sections = [
        s.model_copy(update={"questions": s.questions + [question]}) if s.id == section_id else s
        for s in document.sections
    ]
    document = _replace_sections(document, sections)
    _ensure_valid(document)
    return document, question


def update_question(document: AssessmentDocument, question_id: str, **changes: Any) -> AssessmentDocument:
    """
    Apply changes to a question.

    Changing the type away from single-choice detaches its dependents.

    Raises:
        NotFoundError: If the question does not exist
        InvalidInputError: If the result breaks a conditional invariant
    """
    _, current = find_question(document, question_id)
    changes.pop("id", None)
    updated = Question.model_validate({**current.model_dump(), **changes})

    sections = [
        s.model_copy(update={
            "questions": [updated if q.id == question_id else q for q in s.questions]
        })
        for s in document.sections
    ]
    document = _replace_sections(document, sections)

    if current.type == "single-choice" and updated.type != "single-choice":
        document = clear_conditionals(document, question_id)

    _ensure_valid(document)
    return document


def set_condition(
    document: AssessmentDocument,
    question_id: str,
    parent_id: Optional[str],
    equals_value: str = "",
) -> AssessmentDocument:
    """Make a question depend on a parent answer (parent_id=None removes it)."""
    condition = None
    if parent_id is not None:
        condition = ConditionalOn(question_id=parent_id, equals_value=equals_value)
    return update_question(document, question_id, conditional_on=condition)


def delete_question(
    document: AssessmentDocument,
    question_id: str,
    section_id: Optional[str] = None,
) -> AssessmentDocument:
    """Remove a question and clear every conditionalOn that referenced it."""
    section, _ = find_question(document, question_id)
    if section_id is not None and section.id != section_id:
        raise NotFoundError("question", question_id)

    sections = [
        s.model_copy(update={"questions": [q for q in s.questions if q.id != question_id]})
        if s.id == section.id else s
        for s in document.sections
    ]
    return clear_conditionals(_replace_sections(document, sections), question_id)


def clear_conditionals(document: AssessmentDocument, question_id: str) -> AssessmentDocument:
    sections = [
        s.model_copy(update={
            "questions": [
                q.model_copy(update={"conditional_on": None})
                if q.conditional_on is not None and q.conditional_on.question_id == question_id
                else q
                for q in s.questions
            ]
        })
        for s in document.sections
    ]
    return _replace_sections(document, sections)


def _ensure_valid(document: AssessmentDocument) -> None:
    problems = check_schema(flatten_questions(document.sections))
    if problems:
        raise InvalidInputError("; ".join(problems))
