"""
Assessment Schema Compiler & Validator

Turns an assessment's question list into a validator for candidate responses.

Two passes:
    Whether a conditional question is required depends on another answer in
    the same submission, so it cannot be decided per field. Pass 1 checks
    each field on its own (type, maxLength, numeric range, and the required
    flag of unconditional questions). Pass 2 enforces the required flag of
    conditional questions whose parent answer matches `equalsValue`.

Relevance:
    A conditional question is relevant only when its parent is relevant and
    the parent's answer equals `equalsValue`. Irrelevant questions are
    skipped entirely: whatever answer they carry is accepted.

Answers are coerced into a small tagged union before any rule runs:

    short-text / long-text -> TextAnswer(str)
    single-choice          -> ChoiceAnswer(str)
    multi-choice           -> MultiChoiceAnswer(frozenset[str])
    numeric                -> NumericAnswer(float)
    file                   -> FileAnswer()
    absent / "" / None     -> Missing()

Usage:
    validator = compile_schema(flatten_questions(document.sections))
    result = validator({"q-1": "Hybrid", "q-2": ""})
    if not result.valid:
        for error in result.errors:
            print(error.question_id, error.message)
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Union

from talentflow.errors import InvalidInputError, ValidationFailedError
from talentflow.schemas.assessment import Question, Section

REQUIRED_MESSAGE = "This field is required"
NUMBER_MESSAGE = "Must be a number"
TEXT_MESSAGE = "Must be text"
OPTIONS_MESSAGE = "Must be a list of options"
CHOICE_MESSAGE = "Must be one of the listed options"


# ==================== Answers ====================

@dataclass(frozen=True)
class Missing:
    pass


@dataclass(frozen=True)
class TextAnswer:
    value: str


@dataclass(frozen=True)
class ChoiceAnswer:
    value: str


@dataclass(frozen=True)
class MultiChoiceAnswer:
    values: FrozenSet[str]


@dataclass(frozen=True)
class NumericAnswer:
    value: float


@dataclass(frozen=True)
class FileAnswer:
    pass


Answer = Union[Missing, TextAnswer, ChoiceAnswer, MultiChoiceAnswer, NumericAnswer, FileAnswer]


class AnswerTypeError(ValueError):
    """Raw answer cannot be coerced to the question's answer type."""


def coerce_answer(question: Question, raw: Any) -> Answer:
    """
    Coerce a raw JSON answer into the tagged answer type for `question`.

    Raises:
        AnswerTypeError: If the value has the wrong shape for the question type
    """
    if raw is None:
        return Missing()

    qtype = question.type
    if qtype in ("short-text", "long-text"):
        if not isinstance(raw, str):
            raise AnswerTypeError(TEXT_MESSAGE)
        return TextAnswer(raw) if raw != "" else Missing()

    if qtype == "single-choice":
        if not isinstance(raw, str):
            raise AnswerTypeError(TEXT_MESSAGE)
        return ChoiceAnswer(raw) if raw != "" else Missing()

    if qtype == "multi-choice":
        if raw == "":
            return Missing()
        if not isinstance(raw, (list, tuple, set, frozenset)):
            raise AnswerTypeError(OPTIONS_MESSAGE)
        if not all(isinstance(item, str) for item in raw):
            raise AnswerTypeError(OPTIONS_MESSAGE)
        return MultiChoiceAnswer(frozenset(raw))

    if qtype == "numeric":
        return _coerce_number(raw)

    # file: presence is the only property checked
    return FileAnswer() if raw else Missing()


def _coerce_number(raw: Any) -> Answer:
    if isinstance(raw, bool):
        raise AnswerTypeError(NUMBER_MESSAGE)
    if isinstance(raw, str):
        raw = raw.strip()
        if raw == "":
            return Missing()
    elif not isinstance(raw, (int, float)):
        raise AnswerTypeError(NUMBER_MESSAGE)

    # Integers past float range (e.g. 10**400) overflow rather than fail to parse
    try:
        value = float(raw)
    except (ValueError, OverflowError):
        raise AnswerTypeError(NUMBER_MESSAGE)

    if math.isnan(value) or math.isinf(value):
        raise AnswerTypeError(NUMBER_MESSAGE)
    return NumericAnswer(value)


def is_blank(answer: Answer) -> bool:
    """True if the answer counts as empty for a required check."""
    if isinstance(answer, Missing):
        return True
    if isinstance(answer, (TextAnswer, ChoiceAnswer)):
        return answer.value.strip() == ""
    if isinstance(answer, MultiChoiceAnswer):
        return not answer.values
    return False


# ==================== Results ====================

@dataclass(frozen=True)
class FieldError:
    question_id: str
    message: str


@dataclass
class ValidationResult:
    errors: List[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def by_question(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.question_id, []).append(error.message)
        return grouped

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationFailedError(self.errors)


# ==================== Compilation ====================

Rule = Callable[[Answer], Optional[str]]


def _fmt(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def _max_length_rule(limit: int) -> Rule:
    def rule(answer: Answer) -> Optional[str]:
        if isinstance(answer, TextAnswer) and len(answer.value) > limit:
            return f"Must be {limit} characters or less"
        return None
    return rule


def _range_rule(low: Optional[float], high: Optional[float]) -> Rule:
    low = -math.inf if low is None else low
    high = math.inf if high is None else high

    def rule(answer: Answer) -> Optional[str]:
        if not isinstance(answer, NumericAnswer):
            return None
        if answer.value < low:
            return f"Min value is {_fmt(low)}"
        if answer.value > high:
            return f"Max value is {_fmt(high)}"
        return None
    return rule


def _membership_rule(options: Sequence[str]) -> Rule:
    allowed = set(options)

    def rule(answer: Answer) -> Optional[str]:
        if isinstance(answer, ChoiceAnswer) and answer.value not in allowed:
            return CHOICE_MESSAGE
        if isinstance(answer, MultiChoiceAnswer) and not answer.values <= allowed:
            return CHOICE_MESSAGE
        return None
    return rule


@dataclass
class CompiledQuestion:
    question: Question
    rules: List[Rule]

    @property
    def required_unconditionally(self) -> bool:
        return self.question.required and self.question.conditional_on is None

    @property
    def required_conditionally(self) -> bool:
        return self.question.required and self.question.conditional_on is not None


def flatten_questions(sections: Sequence[Section]) -> List[Question]:
    """Questions in document order: section order, then in-section order."""
    return [q for section in sections for q in section.questions]


def check_schema(questions: Sequence[Question]) -> List[str]:
    """
    Structural problems in a question list (empty list if none).

    Checks unique ids, numeric ranges, and that every conditionalOn points to
    an earlier single-choice question.
    """
    problems = []
    seen: Dict[str, Question] = {}
    for q in questions:
        if q.id in seen:
            problems.append(f"Duplicate question id '{q.id}'")

        if q.numeric_range and q.numeric_range.min is not None and q.numeric_range.max is not None:
            if q.numeric_range.min > q.numeric_range.max:
                problems.append(f"Question '{q.id}': numeric range min exceeds max")

        cond = q.conditional_on
        if cond is not None:
            parent = seen.get(cond.question_id)
            if parent is None:
                problems.append(
                    f"Question '{q.id}' depends on '{cond.question_id}', "
                    "which is not an earlier question"
                )
            elif parent.type != "single-choice":
                problems.append(
                    f"Question '{q.id}' depends on '{cond.question_id}', "
                    "which is not a single-choice question"
                )
        seen.setdefault(q.id, q)
    return problems


def compile_schema(questions: Sequence[Question], strict_choices: bool = False) -> "AssessmentValidator":
    """
    Build a validator for one assessment.

    Args:
        questions: Flattened questions in document order
        strict_choices: Also require choice answers to be among the options

    Returns:
        Callable AssessmentValidator

    Raises:
        InvalidInputError: If the question list breaks a structural invariant
    """
    problems = check_schema(questions)
    if problems:
        raise InvalidInputError("; ".join(problems))

    compiled = []
    for q in questions:
        rules: List[Rule] = []
        if q.type in ("short-text", "long-text") and q.max_length:
            rules.append(_max_length_rule(q.max_length))
        if q.type == "numeric" and q.numeric_range is not None:
            rules.append(_range_rule(q.numeric_range.min, q.numeric_range.max))
        if strict_choices and q.type in ("single-choice", "multi-choice") and q.options:
            rules.append(_membership_rule(q.options))
        compiled.append(CompiledQuestion(question=q, rules=rules))

    return AssessmentValidator(compiled)


class AssessmentValidator:
    """
    Validates a response map against a compiled assessment.

    Never raises for a mapping input; every problem is reported as a
    FieldError so callers can show all of them at once.
    """

    def __init__(self, compiled: List[CompiledQuestion]):
        self.compiled = compiled

    def __call__(self, responses: Mapping[str, Any]) -> ValidationResult:
        return self.validate(responses)

    def coerce(self, responses: Mapping[str, Any]) -> Dict[str, Union[Answer, AnswerTypeError]]:
        answers: Dict[str, Union[Answer, AnswerTypeError]] = {}
        for cq in self.compiled:
            try:
                answers[cq.question.id] = coerce_answer(cq.question, responses.get(cq.question.id))
            except AnswerTypeError as e:
                answers[cq.question.id] = e
        return answers

    def relevance(self, answers: Mapping[str, Union[Answer, AnswerTypeError]]) -> Dict[str, bool]:
        """Which questions are shown, given the current answers."""
        relevant: Dict[str, bool] = {}
        for cq in self.compiled:
            cond = cq.question.conditional_on
            if cond is None:
                relevant[cq.question.id] = True
                continue
            parent_answer = answers.get(cond.question_id)
            relevant[cq.question.id] = (
                relevant.get(cond.question_id, False)
                and isinstance(parent_answer, ChoiceAnswer)
                and parent_answer.value == cond.equals_value
            )
        return relevant

    def validate(self, responses: Mapping[str, Any]) -> ValidationResult:
        answers = self.coerce(responses)
        relevant = self.relevance(answers)
        errors: List[FieldError] = []
        failed = set()

        # Pass 1: each field on its own
        for cq in self.compiled:
            qid = cq.question.id
            if not relevant[qid]:
                continue

            answer = answers[qid]
            if isinstance(answer, AnswerTypeError):
                errors.append(FieldError(qid, str(answer)))
                failed.add(qid)
                continue

            if is_blank(answer):
                if cq.required_unconditionally:
                    errors.append(FieldError(qid, REQUIRED_MESSAGE))
                    failed.add(qid)
                continue

            for rule in cq.rules:
                message = rule(answer)
                if message:
                    errors.append(FieldError(qid, message))
                    failed.add(qid)

        # Pass 2: required-ness that depends on a parent answer
        for cq in self.compiled:
            qid = cq.question.id
            if not cq.required_conditionally or not relevant[qid] or qid in failed:
                continue
            if is_blank(answers[qid]):
                errors.append(FieldError(qid, REQUIRED_MESSAGE))

        return ValidationResult(errors=errors)
