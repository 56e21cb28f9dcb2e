"""
Structured study content generated by the model.

Two documents are requested as JSON instead of streamed prose:

    StudyMaterials   explanation, flashcards, quiz and study tips for a topic
    StudySchedule    weekly study sessions built from a learner's goals

The proxy validates the gateway's answer before returning it and the client
validates it again on receipt, so a malformed reply surfaces as one error
instead of a half-drawn screen.

Learning Points:
- Pydantic aliases keep the wire names (``correctIndex``, ``studyTips``)
  while the Python side stays snake_case
- Models wrap JSON in fences or prose more often than not; extract_json
  looks inside a ```json fence first, then takes the outermost object
"""

import json
import re
from typing import Any, Dict, List, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

DAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DEFAULT_PLAN_COLOR = "#3b82f6"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

JSON_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE)

Document = Union[str, Dict[str, Any]]
ModelT = TypeVar("ModelT", bound=BaseModel)


class MaterialsError(ValueError):
    """Model output that is not the requested JSON document."""


class Flashcard(BaseModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)


class QuizQuestion(BaseModel):
    """Multiple choice question; ``correct_index`` points into ``options``."""

    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=2)
    correct_index: int = Field(alias="correctIndex", ge=0)
    explanation: str = ""

    @model_validator(mode="after")
    def check_correct_index(self) -> 'QuizQuestion':
        if self.correct_index >= len(self.options):
            raise ValueError(
                f"correctIndex {self.correct_index} is out of range for {len(self.options)} options"
            )
        return self

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]


class StudyMaterials(BaseModel):
    """Everything generated for one topic."""

    model_config = ConfigDict(populate_by_name=True)

    explanation: str = Field(min_length=1)
    flashcards: List[Flashcard]
    quiz: List[QuizQuestion]
    study_tips: List[str] = Field(alias="studyTips")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SchedulePlan(BaseModel):
    """One weekly session. Days count from 0 (Sunday), times are 24h ``HH:MM``."""

    topic: str = Field(min_length=1)
    day_of_week: int = Field(ge=0, le=6)
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    color: str = DEFAULT_PLAN_COLOR

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def drop_seconds(cls, value: Any) -> Any:
        # "09:00:00" is the planner's storage format
        if isinstance(value, str) and re.fullmatch(r"\d\d:\d\d:\d\d", value):
            return value[:5]
        return value

    @model_validator(mode="after")
    def check_order(self) -> 'SchedulePlan':
        if self.end_time <= self.start_time:
            raise ValueError(f"end_time {self.end_time} is not after start_time {self.start_time}")
        return self

    @property
    def day_name(self) -> str:
        return DAYS[self.day_of_week]


class StudySchedule(BaseModel):
    schedule: List[SchedulePlan] = Field(min_length=1)

    def ordered(self) -> List[SchedulePlan]:
        """Sessions sorted by day, then start time."""
        return sorted(self.schedule, key=lambda plan: (plan.day_of_week, plan.start_time))

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump()


def extract_json(text: str) -> Any:
    """Parse the JSON object embedded in model output.

    Raises:
        MaterialsError: no object found, or it does not parse
    """
    match = JSON_FENCE_RE.search(text)
    candidate = match.group(1) if match else text
    start, end = candidate.find("{"), candidate.rfind("}")
    if start == -1 or end < start:
        raise MaterialsError("No JSON object found in model output")
    try:
        return json.loads(candidate[start:end + 1])
    except ValueError as e:
        raise MaterialsError(f"Malformed JSON in model output: {e}") from e


def _first_problem(error: ValidationError) -> str:
    problem = error.errors()[0]
    location = ".".join(str(part) for part in problem["loc"])
    return f"{location}: {problem['msg']}" if location else problem["msg"]


def _load(model: Type[ModelT], document: Document, what: str) -> ModelT:
    if isinstance(document, str):
        document = extract_json(document)
    if not isinstance(document, dict):
        raise MaterialsError(f"Expected a JSON object for {what}")
    try:
        return model.model_validate(document)
    except ValidationError as e:
        raise MaterialsError(f"Invalid {what} ({_first_problem(e)})") from e


def parse_study_materials(document: Document) -> StudyMaterials:
    """Validate model output (text or decoded JSON) as StudyMaterials."""
    return _load(StudyMaterials, document, "study materials")


def parse_schedule(document: Document) -> StudySchedule:
    """Validate model output (text or decoded JSON) as a StudySchedule."""
    return _load(StudySchedule, document, "schedule")
