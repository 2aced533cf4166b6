"""Answer payload models.

The queue stores answers as ordered {key, value} pairs; the backend expects
{questionId, value}. to_wire_answers() reshapes one into the other.
"""

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class QueuedAnswer(BaseModel):
    """One answer as persisted in a queued save job."""
    key: str
    value: Any = None


class Answer(BaseModel):
    """One answer in the backend's submit format."""
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(alias="questionId")
    value: Any = None

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


def answers_from_mapping(answers: Mapping[str, Any]) -> list[QueuedAnswer]:
    """Build an ordered queue payload from a question-id -> value mapping."""
    return [QueuedAnswer(key=key, value=value) for key, value in answers.items()]


def to_wire_answers(payload: list[QueuedAnswer]) -> list[Answer]:
    """Reshape a queue payload into the backend's answer format."""
    return [Answer(question_id=item.key, value=item.value) for item in payload]
