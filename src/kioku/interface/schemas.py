"""Input schemas for files handed to the CLI."""

from pydantic import BaseModel, Field, model_validator

from kioku.domain.progress.models import AnswerResult


class ResultEntry(BaseModel):
    item_id: str
    correct: bool


class SessionResultsFile(BaseModel):
    """
    A finished study session, as written by the session orchestrator.

    total_items defaults to the number of results (a full completion).
    """

    collection_id: str
    start_time: int
    end_time: int
    total_items: int | None = Field(default=None, ge=0)
    results: list[ResultEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_times(self) -> "SessionResultsFile":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self

    def answer_results(self) -> list[AnswerResult]:
        return [AnswerResult(item_id=r.item_id, correct=r.correct) for r in self.results]

    @property
    def expected_items(self) -> int:
        return len(self.results) if self.total_items is None else self.total_items
