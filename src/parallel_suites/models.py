from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SuiteWeight(BaseModel):
    suite_id: str
    duration_ms: float = Field(ge=0)
    normalized_weight: float = Field(default=0.0, ge=0)


class WeightTable(BaseModel):
    weights: dict[str, SuiteWeight] = Field(default_factory=dict)

    def get(self, suite_id: str) -> SuiteWeight | None:
        return self.weights.get(suite_id)

    def __len__(self) -> int:
        return len(self.weights)


class ErrorRecord(BaseModel):
    suite_id: str
    test_name: str
    message: str = ""


class SuiteResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    suite_id: str = Field(min_length=1)
    duration_ms: float = Field(ge=0)
    pass_count: int = Field(default=0, ge=0)
    fail_count: int = Field(default=0, ge=0)
    pending_count: int = Field(default=0, ge=0)
    errors: list[ErrorRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _errors_require_failures(self) -> SuiteResult:
        if self.errors and self.fail_count == 0:
            raise ValueError("errors recorded for a suite without failures")
        for error in self.errors:
            if error.suite_id != self.suite_id:
                raise ValueError(
                    f"error record for {error.suite_id} inside result for {self.suite_id}"
                )
        return self

    @property
    def test_count(self) -> int:
        return self.pass_count + self.fail_count + self.pending_count


class WorkerGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    members: tuple[str, ...] = ()
    total_weight: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.members


@dataclass(frozen=True)
class RunSummary:
    suite_count: int = 0
    total_duration_ms: float = 0.0
    total_tests: int = 0
    total_passes: int = 0
    total_failures: int = 0
    total_pending: int = 0
    missing: tuple[str, ...] = field(default_factory=tuple)
