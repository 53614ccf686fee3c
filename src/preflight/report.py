from __future__ import annotations

"""Report schema.

CONTRACT
- Inputs: Requirement tokens and the CheckResult they produced
- Outputs:
  - CheckReport, JSON-serializable via model_dump()/model_dump_json()
- Invariants:
  - schema_version int field
  - ok=True implies code=0 and an empty message
- Failure:
  - Raises ValidationError on schema mismatch
"""

from pydantic import BaseModel, Field, model_validator

from .model import CheckResult, Requirement


class CheckReport(BaseModel):
    schema_version: int = 1
    requirement: list[str] = Field(default_factory=list)
    ok: bool
    code: int = 0
    message: str = ""
    caller: str | None = None

    @model_validator(mode="after")
    def _success_is_clean(self) -> CheckReport:
        if self.ok and (self.code != 0 or self.message):
            raise ValueError("successful report must have code 0 and no message")
        return self

    @classmethod
    def from_result(
        cls, requirement: Requirement, result: CheckResult, caller: str | None = None
    ) -> CheckReport:
        return cls(
            requirement=list(requirement.tokens),
            ok=result.ok,
            code=result.code,
            message=result.message,
            caller=caller,
        )
