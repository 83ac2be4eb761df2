"""Request bodies. Identifiers are optional here so the core can answer 400 instead of 422."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TeamCreate(_Body):
    name: Optional[str] = None


class RunStart(_Body):
    team_id: Optional[str] = Field(None, alias="teamId")
    route_id: Optional[str] = Field(None, alias="routeId")


class RunFinish(_Body):
    run_id: Optional[str] = Field(None, alias="runId")


class AnswerSubmission(_Body):
    run_id: Optional[str] = Field(None, alias="runId")
    stop_id: Optional[str] = Field(None, alias="stopId")
    answer: Optional[str] = None

    @field_validator("answer", mode="before")
    @classmethod
    def _answer_as_text(cls, value):
        # Numeric answers ("1880") arrive as JSON numbers from some clients
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return value


class HintRequest(_Body):
    run_id: Optional[str] = Field(None, alias="runId")
    stop_id: Optional[str] = Field(None, alias="stopId")
