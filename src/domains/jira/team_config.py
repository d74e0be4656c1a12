"""Team definition files: one JSON document per team."""

import os
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from utils.data.json_manager import JSONManager

from .employee_activity import Employee, ensure_unique_usernames
from .error import VelocityConfigError


class BaseTeamModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        validate_default=True,
    )


class TeamSettings(BaseTeamModel):
    """Team-level settings."""

    key: str = Field(..., min_length=1, description="Short team key, used in report file names")
    board_id: Optional[int] = Field(None, description="Agile board whose closed sprints define the windows")
    burndown: bool = Field(False, description="Credit the maximum historical story points estimate")
    lookback_days: Optional[int] = Field(
        None, gt=0, description="Calendar lookback when the team has no board"
    )


class MemberSettings(BaseTeamModel):
    """One team member and their tenure."""

    jira_username: str = Field(..., min_length=1)
    start_date: date
    end_date: Optional[date] = None

    @field_validator("end_date", mode="before")
    @classmethod
    def blank_end_date(cls, value):
        if isinstance(value, str) and value.strip().lower() in ("", "null", "none"):
            return None
        return value

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError(f"end_date {self.end_date} is before start_date {self.start_date}")
        return self

    def to_employee(self) -> Employee:
        return Employee(username=self.jira_username, start_date=self.start_date, end_date=self.end_date)


class TeamConfig(BaseTeamModel):
    """A team file: ``{"team": {...}, "members": [...]}``."""

    team: TeamSettings
    members: List[MemberSettings] = Field(..., min_length=1)

    def employees(self) -> List[Employee]:
        employees = [member.to_employee() for member in self.members]
        ensure_unique_usernames(employees)
        return employees


def load_team_config(file_path: str) -> TeamConfig:
    """
    Read and validate a team file.

    Raises:
        VelocityConfigError: If the file is missing, is not JSON or fails validation.
    """
    if not os.path.isfile(file_path):
        raise VelocityConfigError("Team file not found", file=file_path)
    try:
        data = JSONManager.read_json(file_path)
    except ValueError as e:
        raise VelocityConfigError("Team file is not valid JSON", file=file_path, error=str(e)) from e

    try:
        return TeamConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
        )
        raise VelocityConfigError("Invalid team file", file=file_path, errors=problems) from e
