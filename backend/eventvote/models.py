from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

SectionType = Literal["single-select", "multi-select", "text-input"]
SELECT_TYPES = ("single-select", "multi-select")


class Option(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    imageUrl: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("option name must not be blank")
        return v2


class Section(BaseModel):
    id: str = Field(min_length=1, max_length=100)
    label: str = Field(min_length=1, max_length=300)
    type: SectionType
    required: bool = False
    options: List[Option] = Field(default_factory=list)
    minSelections: Optional[int] = None
    maxSelections: Optional[int] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "Section":
        if self.type in SELECT_TYPES:
            if not self.options:
                raise ValueError(f"section '{self.label}' must have at least one option")
            names = [o.name for o in self.options]
            if len(set(names)) != len(names):
                raise ValueError(f"section '{self.label}' has duplicate option names")
        elif self.options:
            raise ValueError(f"text section '{self.label}' cannot have options")

        if self.type == "multi-select":
            if self.minSelections is not None and self.minSelections < 0:
                raise ValueError(f"section '{self.label}': minSelections must be >= 0")
            if self.maxSelections is not None and self.maxSelections < 1:
                raise ValueError(f"section '{self.label}': maxSelections must be >= 1")
            if (
                self.minSelections is not None
                and self.maxSelections is not None
                and self.minSelections > self.maxSelections
            ):
                raise ValueError(f"section '{self.label}': minSelections cannot exceed maxSelections")
            if self.minSelections is not None and self.minSelections > len(self.options):
                raise ValueError(f"section '{self.label}': minSelections exceeds the number of options")
        return self

    def option_names(self) -> List[str]:
        return [o.name for o in self.options]

    def selection_bounds(self) -> Tuple[int, int]:
        """Inclusive (min, max) list length accepted for a multi-select answer."""
        low = 1 if self.minSelections is None else self.minSelections
        high = len(self.options) if self.maxSelections is None else self.maxSelections
        return low, high


class CreateVotingPayload(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    date: Optional[str] = Field(default=None, max_length=100)
    sections: List[Section] = Field(min_length=1)
    activate: bool = True

    @model_validator(mode="after")
    def _unique_section_ids(self) -> "CreateVotingPayload":
        ids = [s.id for s in self.sections]
        if len(set(ids)) != len(ids):
            raise ValueError("section ids must be unique within a voting session")
        return self


class VotePayload(BaseModel):
    companyId: str = Field(min_length=1)
    votingSessionId: str = Field(min_length=1)
    # Values are checked per section by voting.validator, which names the label;
    # unknown keys are dropped there rather than rejected here.
    votes: Dict[str, Any]
    deviceId: Optional[str] = Field(default=None, max_length=200)


class VoteResponse(BaseModel):
    success: bool
    message: str
    canVoteAgainAt: str


class CreateCompanyPayload(BaseModel):
    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("Company name is required")
        return v2


class LoginPayload(BaseModel):
    password: str = Field(min_length=1, max_length=256)


class LoginResponse(BaseModel):
    token: str


class CompanyOut(BaseModel):
    id: str
    name: str
