from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from evote.timeutils import to_iso_millis


class ElectionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class CandidateIn(BaseModel):
    name: str = Field(..., min_length=1, examples=["Alice"])

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("candidate name must not be blank")
        return v.strip()


class ElectionCreate(BaseModel):
    title: str = Field(..., min_length=1, examples=["Budget Vote"])
    candidates: List[CandidateIn] = Field(..., min_length=1)
    end_at: Optional[datetime] = Field(None, alias="endAt")

    model_config = {"populate_by_name": True}

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()


class Candidate(BaseModel):
    id: str
    name: str


class Election(BaseModel):
    id: str
    title: str
    candidates: List[Candidate]
    status: ElectionStatus = ElectionStatus.OPEN
    published: bool = False
    end_at: Optional[datetime] = None
    created_by: Optional[str] = None
    organization_id: Optional[str] = None
    created_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    published_at: Optional[datetime] = None

    @field_serializer("end_at", "created_at", "closed_at", "published_at", when_used="json-unless-none")
    def serialize_instant(self, value: datetime) -> str:
        return to_iso_millis(value)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Election":
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls(**data)

    def candidate(self, candidate_id: str) -> Optional[Candidate]:
        for c in self.candidates:
            if c.id == candidate_id:
                return c
        return None

    def is_expired(self, now: datetime) -> bool:
        return self.status == ElectionStatus.OPEN and self.end_at is not None and self.end_at < now


class ElectionSummary(BaseModel):
    id: str
    title: str
    status: ElectionStatus
    published: bool
    end_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_serializer("end_at", "created_at", when_used="json-unless-none")
    def serialize_instant(self, value: datetime) -> str:
        return to_iso_millis(value)

    @classmethod
    def from_election(cls, election: Election) -> "ElectionSummary":
        return cls(
            id=election.id,
            title=election.title,
            status=election.status,
            published=election.published,
            end_at=election.end_at,
            created_at=election.created_at,
        )
