from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class VoteIn(BaseModel):
    candidate_id: str = Field(..., alias="candidateId")

    model_config = {"populate_by_name": True}


class Ballot(BaseModel):
    id: Optional[str] = None
    election_id: str
    voter_id: str
    candidate_id: str
    organization_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Ballot":
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        data["election_id"] = str(data["election_id"])
        return cls(**data)
