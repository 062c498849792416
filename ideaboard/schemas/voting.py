from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ideaboard.models.voting import VotingMode


class RoundCreate(BaseModel):
    mode: VotingMode
    # Recognised keys: totalPoints (dot voting), topN (stock rank), xLabel/yLabel (matrix).
    config: Dict[str, Any] = Field(default_factory=dict)


class RoundResponse(BaseModel):
    round_id: str
    session_id: str
    round_number: int
    mode: VotingMode
    config: Dict[str, Any] = Field(default_factory=dict)
    is_revealed: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DotVoteEntry(BaseModel):
    idea_id: str
    points: float


class StockRankEntry(BaseModel):
    idea_id: str
    rank: float


class MatrixRatingEntry(BaseModel):
    idea_id: str
    x: float
    y: float


class DotVoteSubmission(BaseModel):
    votes: List[DotVoteEntry] = Field(default_factory=list)


class StockRankSubmission(BaseModel):
    rankings: List[StockRankEntry] = Field(default_factory=list)


class MatrixSubmission(BaseModel):
    ratings: List[MatrixRatingEntry] = Field(default_factory=list)


class SubmissionResponse(BaseModel):
    round_id: str
    participant_id: str
    stored: int


class DotVoteResult(BaseModel):
    idea_id: str
    total: float


class StockRankResult(BaseModel):
    idea_id: str
    avg_rank: float
    times_ranked: int


class MatrixResult(BaseModel):
    idea_id: str
    avg_x: float
    avg_y: float
    count: int


class RoundResults(BaseModel):
    round_id: str
    mode: VotingMode
    is_revealed: bool
    results: List[Union[DotVoteResult, StockRankResult, MatrixResult]] = Field(
        default_factory=list
    )


class VotingProgress(BaseModel):
    total: int
    voted: int


class VoteResponse(BaseModel):
    idea_id: str
    value: Any

    model_config = ConfigDict(from_attributes=True)


class ParticipantVoteStatus(BaseModel):
    has_voted: bool
    votes: List[VoteResponse] = Field(default_factory=list)
