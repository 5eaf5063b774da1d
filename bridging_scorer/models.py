"""
Pydantic models for ratings, note scores, and the scoring API.

Field names are snake_case in Python and camelCase on the wire
(noteId, raterDid, ratingCount, ...), matching the rating records the
upstream application stores.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# Enums
# =============================================================================


class NoteStatus(str, Enum):
    """Status of a note derived from its fitted intercept and factor."""
    CURRENTLY_RATED_HELPFUL = "CRH"
    CURRENTLY_RATED_NOT_HELPFUL = "CRNH"
    NEEDS_MORE_RATINGS = "NMR"


class HelpfulnessLevel(str, Enum):
    """Rating levels for note helpfulness."""
    HELPFUL = "helpful"
    SOMEWHAT_HELPFUL = "somewhat_helpful"
    NOT_HELPFUL = "not_helpful"

    @property
    def value_num(self) -> float:
        return HELPFULNESS_NUM[self]


HELPFULNESS_NUM = {
    HelpfulnessLevel.HELPFUL: 1.0,
    HelpfulnessLevel.SOMEWHAT_HELPFUL: 0.5,
    HelpfulnessLevel.NOT_HELPFUL: 0.0,
}

HELPFULNESS_VALUES = frozenset(HELPFULNESS_NUM.values())


class LabelAction(str, Enum):
    """What the upstream labeler should do after a status change."""
    PUBLISH = "publish"   # CRH -> annotation, NMR -> proposed annotation
    NEGATE = "negate"     # CRNH -> retract any existing label


class DisputeOutcome(str, Enum):
    """Resolution of a pending dispute."""
    APPROVED = "approved"   # dispute note reached CRH
    REJECTED = "rejected"   # dispute note reached CRNH


# =============================================================================
# Core Records
# =============================================================================


class Rating(BaseModel):
    """A single helpfulness rating of a note by a rater."""

    note_id: str = Field(..., min_length=1, description="ID of the rated note")
    rater_did: str = Field(..., min_length=1, description="DID of the rater")
    helpfulness: float = Field(
        ...,
        description="0.0 (not helpful), 0.5 (somewhat helpful) or 1.0 (helpful)"
    )

    class Config:
        frozen = True
        alias_generator = to_camel
        populate_by_name = True

    @field_validator('helpfulness', mode='before')
    @classmethod
    def level_to_number(cls, v):
        """Accept helpfulness level names as well as numbers."""
        if isinstance(v, HelpfulnessLevel):
            return v.value_num
        if isinstance(v, str):
            try:
                return HelpfulnessLevel(v.strip().lower()).value_num
            except ValueError:
                pass
        return v

    @field_validator('helpfulness')
    @classmethod
    def validate_helpfulness(cls, v):
        """Ensure the value is one of the three rating levels."""
        if v not in HELPFULNESS_VALUES:
            raise ValueError(
                f'helpfulness must be one of {sorted(HELPFULNESS_VALUES)}, got {v}'
            )
        return v


class NoteScore(BaseModel):
    """Scoring output for one note."""

    note_id: str
    intercept: float
    factor: float
    rating_count: int
    status: NoteStatus

    class Config:
        frozen = True
        alias_generator = to_camel
        populate_by_name = True


class StatusTransition(BaseModel):
    """A note whose status differs from its previously stored status."""

    note_id: str
    old_status: Optional[NoteStatus] = None
    new_status: NoteStatus

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LabelOperation(BaseModel):
    """A label change the upstream labeler should apply."""

    note_id: str
    action: LabelAction
    status: NoteStatus

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class PendingDispute(BaseModel):
    """An open dispute: a note written to contest another note."""

    dispute_id: str = Field(..., min_length=1)
    dispute_note_id: str = Field(..., min_length=1, description="The note making the dispute")
    target_note_id: str = Field(..., min_length=1, description="The note being disputed")

    class Config:
        frozen = True
        alias_generator = to_camel
        populate_by_name = True


class DisputeResolution(BaseModel):
    """A dispute closed by this run's statuses."""

    dispute_id: str
    dispute_note_id: str
    target_note_id: str
    outcome: DisputeOutcome
    negate_target: bool = False

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# =============================================================================
# Request Models
# =============================================================================


class ScoreRequest(BaseModel):
    """Request to score a complete set of ratings."""

    ratings: List[Rating] = Field(
        default_factory=list,
        description="Every rating to score; no sort order required"
    )
    previous_statuses: Dict[str, NoteStatus] = Field(
        default_factory=dict,
        description="Currently stored status per note, used to report transitions"
    )
    pending_disputes: List[PendingDispute] = Field(
        default_factory=list,
        description="Open disputes to resolve against the new statuses"
    )
    seed: Optional[int] = Field(
        default=None,
        description="Seed for factor initialization (None = configured or random)"
    )

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class StatusRequest(BaseModel):
    """Request to classify a fitted (intercept, factor) pair."""

    intercept: float
    factor: float = 0.0


# =============================================================================
# Response Models
# =============================================================================


class StatusResponse(BaseModel):
    """Derived status for an (intercept, factor) pair."""

    intercept: float
    factor: float
    status: NoteStatus


class ScoringResultResponse(BaseModel):
    """Response from a scoring run."""

    success: bool
    scores: List[NoteScore]
    notes_scored: int
    notes_fitted: int
    ratings_received: int
    ratings_used: int
    status_counts: Dict[str, int] = Field(default_factory=dict)
    transitions: List[StatusTransition] = Field(default_factory=list)
    label_operations: List[LabelOperation] = Field(default_factory=list)
    dispute_resolutions: List[DisputeResolution] = Field(default_factory=list)
    duration_seconds: float
    errors: List[str] = Field(default_factory=list)
    scored_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    last_scoring_run: Optional[datetime] = None
    last_run_success: Optional[bool] = None
