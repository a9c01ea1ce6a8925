from pydantic import BaseModel, ConfigDict, Field


class PreferencesInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cleanliness: float | None = Field(default=None, ge=0, le=100)
    noiseLevel: float | None = Field(default=None, ge=0, le=100)
    smoking: float | None = Field(default=None, ge=0, le=100)
    pets: float | None = Field(default=None, ge=0, le=100)
    guests: float | None = Field(default=None, ge=0, le=100)
    sleepSchedule: float | None = Field(default=None, ge=0, le=100)
    budget: float | None = Field(default=None, ge=0, le=100)
    leaseLength: float | None = Field(default=None, ge=0, le=100)


class ProfileInput(BaseModel):
    display_name: str | None = None
    gender: str | None = None
    gender_preference: list[str] = Field(default_factory=list)
    neighborhoods: list[str] = Field(default_factory=list)
    preferences: PreferencesInput | None = None
    open_to_non_matches: bool = False
    profile_complete: bool = True


class LikeRequest(BaseModel):
    liked_id: str


class PassRequest(BaseModel):
    passed_id: str


class BlockRequest(BaseModel):
    blocked_id: str


class ReportRequest(BaseModel):
    reported_id: str
    reason: str | None = None
    details: str | None = None
    context: str = "match"


class SendMessageRequest(BaseModel):
    recipient_id: str
    body: str


class LikeResponse(BaseModel):
    is_match: bool


class GateResponse(BaseModel):
    allowed: bool
    reason: str
    message: str | None = None
    remaining_direct_messages: int | None = None
