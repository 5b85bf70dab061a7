"""Backoff controller output schema."""

from pydantic import BaseModel, Field


class AttemptDecision(BaseModel):
    """Whether the next attempt for an identifier may proceed."""
    
    allowed: bool = Field(..., description="Attempt may proceed now")
    wait_ms: int = Field(default=0, ge=0, description="Milliseconds until it may proceed")
    attempts: int = Field(default=0, ge=0, description="Consecutive failures on record")
    max_attempts: int = Field(..., ge=1, description="Failures that trigger full lockout")
    locked_out: bool = Field(default=False, description="Full lockout rather than soft backoff")
    message: str = Field(default="", description="Human-readable reason when denied")
    
    model_config = {
        "json_schema_extra": {
            "example": {
                "allowed": False,
                "wait_ms": 4000,
                "attempts": 3,
                "max_attempts": 10,
                "locked_out": False,
                "message": "Please wait 4 seconds before trying again.",
            }
        }
    }
    
    @property
    def remaining_attempts(self) -> int:
        return max(0, self.max_attempts - self.attempts)
