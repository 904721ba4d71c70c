"""Pydantic schemas for the generate endpoint."""

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class GenerateRequest(BaseModel):
    """Body of ``POST /generate``.

    ``email`` is optional at the schema level so a missing or blank value
    surfaces as the endpoint's own validation error instead of a 422.
    """

    email: StrictStr | None = Field(
        default=None,
        description="Raw customer email the replies should answer.",
    )


class ResponseBundle(BaseModel):
    """The three tone variants of a reply draft.

    Strict: all three fields are required, must be non-blank strings, and no
    other keys are accepted. Upstream output that does not fit this shape is
    treated as a generation failure rather than partially returned.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    professional: StrictStr = Field(..., min_length=1, pattern=r"\S")
    friendly: StrictStr = Field(..., min_length=1, pattern=r"\S")
    brief: StrictStr = Field(..., min_length=1, pattern=r"\S")


class GenerateResponse(BaseModel):
    """Successful result envelope."""

    responses: ResponseBundle


class ErrorResponse(BaseModel):
    """Error envelope; ``error`` is a stable human-readable string."""

    error: str
