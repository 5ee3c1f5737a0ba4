"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field, StrictStr


class AskRequest(BaseModel):
    """Request DTO for asking the chat assistant.

    The handler will convert this to internal calls to the service layer.
    """

    message: StrictStr = Field(..., description="The user's question", min_length=1)
