"""
API Response Schemas

The request router never touches Starlette response objects directly; it
describes the response it wants with a RouteResult and the endpoint layer
renders it.
"""

from typing import Optional

from pydantic import BaseModel, Field


class RouteResult(BaseModel):
    """HTTP-style outcome of routing a single request."""
    status_code: int = Field(..., description="HTTP status code to send")
    body: str = Field(default="", description="Plain-text response body")
    content: Optional[bytes] = Field(
        default=None,
        description="Raw response bytes sent verbatim instead of body, used by /list"
    )
    location: Optional[str] = Field(
        default=None,
        description="Redirect target, set only for 302 responses"
    )

    @property
    def is_redirect(self) -> bool:
        return self.location is not None
