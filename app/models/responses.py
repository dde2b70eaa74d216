"""Response bodies returned by the API."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Body of every stub resource endpoint."""

    msg: str


class ErrorResponse(BaseModel):
    """Body of every error reported by the global error stage."""

    title: str
    message: str
