from pydantic import BaseModel


class DeleteResult(BaseModel):
    """Outcome of a delete request; ``deleted`` is False when nothing was stored."""

    deleted: bool
    message: str
