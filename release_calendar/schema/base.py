"""Shared schema base classes."""

from pydantic import BaseModel


class ORMModel(BaseModel):
    """Base model that can be built from SQLAlchemy rows."""

    model_config = {"from_attributes": True}
