"""
loadgen/schemas.py

Request body schemas for the remote data service.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class StatementBatchRequest(BaseModel):
    """
    Body of one batch execution request.
    """

    statements: list[str] = Field(..., min_length=1)


class NamespaceCreateRequest(BaseModel):
    """
    Body of a namespace creation request. The service takes an empty object.
    """
