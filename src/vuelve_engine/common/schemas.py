"""Shared Pydantic schemas for Vuelve-Engine."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "vuelve-engine"


class ErrorResponse(BaseModel):
    error: str
    code: str = ""
