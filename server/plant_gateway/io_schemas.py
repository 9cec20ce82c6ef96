from pydantic import BaseModel


class DiagnosisResponse(BaseModel):
    solution: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    model: str
    provider_configured: bool
