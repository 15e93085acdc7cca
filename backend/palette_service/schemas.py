"""
Palette Service API Schemas
Pydantic models for palette extraction responses.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class SwatchEntry(BaseModel):
    """Single color in a palette with its dominance metric."""
    hex: str = Field(
        ...,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Hex color code in format #RRGGBB, case as reported by the backend"
    )
    rgb: Optional[List[int]] = Field(
        None,
        min_length=3,
        max_length=3,
        description="RGB triple (cluster backend only)"
    )
    dominance: float = Field(
        ...,
        ge=0.0,
        description="Ranking signal: approximate percentage (remote) or pixel population (cluster)"
    )


class PaletteResponse(BaseModel):
    """Palette ordered by dominance, most dominant first, no duplicate hex values."""
    colors: List[SwatchEntry] = Field(..., description="Ranked palette")


class ErrorResponse(BaseModel):
    """Error response."""
    error: str = Field(..., description="Error message")
    details: Optional[str] = Field(None, description="Upstream body or underlying message")


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("palette-extraction", description="Service name")
    backends: Dict[str, bool] = Field(..., description="Whether each backend is configured")
