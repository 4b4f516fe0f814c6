"""
Pydantic v2 models shared by the services and the API layer.

Geometry: PlotCorner, ParsedPolygon, plot request / response bodies
Transcription: TranscriptionSegment, TranscriptionResult, TranscribeResponse
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PLOT_NAME = "Unnamed Plot"

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class PlotCorner(BaseModel):
    """A single polygon vertex as stored in the ``plots`` collection."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class ParsedPolygon(BaseModel):
    """A named, render-ready polygon produced by the KML parser.

    Immutable once returned; always carries at least three corners.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(default=DEFAULT_PLOT_NAME, min_length=1)
    corners: tuple[PlotCorner, ...] = Field(min_length=3)


class PlotCreate(BaseModel):
    """POST /plots request body (manual corner entry)."""

    name: str = Field(default=DEFAULT_PLOT_NAME, min_length=1)
    corners: list[PlotCorner] = Field(min_length=3)


class PlotResponse(BaseModel):
    """A stored plot plus the derived fields the map renderer needs."""

    id: str
    name: str = DEFAULT_PLOT_NAME
    corners: list[PlotCorner] = Field(default_factory=list)
    display_corners: list[PlotCorner] = Field(default_factory=list)
    color: str
    created_at: str | None = None


class PlotImportResponse(BaseModel):
    """POST /plots/import response."""

    imported: int
    ids: list[str] = Field(default_factory=list)
    names: list[str] = Field(default_factory=list)


class DeletePlotResponse(BaseModel):
    """DELETE /plots/{id} response."""

    id: str
    deleted: bool = True


# ---------------------------------------------------------------------------
# Transcription
# ---------------------------------------------------------------------------


class TranscriptionSegment(BaseModel):
    """A single transcription segment with timestamps."""

    text: str
    start: float
    end: float
    avg_logprob: float = 0.0
    no_speech_prob: float = 0.0


class TranscriptionResult(BaseModel):
    """Complete transcription result for one audio clip."""

    text: str
    language: str = "unknown"
    duration: float = 0.0
    segments: list[TranscriptionSegment] = Field(default_factory=list)


class TranscribeResponse(BaseModel):
    """POST /api/transcribe success body."""

    text: str
    segments: list[TranscriptionSegment] = Field(default_factory=list)
