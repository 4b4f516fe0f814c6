"""
Plot REST endpoints.

Listing, manual creation, KML import, and deletion. All endpoints delegate
to ``src.services.plots``.
"""

import logging

from fastapi import APIRouter, File, UploadFile

from src.core.exceptions import MalformedDocumentError
from src.core.models import (
    DeletePlotResponse,
    PlotCreate,
    PlotImportResponse,
    PlotResponse,
)
from src.services import plots as plot_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plots", tags=["plots"])


@router.get("", response_model=list[PlotResponse])
async def list_plots():
    """List all plots, newest first."""
    return await plot_service.list_plots()


@router.post("", response_model=PlotResponse)
async def create_plot(body: PlotCreate):
    """Create a plot from manually entered corners."""
    return await plot_service.create_plot(body)


@router.post("/import", response_model=PlotImportResponse)
async def import_kml(file: UploadFile = File(...)):
    """Import every usable polygon from an uploaded KML file."""
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedDocumentError(f"Invalid KML file: {str(exc)[:200]}") from exc
    logger.info("KML upload %r (%d bytes)", file.filename, len(raw))
    return await plot_service.import_kml(text)


@router.delete("/{plot_id}", response_model=DeletePlotResponse)
async def delete_plot(plot_id: str):
    """Delete a plot."""
    await plot_service.delete_plot(plot_id)
    return DeletePlotResponse(id=plot_id)
