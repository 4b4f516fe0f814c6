"""Plot service: KML import, manual plots, and render-ready listings.

KML imports write one document per polygon, each in its own transaction,
so a failure part-way leaves the earlier plots saved.
"""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from src.core.exceptions import NoUsablePolygonsError, PersistenceError
from src.core.models import (
    DEFAULT_PLOT_NAME,
    ParsedPolygon,
    PlotCorner,
    PlotCreate,
    PlotImportResponse,
    PlotResponse,
)
from src.services.geometry import get_plot_color, order_corners_for_display, parse_kml
from src.services.storage.database import get_session
from src.services.storage.models_db import Collection
from src.services.storage.repository import DocumentRepository

logger = logging.getLogger(__name__)


def _plot_document(name: str, corners: Sequence[PlotCorner]) -> dict:
    return {
        "name": name,
        "corners": [corner.model_dump() for corner in corners],
        "createdAt": datetime.now(UTC).isoformat(),
    }


def to_plot_response(doc: dict, index: int) -> PlotResponse:
    """Build the API view of a stored plot.

    Display corners are recomputed on every read; stored corners keep
    whatever order they were saved in.
    """
    corners = [PlotCorner(**corner) for corner in doc.get("corners", [])]
    ordered = order_corners_for_display([(c.lat, c.lng) for c in corners])
    return PlotResponse(
        id=doc["id"],
        name=doc.get("name") or DEFAULT_PLOT_NAME,
        corners=corners,
        display_corners=[PlotCorner(lat=lat, lng=lng) for lat, lng in ordered],
        color=get_plot_color(index),
        created_at=doc.get("createdAt"),
    )


async def save_polygons(polygons: Sequence[ParsedPolygon]) -> list[str]:
    """Create one plot document per polygon.

    Returns:
        IDs of the created documents, in input order.

    Raises:
        PersistenceError: If any create fails. Plots saved before the
            failure are kept.
    """
    ids: list[str] = []
    for polygon in polygons:
        try:
            async with get_session() as session:
                repo = DocumentRepository(session)
                doc_id = await repo.add_document(
                    Collection.plots, _plot_document(polygon.name, polygon.corners)
                )
        except Exception as exc:
            logger.exception(
                "Failed to save plot %r (%d of %d saved)", polygon.name, len(ids), len(polygons)
            )
            raise PersistenceError(detail="Failed to save plots. Please try again.") from exc
        ids.append(doc_id)
    return ids


async def import_kml(kml_text: str) -> PlotImportResponse:
    """Parse a KML upload and store every usable polygon as a plot.

    Raises:
        MalformedDocumentError: If the file is not well-formed XML.
        NoUsablePolygonsError: If no placemark yields a 3+ corner polygon.
        PersistenceError: If saving fails part-way.
    """
    polygons = parse_kml(kml_text)
    if not polygons:
        raise NoUsablePolygonsError()
    ids = await save_polygons(polygons)
    logger.info("Imported %d plot(s) from KML", len(ids))
    return PlotImportResponse(
        imported=len(ids),
        ids=ids,
        names=[polygon.name for polygon in polygons],
    )


async def create_plot(body: PlotCreate) -> PlotResponse:
    """Store a manually entered plot."""
    name = body.name.strip() or DEFAULT_PLOT_NAME
    async with get_session() as session:
        repo = DocumentRepository(session)
        doc_id = await repo.add_document(Collection.plots, _plot_document(name, body.corners))
        doc = await repo.get_document(Collection.plots, doc_id)
    return to_plot_response(doc, 0)


async def list_plots() -> list[PlotResponse]:
    """Return all plots, newest first, with display corners and colours."""
    async with get_session() as session:
        repo = DocumentRepository(session)
        docs = await repo.list_documents(Collection.plots, newest_first=True)
    return [to_plot_response(doc, index) for index, doc in enumerate(docs)]


async def delete_plot(plot_id: str) -> None:
    """Delete a plot or raise ``DocumentNotFoundError``."""
    async with get_session() as session:
        repo = DocumentRepository(session)
        await repo.delete_document(Collection.plots, plot_id)
