"""KML polygon ingestion.

Extracts every ``Placemark`` that carries a ``Polygon`` and converts the
outer ring's ``lng,lat[,alt]`` tuples into ``PlotCorner`` objects. Elements
are matched by local name so both namespaced (KML 2.2) and bare documents
are accepted.
"""

import logging
import math
import xml.etree.ElementTree as ET
from collections.abc import Iterator

from src.core.exceptions import MalformedDocumentError
from src.core.models import DEFAULT_PLOT_NAME, ParsedPolygon, PlotCorner

logger = logging.getLogger(__name__)

_RING_PATH = ("outerBoundaryIs", "LinearRing", "coordinates")


def _local_name(tag) -> str:
    """Strip the ``{namespace}`` prefix from an element tag."""
    if not isinstance(tag, str):
        return ""  # comments / processing instructions
    return tag.rsplit("}", 1)[-1]


def _descendants(element: ET.Element, name: str) -> Iterator[ET.Element]:
    """Yield descendants of ``element`` named ``name`` in document order."""
    for child in element.iter():
        if child is not element and _local_name(child.tag) == name:
            yield child


def _first_descendant(element: ET.Element, name: str) -> ET.Element | None:
    return next(_descendants(element, name), None)


def _children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    return (child for child in element if _local_name(child.tag) == name)


def _find_ring_coordinates(polygon: ET.Element) -> ET.Element | None:
    """Return the first ``outerBoundaryIs > LinearRing > coordinates`` element."""
    for boundary in _descendants(polygon, _RING_PATH[0]):
        for ring in _children(boundary, _RING_PATH[1]):
            for coords in _children(ring, _RING_PATH[2]):
                return coords
    return None


def parse_coordinates(text: str) -> list[PlotCorner]:
    """Parse a KML coordinate string into corners.

    Tuples are whitespace separated, components comma separated, in
    ``lng,lat[,alt]`` order. Tuples with fewer than two components or a
    non-finite longitude / latitude are dropped. If the ring repeats its
    first point at the end, the closing duplicate is removed.

    Args:
        text: Raw text of a ``<coordinates>`` element.

    Returns:
        Corners in source order (may hold fewer than three entries).
    """
    corners: list[PlotCorner] = []
    for token in text.split():
        parts = token.split(",")
        if len(parts) < 2:
            continue
        try:
            lng = float(parts[0])
            lat = float(parts[1])
        except ValueError:
            continue
        if not (math.isfinite(lat) and math.isfinite(lng)):
            continue
        corners.append(PlotCorner(lat=lat, lng=lng))

    # KML rings repeat the first coordinate at the end
    if len(corners) > 1 and corners[0] == corners[-1]:
        corners.pop()
    return corners


def parse_kml(kml_text: str) -> list[ParsedPolygon]:
    """Parse a KML document and return all usable polygon placemarks.

    Placemarks without a ``Polygon``, without ring coordinates, or with
    fewer than three distinct ring corners are skipped silently. An empty
    list is a valid result.

    Args:
        kml_text: Full text content of the uploaded file.

    Returns:
        Polygons in placemark document order.

    Raises:
        MalformedDocumentError: If the text is not well-formed XML.
    """
    try:
        root = ET.fromstring(kml_text)
    except ET.ParseError as exc:
        raise MalformedDocumentError(detail=f"Invalid KML file: {str(exc)[:200]}") from exc

    placemarks = [root] if _local_name(root.tag) == "Placemark" else []
    placemarks.extend(_descendants(root, "Placemark"))

    results: list[ParsedPolygon] = []
    for placemark in placemarks:
        polygon = _first_descendant(placemark, "Polygon")
        if polygon is None:
            continue

        name_el = _first_descendant(placemark, "name")
        name = (name_el.text or "").strip() if name_el is not None else ""

        coords_el = _find_ring_coordinates(polygon)
        if coords_el is None or not coords_el.text:
            continue

        corners = parse_coordinates(coords_el.text)
        if len(corners) < 3:
            logger.debug("Skipping placemark %r: only %d usable corners", name, len(corners))
            continue

        results.append(ParsedPolygon(name=name or DEFAULT_PLOT_NAME, corners=tuple(corners)))

    logger.info("Parsed %d polygon(s) from %d placemark(s)", len(results), len(placemarks))
    return results
