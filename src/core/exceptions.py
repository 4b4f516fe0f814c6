"""
UAS Ops exception hierarchy.

All application-specific exceptions inherit from DashboardError,
enabling centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime


class DashboardError(Exception):
    """Base exception for all dashboard errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "DASHBOARD_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class MalformedDocumentError(DashboardError):
    """Raised when uploaded markup is not well-formed XML at all."""

    def __init__(self, detail: str = "Invalid KML file") -> None:
        super().__init__(
            detail=detail,
            code="MALFORMED_DOCUMENT",
            status_code=400,
        )


class NoUsablePolygonsError(DashboardError):
    """Raised by callers that treat an empty KML import as a failure."""

    def __init__(self) -> None:
        super().__init__(
            detail="No polygons with at least 3 corners were found in the file",
            code="NO_USABLE_POLYGONS",
            status_code=422,
        )


class DeviceUnavailableError(DashboardError):
    """Raised when the microphone is missing or access is denied."""

    def __init__(self, detail: str = "Microphone access denied or unavailable") -> None:
        super().__init__(
            detail=detail,
            code="DEVICE_UNAVAILABLE",
            status_code=503,
        )


class TranscriptionError(DashboardError):
    """Raised when STT processing fails."""

    def __init__(self, detail: str = "Transcription failed") -> None:
        super().__init__(
            detail=detail,
            code="TRANSCRIPTION_ERROR",
            status_code=502,
        )


class PersistenceError(DashboardError):
    """Raised when the document store rejects a write."""

    def __init__(self, detail: str = "Failed to save document") -> None:
        super().__init__(
            detail=detail,
            code="PERSISTENCE_ERROR",
            status_code=500,
        )


class DocumentNotFoundError(DashboardError):
    """Raised when a document ID does not exist in its collection."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(
            detail=f"Document not found: {collection}/{doc_id}",
            code="DOCUMENT_NOT_FOUND",
            status_code=404,
        )
