"""
Synchronous HTTP client for the UAS Ops backend API.

Uses ``httpx.Client`` (sync) because Streamlit scripts run synchronously.
"""

import logging

import httpx
import streamlit as st

logger = logging.getLogger(__name__)


class APIError(Exception):
    """User-friendly API error with categorized message.

    Categories: "connection", "timeout", "http", "network", "unknown".
    Used by the UI to display appropriate error messages.
    """

    def __init__(self, message: str, category: str = "unknown") -> None:
        self.message = message
        self.category = category
        super().__init__(message)


class APIClient:
    """Thin synchronous wrapper around httpx for calling the FastAPI backend.

    All methods return parsed JSON or raise ``APIError`` with user-friendly
    messages for display in the UI.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL of the FastAPI backend.
            transport: Optional httpx transport (used in tests).
        """
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=30.0, transport=transport)

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with user-friendly error handling.

        Args:
            method: HTTP method name ("get", "post", "delete").
            path: API endpoint path (e.g. "/api/v1/plots").
            **kwargs: Passed through to httpx (json, files, timeout, etc.).

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                "Backend server is not running. "
                "Start it with: `uvicorn src.api.app:app --reload --port 8000`",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError(
                "Request timed out. The server may be overloaded.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                body = exc.response.json()
                # Plot routes use "detail", the transcribe route uses "error"
                detail = body.get("detail") or body.get("error") or exc.response.text
            except Exception:
                detail = exc.response.text or str(exc)
            raise APIError(str(detail), category="http") from None
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}", category="network") from None

    # -- health --

    def health_check(self) -> dict:
        return self._request("get", "/health").json()

    def check_connection(self) -> tuple[bool, str]:
        """Check if the backend is reachable. Returns (ok, message)."""
        try:
            self.health_check()
            return True, "Connected"
        except APIError as exc:
            return False, exc.message

    # -- plots --

    def list_plots(self) -> list[dict]:
        return self._request("get", "/api/v1/plots").json()

    def create_plot(self, name: str, corners: list[dict]) -> dict:
        return self._request(
            "post", "/api/v1/plots", json={"name": name, "corners": corners}
        ).json()

    def import_kml(self, filename: str, data: bytes) -> dict:
        """Upload a KML file; returns the import summary."""
        return self._request(
            "post",
            "/api/v1/plots/import",
            files={"file": (filename, data, "application/vnd.google-earth.kml+xml")},
        ).json()

    def delete_plot(self, plot_id: str) -> dict:
        return self._request("delete", f"/api/v1/plots/{plot_id}").json()

    # -- transcription --

    def transcribe(self, audio: bytes, filename: str = "recording.wav", mime: str = "audio/wav") -> dict:
        """Submit one clip for transcription. No timeout: hosted STT can be slow."""
        return self._request(
            "post",
            "/api/transcribe",
            files={"audio": (filename, audio, mime)},
            timeout=None,
        ).json()


@st.cache_resource
def get_api_client(base_url: str = "http://localhost:8000") -> APIClient:
    """Return a cached APIClient, keyed by base_url.

    Uses Streamlit's ``cache_resource`` to persist the client across reruns.
    When the base URL changes (e.g. user updates sidebar), a new client
    is created automatically because the cache key includes the parameter.
    """
    return APIClient(base_url=base_url)
