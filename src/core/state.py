"""
Shared application state passed explicitly to the components that use it.

Each object has a single writer: the navigation layer owns the auto-record
intent, the plot service owner refreshes the plot list.
"""

import logging
from collections.abc import Awaitable, Callable

from src.core.models import PlotResponse

logger = logging.getLogger(__name__)


class VoiceCommandState:
    """One-shot "start recording" intent set by a navigation action."""

    def __init__(self) -> None:
        self.should_auto_record = False

    def trigger_auto_record(self) -> None:
        self.should_auto_record = True

    def clear_auto_record(self) -> None:
        self.should_auto_record = False


class PlotsState:
    """Last-known plot list shared by the overview widgets.

    Args:
        loader: Async callable returning the current plots, newest first.
    """

    def __init__(self, loader: Callable[[], Awaitable[list[PlotResponse]]]) -> None:
        self._loader = loader
        self.plots: list[PlotResponse] = []
        self.is_loading = True

    async def refresh(self) -> list[PlotResponse]:
        """Reload plots; on failure keep the previous list and stop loading."""
        try:
            self.plots = await self._loader()
        except Exception:
            logger.exception("Failed to load plots")
        finally:
            self.is_loading = False
        return self.plots
