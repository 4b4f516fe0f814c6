"""Shared plot colour palette used by map polygons and plot list icons."""

PLOT_COLORS = (
    "#cfb991",  # gold (brand)
    "#60a5fa",  # blue
    "#34d399",  # emerald
    "#f472b6",  # pink
    "#a78bfa",  # violet
    "#fbbf24",  # amber
    "#f87171",  # red
    "#2dd4bf",  # teal
)


def get_plot_color(index: int) -> str:
    """Return the palette colour for the plot at ``index`` (cycles)."""
    return PLOT_COLORS[index % len(PLOT_COLORS)]
