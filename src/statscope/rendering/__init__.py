"""Figure rendering (matplotlib / seaborn)."""

from .figures import (
    RenderedFigure,
    draw_heatmap,
    render_bivariate,
    render_heatmap,
    render_univariate,
)

__all__ = [
    "RenderedFigure",
    "draw_heatmap",
    "render_bivariate",
    "render_heatmap",
    "render_univariate",
]
