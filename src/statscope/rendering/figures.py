# rendering/figures.py
"""
Figures drawn from engine descriptors.

Every renderer returns a ``RenderedFigure`` holding the same figure as
PNG bytes and SVG markup. Renderers never look at the table itself;
they only draw what the descriptors contain.
"""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402
from matplotlib.axes import Axes  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from statscope.config import RenderSettings  # noqa: E402
from statscope.engine.types import (  # noqa: E402
    BivariateDescriptors,
    UnivariateDescriptors,
)

logger = logging.getLogger(__name__)

_FIT_STYLES = {
    "line": {"color": "tab:red", "label": "OLS line"},
    "lowess": {"color": "tab:green", "label": "LOWESS"},
    "polynomial": {"color": "tab:purple", "label": "Polynomial"},
}


@dataclass
class RenderedFigure:
    """Raster + vector rendition of one figure."""

    png: bytes
    svg: str

    def to_dict(self) -> dict[str, str]:
        return {
            "png_base64": base64.b64encode(self.png).decode("ascii"),
            "svg": self.svg,
        }


# ═══════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════
def _new_figure(cfg: RenderSettings, size: tuple[float, float] | None = None) -> tuple[Figure, Axes]:
    # standalone figures, not registered with pyplot, so worker threads share no state
    fig = Figure(figsize=size or (cfg.figure_width, cfg.figure_height), dpi=cfg.dpi)
    return fig, fig.subplots()


def _export(fig: Figure, cfg: RenderSettings) -> RenderedFigure:
    fig.tight_layout()
    png = io.BytesIO()
    fig.savefig(png, format="png", dpi=cfg.dpi, bbox_inches="tight")
    svg = io.StringIO()
    fig.savefig(svg, format="svg", bbox_inches="tight")
    return RenderedFigure(png=png.getvalue(), svg=svg.getvalue())


# ═══════════════════════════════════════════════════════════════
#  Univariate
# ═══════════════════════════════════════════════════════════════
def render_univariate(
    desc: UnivariateDescriptors,
    settings: RenderSettings | None = None,
) -> dict[str, RenderedFigure | None]:
    """KDE, box plot and Q-Q plot; a view is ``None`` when its descriptor is absent."""
    cfg = settings or RenderSettings()
    figures: dict[str, RenderedFigure | None] = {"kde": None, "box": None, "qq": None}

    if desc.kde is not None:
        fig, ax = _new_figure(cfg)
        ax.plot(desc.kde.x, desc.kde.density, color="tab:blue")
        ax.fill_between(desc.kde.x, desc.kde.density, alpha=0.3, color="tab:blue")
        if desc.qq is not None:
            sns.rugplot(x=np.asarray(desc.qq.ordered), ax=ax, color="tab:gray")
        ax.set_title(f"Density of {desc.column}")
        ax.set_xlabel(desc.column)
        ax.set_ylabel("Density")
        figures["kde"] = _export(fig, cfg)

    if desc.box is not None:
        box = desc.box
        fig, ax = _new_figure(cfg)
        ax.bxp(
            [
                {
                    "label": desc.column,
                    "med": box.median,
                    "q1": box.q1,
                    "q3": box.q3,
                    "whislo": box.whisker_low,
                    "whishi": box.whisker_high,
                    "fliers": box.fliers,
                }
            ],
            showfliers=True,
        )
        ax.set_title(f"Box plot of {desc.column}")
        figures["box"] = _export(fig, cfg)

    if desc.qq is not None:
        qq = desc.qq
        fig, ax = _new_figure(cfg)
        theoretical = np.asarray(qq.theoretical)
        ax.scatter(theoretical, qq.ordered, s=12, color="tab:blue")
        ax.plot(theoretical, qq.slope * theoretical + qq.intercept, color="tab:red")
        ax.set_title(f"Q-Q plot of {desc.column} vs {qq.reference.value}")
        ax.set_xlabel("Theoretical quantiles")
        ax.set_ylabel("Ordered values")
        figures["qq"] = _export(fig, cfg)

    logger.debug(
        "rendered univariate figures for '%s': %s",
        desc.column,
        [k for k, v in figures.items() if v is not None],
    )
    return figures


# ═══════════════════════════════════════════════════════════════
#  Bivariate / heatmap
# ═══════════════════════════════════════════════════════════════
def render_bivariate(
    desc: BivariateDescriptors,
    settings: RenderSettings | None = None,
) -> RenderedFigure:
    """Scatter of the paired observations with every fitted curve overlaid."""
    cfg = settings or RenderSettings()
    fig, ax = _new_figure(cfg)
    sns.scatterplot(x=desc.x_values, y=desc.y_values, ax=ax, s=20, color="tab:blue")
    for fit in desc.fits:
        style = _FIT_STYLES.get(fit.kind, {"label": fit.kind})
        ax.plot(fit.x, fit.y, linewidth=2, **style)
    if desc.fits:
        ax.legend()
    ax.set_xlabel(desc.x)
    ax.set_ylabel(desc.y)
    ax.set_title(f"{desc.y} vs {desc.x} (n={desc.n})")
    return _export(fig, cfg)


def draw_heatmap(ax: Axes, matrix: pd.DataFrame, method: str, cmap: str = "coolwarm") -> None:
    sns.heatmap(matrix, annot=True, fmt=".2f", cmap=cmap, vmin=-1, vmax=1, square=True, ax=ax)
    ax.set_title(f"{method.capitalize()} correlation")


def render_heatmap(
    matrix: pd.DataFrame,
    method: str,
    settings: RenderSettings | None = None,
) -> RenderedFigure:
    cfg = settings or RenderSettings()
    side = max(cfg.figure_height, 0.8 * len(matrix.columns) + 2)
    fig, ax = _new_figure(cfg, size=(side + 1, side))
    draw_heatmap(ax, matrix, method, cfg.heatmap_cmap)
    return _export(fig, cfg)


__all__: list[str] = [
    "RenderedFigure",
    "render_univariate",
    "render_bivariate",
    "render_heatmap",
    "draw_heatmap",
]
