"""
Correlation Report Generator
Builds the downloadable PDF: a title page with the selected variables,
then one heatmap page per correlation method.
"""

import io
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import matplotlib

matplotlib.use("Agg")

import pandas as pd  # noqa: E402
from matplotlib.backends.backend_pdf import PdfPages  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from statscope.config import RenderSettings  # noqa: E402
from statscope.rendering.figures import draw_heatmap  # noqa: E402

logger = logging.getLogger(__name__)

# A4 portrait, inches
PAGE_SIZE = (8.27, 11.69)


class CorrelationReportGenerator:
    """
    Renders correlation matrices into a paginated PDF
    """

    def __init__(self, settings: Optional[RenderSettings] = None, title: str = "Correlation Report"):
        self.settings = settings or RenderSettings()
        self.title = title

    def _title_page(self, pdf: PdfPages, dependent: str, independents: List[str], methods: List[str]) -> None:
        fig = Figure(figsize=PAGE_SIZE)
        fig.text(0.5, 0.85, self.title, ha="center", fontsize=24, weight="bold")
        fig.text(
            0.5,
            0.80,
            f"Generated {datetime.now(timezone.utc):%Y-%m-%d %H:%M} UTC",
            ha="center",
            fontsize=10,
            color="gray",
        )

        lines = [f"Dependent variable: {dependent}", "", "Independent variables:"]
        lines += [f"  • {name}" for name in independents]
        lines += ["", "Methods: " + ", ".join(m.capitalize() for m in methods)]
        fig.text(0.12, 0.70, "\n".join(lines), va="top", fontsize=12, family="monospace")
        pdf.savefig(fig)

    def _heatmap_page(self, pdf: PdfPages, method: str, matrix: pd.DataFrame) -> None:
        fig = Figure(figsize=PAGE_SIZE)
        draw_heatmap(fig.subplots(), matrix, method, self.settings.heatmap_cmap)
        fig.tight_layout()
        pdf.savefig(fig)

    def generate(
        self,
        dependent: str,
        independents: Sequence[str],
        matrices: Dict[str, pd.DataFrame],
    ) -> bytes:
        """
        Generate the report

        Args:
            dependent: Dependent variable name
            independents: Independent variable names
            matrices: Correlation matrix per method (page order follows the dict)

        Returns:
            PDF document as bytes
        """
        buffer = io.BytesIO()
        with PdfPages(buffer) as pdf:
            self._title_page(pdf, dependent, list(independents), list(matrices))
            for method, matrix in matrices.items():
                self._heatmap_page(pdf, method, matrix)

            info = pdf.infodict()
            info["Title"] = self.title
            info["Subject"] = f"Correlations of {dependent}"

        data = buffer.getvalue()
        logger.info("Generated correlation report: %d page(s), %d bytes", 1 + len(matrices), len(data))
        return data


def build_correlation_report(
    dependent: str,
    independents: Sequence[str],
    matrices: Dict[str, pd.DataFrame],
    *,
    settings: Optional[RenderSettings] = None,
) -> bytes:
    return CorrelationReportGenerator(settings).generate(dependent, independents, matrices)
