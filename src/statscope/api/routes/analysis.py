"""Outlier, distribution and correlation routes."""

from fastapi import APIRouter, Query, Response

from statscope.api.deps import ControllerDep, SettingsDep
from statscope.api.schemas import OutlierMethodUpdate, TreatmentRequest
from statscope.engine.types import OutlierMethod, ReferenceDistribution
from statscope.rendering import render_bivariate, render_heatmap, render_univariate

router = APIRouter(prefix="/sessions/{session_id}", tags=["analysis"])


# ─────────────────────────────────────────────────────────────────────────────
# Outliers
# ─────────────────────────────────────────────────────────────────────────────

@router.put("/outliers/method")
def set_outlier_method(data: OutlierMethodUpdate, controller: ControllerDep):
    method = controller.set_outlier_method(data.method)
    return {"method": method.value}


@router.get("/outliers")
def detect_outliers(
    controller: ControllerDep,
    method: OutlierMethod | None = None,
):
    """Outliers of the current table (session method unless ``method`` is given)."""
    return controller.detect_outliers(method).to_dict()


@router.post("/outliers/{column}/treatment")
def treat_outliers(column: str, data: TreatmentRequest, controller: ControllerDep):
    """Treat one column; the response is a fresh scan of the updated table."""
    scan = controller.treat_outliers(
        column,
        data.action,
        expected_version=data.expected_version,
    )
    return scan.to_dict()


# ─────────────────────────────────────────────────────────────────────────────
# Distributions
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/univariate/{column}")
def univariate(
    column: str,
    controller: ControllerDep,
    settings: SettingsDep,
    reference: ReferenceDistribution = ReferenceDistribution.NORMAL,
    render: bool = False,
):
    desc = controller.univariate(column, reference)
    body = desc.to_dict()
    if render:
        figures = render_univariate(desc, settings.render)
        body["figures"] = {name: fig.to_dict() if fig else None for name, fig in figures.items()}
    return body


@router.get("/bivariate/{column}")
def bivariate(
    column: str,
    controller: ControllerDep,
    settings: SettingsDep,
    y: str | None = Query(None, description="Response variable; the dependent variable by default"),
    line: bool = True,
    lowess: bool = False,
    degree: int | None = Query(None, description="Polynomial degree"),
    render: bool = False,
):
    desc = controller.bivariate(column, y, line=line, lowess=lowess, polynomial_degree=degree)
    body = desc.to_dict()
    if render:
        body["figure"] = render_bivariate(desc, settings.render).to_dict()
    return body


# ─────────────────────────────────────────────────────────────────────────────
# Correlation
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/correlations")
def correlations(
    controller: ControllerDep,
    settings: SettingsDep,
    render: bool = False,
):
    body = controller.compute_correlations().to_dict()
    if render:
        matrices = controller.correlation_matrices()
        body["figures"] = {
            method: render_heatmap(matrix, method, settings.render).to_dict()
            for method, matrix in matrices.items()
        }
    return body


@router.get("/report")
def export_report(controller: ControllerDep):
    """Download the correlation report as PDF."""
    pdf = controller.export_report()
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="correlations-{controller.session_id}.pdf"'},
    )
