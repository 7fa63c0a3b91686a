"""Data quality routes: missing-value issues, remediation, manual edits."""

from fastapi import APIRouter

from statscope.api.deps import ControllerDep
from statscope.api.schemas import CellEdit, RemediationRequest

router = APIRouter(prefix="/sessions/{session_id}", tags=["quality"])


@router.get("/issues")
def list_issues(controller: ControllerDep):
    return controller.list_issues().to_dict()


@router.post("/remediation")
def remediate(data: RemediationRequest, controller: ControllerDep):
    """Apply a bulk remediation; the response lists the issues that remain."""
    scan = controller.remediate(
        data.action,
        data.columns,
        expected_version=data.expected_version,
    )
    return scan.to_dict()


@router.patch("/cells")
def edit_cell(data: CellEdit, controller: ControllerDep):
    result = controller.edit_cell(
        data.row,
        data.column,
        data.value,
        strict=data.strict,
        expected_version=data.expected_version,
    )
    return result.to_dict()
