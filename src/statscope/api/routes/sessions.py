"""Session lifecycle, upload, variable selection and step routes."""

from fastapi import APIRouter, File, Form, UploadFile, status

from statscope.api.deps import ControllerDep, RegistryDep, SettingsDep
from statscope.api.schemas import SessionState, VariableSelection
from statscope.core.exceptions import FileTooLargeError, ParseError
from statscope.engine.schema import numeric_columns

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=SessionState, status_code=status.HTTP_201_CREATED)
def create_session(registry: RegistryDep, settings: SettingsDep):
    """Start a new analysis session (already at the upload step)."""
    return registry.create(settings).state()


@router.get("/{session_id}", response_model=SessionState)
def get_session(controller: ControllerDep):
    return controller.state()


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(session_id: str, registry: RegistryDep):
    registry.remove(session_id)


@router.post("/{session_id}/dataset")
def upload_dataset(
    controller: ControllerDep,
    settings: SettingsDep,
    file: UploadFile = File(...),
    format: str | None = Form(None),
):
    """Upload a CSV or Excel file and make it the session table."""
    filename = file.filename or ""
    suffix = "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if format is None and suffix and suffix not in settings.ingestion.allowed_extensions:
        raise ParseError(f"Unsupported file type: {suffix}", format_hint=suffix)

    # read one byte past the limit so oversize uploads are rejected without buffering them whole
    max_size = settings.ingestion.max_file_size
    raw = file.file.read(max_size + 1)
    if len(raw) > max_size:
        raise FileTooLargeError(len(raw), max_size)

    metadata = controller.load_dataset(raw, format, filename=filename)
    return {"session": controller.state(), "dataset": metadata.to_dict()}


@router.get("/{session_id}/summary")
def get_summary(controller: ControllerDep):
    """Schema and summary statistics of the current table."""
    metadata = controller.summary()
    return {
        **metadata.to_dict(),
        "numeric_columns": numeric_columns(metadata.summary),
    }


@router.post("/{session_id}/variables")
def select_variables(data: VariableSelection, controller: ControllerDep):
    metadata = controller.select_variables(data.dependent, data.independents)
    return {"session": controller.state(), "dataset": metadata.to_dict()}


@router.post("/{session_id}/advance", response_model=SessionState)
def advance(controller: ControllerDep):
    """Move to the next step if its precondition holds (422 otherwise)."""
    controller.advance()
    return controller.state()
