"""FastAPI dependencies."""

import threading
from typing import Annotated

from fastapi import Depends

from statscope.config import Settings, get_settings
from statscope.core.exceptions import SessionNotFoundError
from statscope.core.logging import bind_context, get_logger
from statscope.workflow import WorkflowController

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Session registry
# ─────────────────────────────────────────────────────────────────────────────

class SessionRegistry:
    """In-memory analysis sessions, kept for the lifetime of the process."""

    def __init__(self) -> None:
        self._sessions: dict[str, WorkflowController] = {}
        self._lock = threading.Lock()

    def create(self, settings: Settings) -> WorkflowController:
        controller = WorkflowController(settings=settings)
        controller.initialize()
        with self._lock:
            self._sessions[controller.session_id] = controller
        logger.info("session_created", session_id=controller.session_id)
        return controller

    def get(self, session_id: str) -> WorkflowController:
        with self._lock:
            controller = self._sessions.get(session_id)
        if controller is None:
            raise SessionNotFoundError(session_id)
        return controller

    def remove(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info("session_deleted", session_id=session_id)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


_registry = SessionRegistry()


def get_registry() -> SessionRegistry:
    """Get the process-wide session registry (for dependency injection)."""
    return _registry


# ─────────────────────────────────────────────────────────────────────────────
# Type aliases for cleaner signatures
# ─────────────────────────────────────────────────────────────────────────────

SettingsDep = Annotated[Settings, Depends(get_settings)]
RegistryDep = Annotated[SessionRegistry, Depends(get_registry)]


def get_controller(session_id: str, registry: RegistryDep) -> WorkflowController:
    """Resolve the session's controller. Raises 404 if unknown."""
    controller = registry.get(session_id)
    bind_context(session_id=session_id)
    return controller


ControllerDep = Annotated[WorkflowController, Depends(get_controller)]
