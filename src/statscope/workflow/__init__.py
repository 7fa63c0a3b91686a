"""StatScope workflow (session state machine)."""

from .controller import WorkflowController

__all__ = ["WorkflowController"]
