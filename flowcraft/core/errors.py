"""Workflow execution errors.

Every failure of ``WorkflowEngine.execute`` is an ``ExecutionError``. The leaf
classes name what went wrong; the contextual wrappers (``NodeExecutionError``,
``WorkflowExecutionError``, ``TransformOperationError``) add where it went
wrong and chain the original error as ``__cause__``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flowcraft.core.graph_schema import ExecutionLog, Node


class ExecutionError(Exception):
    """Error while executing a workflow graph."""

    pass


# --- Preconditions ---


class EmptyWorkflowError(ExecutionError):
    """The workflow has no nodes."""

    pass


class MissingStartError(ExecutionError):
    """The workflow has no start node."""

    pass


class MissingEndError(ExecutionError):
    """The workflow has no end node."""

    pass


# --- Traversal ---


class CycleDetectedError(ExecutionError):
    """A node was reached a second time during one run."""

    def __init__(self, node_id: str, node_label: str):
        self.node_id = node_id
        self.node_label = node_label
        super().__init__(
            f'Circular dependency detected: Node "{node_label}" ({node_id}) '
            f"has already been executed"
        )


class DanglingEdgeError(ExecutionError):
    """An edge points at a node that does not exist."""

    def __init__(self, target_id: str):
        self.target_id = target_id
        super().__init__(f'Node connection error: Target node "{target_id}" not found')


# --- Node evaluation ---


class InvalidStartPayloadError(ExecutionError):
    """Start node payload is not valid JSON."""

    pass


class MissingTransformInputError(ExecutionError):
    """Transform node received no input."""

    pass


class UnknownNodeTypeError(ExecutionError):
    """Node kind has no evaluator."""

    pass


# --- Transform library ---


class TransformError(ExecutionError):
    """A transformation could not be applied to its input."""

    pass


class UnknownOperationError(TransformError):
    """Operation name is not one of the supported transformations."""

    pass


class MissingMultiplierError(TransformError):
    """Multiply was configured without a multiplier."""

    pass


class InvalidMultiplierError(TransformError, TypeError):
    """Multiplier cannot be read as a number."""

    pass


class TypeMismatchError(TransformError, TypeError):
    """Input type is not supported by the operation."""

    pass


# --- Contextual wrappers ---


class ContextualExecutionError(ExecutionError):
    """Wraps another execution error with pipeline context."""

    @property
    def root_cause(self) -> BaseException:
        """The innermost error, unwrapping every contextual layer."""
        error: BaseException = self
        while isinstance(error, ContextualExecutionError) and error.__cause__ is not None:
            error = error.__cause__
        return error


class TransformOperationError(ContextualExecutionError):
    """A transform node's operation failed."""

    def __init__(self, operation: str, error: BaseException):
        self.operation = operation
        super().__init__(f'Transform operation "{operation}" failed: {error}')


class NodeExecutionError(ContextualExecutionError):
    """Evaluating a single node failed."""

    def __init__(self, node: Node, error: BaseException):
        self.node_id = node.id
        self.node_label = node.label
        self.node_type = node.type.value
        super().__init__(f'Error executing node "{node.label}" ({node.type.value}): {error}')


class WorkflowExecutionError(ContextualExecutionError):
    """A run failed after traversal started.

    ``last_entry`` is the last node that completed before the failure, or
    ``None`` if nothing completed.
    """

    def __init__(self, error: BaseException, last_entry: ExecutionLog | None = None):
        self.last_entry = last_entry
        if last_entry is not None:
            message = (
                f'Execution failed at node "{last_entry.node_label}" '
                f"({last_entry.node_type}): {error}"
            )
        else:
            message = f"Execution failed: {error}"
        super().__init__(message)
