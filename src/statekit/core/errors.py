"""
Structured error types for statekit.

Every failure the core can raise is a ``StatekitError`` subclass carrying a
category, structured context (plugin, step, path) and an optional chained
cause. Errors propagate synchronously from ``activate``, ``build`` and
``mount``; nothing is reported on a background channel.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure the caller can act on
    - **Rich Context:** Errors name the plugin, step and logic path involved
    - **Error Chaining:** The original exception is kept as ``__cause__``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       StatekitError                           │
        │            (category, context, cause, to_dict)                │
        ├──────────────────────────────────────────────────────────────┤
        │  PluginError           BuildError             LifecycleError  │
        │  (PLUGIN)              (BUILD)                (LIFECYCLE)     │
        │     │                     │                       │           │
        │  DuplicatePluginError  BuildStepError          MountStateError│
        │  CyclicStepOrderError  SpecificationError      StoreError     │
        │  PluginConfigError     UnresolvedConnectionError              │
        │                        IdentityCollisionError                 │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = BuildStepError("reducers", "core", "scenes.todos", cause=KeyError("x"))
    >>> error.context.step
    'reducers'
    >>> error.to_dict()["category"]
    'BUILD'

Tags:
    error-handling, exception-hierarchy, error-context, statekit

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification.

    Attributes:
        PLUGIN: Plugin activation and registry configuration
        BUILD: Specification resolution and the build pipeline
        LIFECYCLE: Mounting, unmounting and store attachment
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    PLUGIN = "PLUGIN"
    BUILD = "BUILD"
    LIFECYCLE = "LIFECYCLE"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        plugin: Name of the plugin whose handler failed
        step: Build step name
        path: Dot-joined path of the logic involved
        metadata: Additional key-value pairs
    """

    plugin: str | None = None
    step: str | None = None
    path: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["plugin", "step", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class StatekitError(Exception):
    """
    Base exception for all statekit errors.

    Subclasses set ``default_category``. Context can be added after creation
    with :meth:`with_context`, and the wrapped exception is chained so
    tracebacks show the root cause.

    Examples:
        >>> error = StatekitError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(path="scenes.todos").context.path
        'scenes.todos'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> StatekitError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SpecificationError("bad reducer").with_context(path="scenes.todos")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = repr(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# PLUGIN ERRORS (fatal at activation time)
# =============================================================================


class PluginError(StatekitError):
    """Plugin registry error."""

    default_category = ErrorCategory.PLUGIN


class DuplicatePluginError(PluginError):
    """Raised when a plugin with the same name is already active."""

    def __init__(self, plugin_name: str):
        self.plugin_name = plugin_name
        super().__init__(
            f"Plugin '{plugin_name}' is already activated",
            context=ErrorContext(plugin=plugin_name),
        )


class CyclicStepOrderError(PluginError):
    """Raised when merged before/after placements cannot be satisfied."""

    def __init__(self, steps: list[str], plugin_name: str | None = None):
        self.steps = steps
        self.plugin_name = plugin_name
        steps_str = ", ".join(steps)
        super().__init__(
            f"Build step order has a cycle among steps: {steps_str}",
            context=ErrorContext(plugin=plugin_name),
        )


class PluginConfigError(PluginError):
    """Raised when a plugin or a plugin selection is malformed."""

    def __init__(self, message: str, plugin_name: str | None = None):
        self.plugin_name = plugin_name
        super().__init__(message, context=ErrorContext(plugin=plugin_name))


# =============================================================================
# BUILD ERRORS
# =============================================================================


class BuildError(StatekitError):
    """Error while resolving or building a logic."""

    default_category = ErrorCategory.BUILD


class SpecificationError(BuildError):
    """Raised when a specification is malformed or cannot be resolved."""

    pass


class BuildStepError(BuildError):
    """Raised when a build step handler fails. The partial logic is discarded."""

    def __init__(
        self,
        step: str,
        plugin_name: str,
        path: str | None = None,
        *,
        cause: BaseException | None = None,
    ):
        self.step = step
        self.plugin_name = plugin_name
        self.path = path
        reason = f": {cause!r}" if cause is not None else ""
        super().__init__(
            f"Build step '{step}' of plugin '{plugin_name}' failed for logic '{path}'{reason}",
            context=ErrorContext(plugin=plugin_name, step=step, path=path),
            cause=cause,
        )


class UnresolvedConnectionError(BuildError):
    """Raised when a declared connection cannot be resolved."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message, context=ErrorContext(step="connect", path=path))


class IdentityCollisionError(BuildError):
    """Raised when two different specifications resolve to the same identity."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Two different specifications resolve to the same path '{path}'",
            context=ErrorContext(path=path),
        )


# =============================================================================
# LIFECYCLE ERRORS
# =============================================================================


class LifecycleError(StatekitError):
    """Mount/unmount or store attachment error."""

    default_category = ErrorCategory.LIFECYCLE


class MountStateError(LifecycleError):
    """Raised when a logic is unmounted more often than it was mounted."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Logic '{path}' is not mounted",
            context=ErrorContext(path=path),
        )


class StoreError(LifecycleError):
    """Raised when the store cannot attach or detach a reducer."""

    pass


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, StatekitError):
        return error.category
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "StatekitError",
    # Plugin
    "PluginError",
    "DuplicatePluginError",
    "CyclicStepOrderError",
    "PluginConfigError",
    # Build
    "BuildError",
    "SpecificationError",
    "BuildStepError",
    "UnresolvedConnectionError",
    "IdentityCollisionError",
    # Lifecycle
    "LifecycleError",
    "MountStateError",
    "StoreError",
    # Utilities
    "categorize_error",
]
