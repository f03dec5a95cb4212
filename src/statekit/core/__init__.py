"""
statekit.core - shared primitives: errors, logging, settings, selectors.

Nothing in this package knows about plugins or logics; everything above it
depends on it.
"""

from statekit.core.errors import (
    BuildError,
    BuildStepError,
    CyclicStepOrderError,
    DuplicatePluginError,
    ErrorCategory,
    ErrorContext,
    IdentityCollisionError,
    LifecycleError,
    MountStateError,
    PluginConfigError,
    PluginError,
    SpecificationError,
    StatekitError,
    StoreError,
    UnresolvedConnectionError,
)
from statekit.core.fields import FieldMap, as_dict, get_in, path_to_string
from statekit.core.logging import LogContext, configure_logging, get_logger
from statekit.core.selectors import MemoizedSelector, create_selector
from statekit.core.settings import StatekitSettings, clear_settings_cache, get_settings

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "StatekitError",
    "PluginError",
    "DuplicatePluginError",
    "CyclicStepOrderError",
    "PluginConfigError",
    "BuildError",
    "SpecificationError",
    "BuildStepError",
    "UnresolvedConnectionError",
    "IdentityCollisionError",
    "LifecycleError",
    "MountStateError",
    "StoreError",
    # Fields
    "FieldMap",
    "as_dict",
    "get_in",
    "path_to_string",
    # Logging
    "LogContext",
    "configure_logging",
    "get_logger",
    # Selectors
    "MemoizedSelector",
    "create_selector",
    # Settings
    "StatekitSettings",
    "get_settings",
    "clear_settings_cache",
]
