"""
statekit.logic - specifications, building, caching and mounting of logics.

Modules
-------
specification   Specification, LogicIdentity, resolve_identity, resolve_partial
model           Logic (built artifact), BuildContext (per-build step context)
connections     Connection graph resolution
builder         LogicBuilder -- runs the merged build step order
cache           InstanceCache -- one logic per identity
lifecycle       LifecycleManager -- reference-counted mount/unmount
wrapper         LogicWrapper, define(), connect()
"""

from statekit.logic.builder import LogicBuilder
from statekit.logic.cache import CacheEntry, InstanceCache
from statekit.logic.connections import ResolvedConnection, resolve_connections
from statekit.logic.lifecycle import LifecycleManager
from statekit.logic.model import BuildContext, Logic
from statekit.logic.specification import (
    LogicIdentity,
    Specification,
    resolve_identity,
    resolve_partial,
)
from statekit.logic.wrapper import LogicWrapper, connect, define

__all__ = [
    "BuildContext",
    "CacheEntry",
    "InstanceCache",
    "LifecycleManager",
    "Logic",
    "LogicBuilder",
    "LogicIdentity",
    "LogicWrapper",
    "ResolvedConnection",
    "Specification",
    "connect",
    "define",
    "resolve_connections",
    "resolve_identity",
    "resolve_partial",
]
