"""Security module for exprguard.

Provides allow-list based static analysis of expression scripts.
"""

from .parser import ParsedScript, parse_script
from .policy import (
    DEFAULT_POLICY,
    INSTANCE_METHOD_WHITELIST,
    INSTANCE_PROPERTY_WHITELIST,
    SAFE_IDENTIFIERS,
    SAFE_NAMESPACES,
    STATIC_PROPERTY_WHITELIST,
    ValidatorPolicy,
    load_policy,
)
from .scope import ScopeTracker
from .validator import ScriptValidator

__all__ = [
    "ScriptValidator",
    "ScopeTracker",
    "ParsedScript",
    "parse_script",
    "ValidatorPolicy",
    "DEFAULT_POLICY",
    "load_policy",
    "SAFE_IDENTIFIERS",
    "SAFE_NAMESPACES",
    "STATIC_PROPERTY_WHITELIST",
    "INSTANCE_METHOD_WHITELIST",
    "INSTANCE_PROPERTY_WHITELIST",
]
