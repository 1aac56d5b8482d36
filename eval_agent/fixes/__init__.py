"""Fix application for approved eval issues."""

from eval_agent.fixes.fix_applier import (
    FIX_HANDLERS,
    FixApplier,
    FixTargets,
    extract_patch_as_of,
    register_handler,
    safe_replace,
)

__all__ = [
    "FIX_HANDLERS",
    "FixApplier",
    "FixTargets",
    "extract_patch_as_of",
    "register_handler",
    "safe_replace",
]
