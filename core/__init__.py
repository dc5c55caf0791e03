"""
Armature - Core Module

Foundational pieces shared by the container and the kernel:
- Unified error handling (core.errors)
- Event dispatching (core.events)
- Application kernel (core.kernel)

Only the error types are re-exported here; the container package imports
them, so this module must stay free of imports from ``di``. Import the
kernel and the dispatcher from their own modules:

    from core.errors import ArmatureError
    from core.events import EventDispatcher
    from core.kernel import Kernel
"""

from core.errors import (
    ArmatureError,
    ConfigurationError,
    ErrorContext,
    ErrorSeverity,
    KernelNotBootedError,
)

__all__ = [
    "ArmatureError",
    "ConfigurationError",
    "ErrorContext",
    "ErrorSeverity",
    "KernelNotBootedError",
]
