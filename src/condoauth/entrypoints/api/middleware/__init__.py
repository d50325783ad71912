"""HTTP access enforcement."""

from condoauth.entrypoints.api.middleware.jwt_auth import (
    CurrentCaller,
    get_current_caller,
    require_capability,
    require_module,
)

__all__ = ["CurrentCaller", "get_current_caller", "require_capability", "require_module"]
