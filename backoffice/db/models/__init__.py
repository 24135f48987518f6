from backoffice.db.models.organization import (
    Circle,
    Department,
    Designation,
    District,
    Division,
    UserLevel,
    Zone,
)
from backoffice.db.models.role import Role, RolePermission
from backoffice.db.models.user import User
from backoffice.db.models.refresh_token import RefreshToken

__all__ = [
    "Circle",
    "Department",
    "Designation",
    "District",
    "Division",
    "UserLevel",
    "Zone",
    "Role",
    "RolePermission",
    "User",
    "RefreshToken",
]
