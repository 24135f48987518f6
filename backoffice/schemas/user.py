from pydantic import BaseModel


def _name(related) -> str | None:
    return related.name if related is not None else None


class UserDetails(BaseModel):
    """Profile projection returned on login and from /me."""

    id: int
    username: str | None = None
    email: str
    full_name: str | None = None
    department_id: int | None = None
    department_name: str | None = None
    user_level_id: int | None = None
    level_name: str | None = None
    designation_id: int | None = None
    designation_name: str | None = None
    role_id: int
    role_name: str | None = None
    zone_id: int | None = None
    zone_name: str | None = None
    circle_id: int | None = None
    circle_name: str | None = None
    division_id: int | None = None
    division_name: str | None = None
    district_id: int | None = None
    district_name: str | None = None
    is_super_admin: bool = False
    is_system_role: bool = False
    permissions: list[str] = []

    @classmethod
    def from_user(cls, user) -> "UserDetails":
        role = user.role
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            department_id=user.department_id,
            department_name=_name(user.department),
            user_level_id=user.user_level_id,
            level_name=_name(user.user_level),
            designation_id=user.designation_id,
            designation_name=_name(user.designation),
            role_id=user.role_id,
            role_name=_name(role),
            zone_id=user.zone_id,
            zone_name=_name(user.zone),
            circle_id=user.circle_id,
            circle_name=_name(user.circle),
            division_id=user.division_id,
            division_name=_name(user.division),
            district_id=user.district_id,
            district_name=_name(user.district),
            is_super_admin=bool(user.is_super_admin),
            is_system_role=bool(role.is_system_role) if role is not None else False,
            permissions=sorted({p.permission for p in role.permissions}) if role is not None else [],
        )
