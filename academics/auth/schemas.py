from uuid import UUID

from pydantic import BaseModel

from academics.core.enums import UserRole


ADMIN_ROLES = (UserRole.SUPER_ADMIN.value, UserRole.ADMIN.value)


class CurrentUser(BaseModel):
    """Authenticated identity handed over by the identity provider (bearer token claims)."""

    id: UUID
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER.value

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value
