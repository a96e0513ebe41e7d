"""Identity lookup for employees and admins.

The messaging core only needs display names, profile image URLs and the
default admin counterpart; everything else about staff lives elsewhere.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy import func
from sqlmodel import Session, select

from app.core.config import settings
from app.models.conversation import ActorRef, ActorType
from app.models.staff import Admin, Employee


@dataclass
class ActorProfile:
    display_name: str
    profile_image_url: str | None = None


class Directory(ABC):
    @abstractmethod
    def resolve_actor(self, actor: ActorRef) -> ActorProfile | None:
        """Return the actor's profile, or None if the directory doesn't know them."""
        ...

    @abstractmethod
    def find_default_admin(self) -> ActorRef | None:
        """Return the admin that stands behind the admin sentinel."""
        ...

    @abstractmethod
    def find_employee(self, employee_id: str) -> ActorRef | None:
        """Return the employee's canonical actor, or None if there is no such employee.

        The returned id is the directory's own spelling ("7" for "07"), so every
        caller that stores or compares actors sees one id per employee.
        """
        ...

    def display_name(self, actor: ActorRef) -> str:
        profile = self.resolve_actor(actor)
        if profile is None:
            if actor.type == ActorType.ADMIN:
                return settings.admin_display_name
            return settings.employee_placeholder_name
        return profile.display_name


def employee_display_name(employee: Employee) -> str:
    """First + last name, falling back to the profile data blob, then a placeholder."""
    placeholder = settings.employee_placeholder_name
    first_name = employee.first_name
    last_name = employee.last_name

    if not first_name and employee.profile_data:
        data = employee.profile_data
        first_name = data.get("firstName") or data.get("first_name") or placeholder
        last_name = data.get("lastName") or data.get("last_name") or ""

    if first_name or last_name:
        return f"{first_name or placeholder} {last_name or ''}".strip()
    return placeholder


def public_storage_url(path: str) -> str:
    return f"{settings.storage_public_url.rstrip('/')}/{path.lstrip('/')}"


def _employee_pk(employee_id: str) -> int | None:
    return int(employee_id) if employee_id.isdigit() else None


class SqlDirectory(Directory):
    """Directory backed by the employees and admins tables."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def resolve_actor(self, actor: ActorRef) -> ActorProfile | None:
        if actor.type == ActorType.ADMIN:
            return ActorProfile(display_name=settings.admin_display_name)

        pk = _employee_pk(actor.id)
        employee = self._session.get(Employee, pk) if pk is not None else None
        if employee is None:
            return None
        image_url = public_storage_url(employee.profile_image) if employee.profile_image else None
        return ActorProfile(display_name=employee_display_name(employee), profile_image_url=image_url)

    def find_default_admin(self) -> ActorRef | None:
        admin = self._session.exec(
            select(Admin).where(func.lower(Admin.status) == "active").order_by(Admin.id)  # type: ignore
        ).first()
        if admin is None:
            admin = self._session.exec(select(Admin).order_by(Admin.id)).first()  # type: ignore
        if admin is None:
            return None
        return ActorRef(ActorType.ADMIN, str(admin.id))

    def find_employee(self, employee_id: str) -> ActorRef | None:
        pk = _employee_pk(employee_id)
        employee = self._session.get(Employee, pk) if pk is not None else None
        if employee is None:
            return None
        return ActorRef(ActorType.EMPLOYEE, str(employee.id))
