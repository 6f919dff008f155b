# app/services/user_service.py
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.schemas.user import UserRoleUpdate, UserUpdate


class UserService:
    """
    Business logic for User profiles.

    Responsibilities:
      - self-service profile edits (email belongs to Supabase Auth)
      - admin listing and role changes
      - map domain errors to HTTP errors
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- Self profile -----

    def get_me(self, current_user: User) -> User:
        """Return the current authenticated user."""
        return current_user

    def update_me(
        self,
        session: Session,
        current_user: User,
        payload: UserUpdate,
    ) -> User:
        """
        Partial update: first_name, last_name and phone.
        """
        for field, value in payload.model_dump(exclude_unset=True).items():
            if field == "first_name" and value is None:
                continue
            setattr(current_user, field, value)

        return self.repo.update(session, current_user)

    # ----- Admin operations -----

    def list_users(
        self,
        session: Session,
        skip: int,
        limit: int,
        role: str | None = None,
    ) -> list[User]:
        return self.repo.list(session, skip=skip, limit=limit, role=role)

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        """
        Raises:
            HTTPException(404): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario no encontrado",
            )
        return user

    def update_role(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: UserRoleUpdate,
        acting_admin: User,
    ) -> User:
        """
        Change a user's role. Admins cannot demote themselves, so the
        back office always keeps at least the acting admin.
        """
        user = self.get_user(session, user_id)
        if user.id == acting_admin.id and payload.role != "admin":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No puedes quitarte el rol de administrador",
            )
        user.role = payload.role
        return self.repo.update(session, user)
