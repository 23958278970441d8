"""User profile persistence."""

import logging
from typing import Optional

from sqlalchemy import select

from ..models.escrow import UserPreferences, UserProfile, utcnow
from .database import DatabaseManager
from .models import UserModel


logger = logging.getLogger(__name__)


class UserStore:
    """Repository for user profiles and their escrow id lists."""

    def __init__(self, db_manager: DatabaseManager):
        self._db_manager = db_manager

    def _from_model(self, model: UserModel) -> UserProfile:
        prefs = model.preferences or {}
        return UserProfile(
            id=model.id,
            email=model.email,
            display_name=model.display_name,
            photo_url=model.photo_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
            active_escrows=list(model.active_escrows or []),
            completed_escrows=list(model.completed_escrows or []),
            preferences=UserPreferences(
                notifications=prefs.get("notifications", True),
                email_updates=prefs.get("email_updates", prefs.get("emailUpdates", True)),
            ),
        )

    def create_profile(
        self,
        user_id: str,
        email: str,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> UserProfile:
        """Create a profile, or return the existing one for this user id."""
        with self._db_manager.get_session() as session:
            existing = session.get(UserModel, user_id)
            if existing is not None:
                return self._from_model(existing)

            now = utcnow()
            model = UserModel(
                id=user_id,
                email=email,
                display_name=display_name,
                photo_url=photo_url,
                active_escrows=[],
                completed_escrows=[],
                preferences={"notifications": True, "email_updates": True},
                created_at=now,
                updated_at=now,
            )
            session.add(model)
            session.flush()
            logger.info(f"Created profile for user {user_id}")
            return self._from_model(model)

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._db_manager.get_session() as session:
            model = session.get(UserModel, user_id)
            return self._from_model(model) if model else None

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        with self._db_manager.get_session() as session:
            model = session.execute(
                select(UserModel).where(UserModel.email == email)
            ).scalars().first()
            return self._from_model(model) if model else None

    def add_active_escrow(self, user_id: str, escrow_id: str) -> bool:
        """
        Add an escrow id to the user's active list.

        Returns:
            False when the user has no profile.
        """
        with self._db_manager.get_session() as session:
            model = session.get(UserModel, user_id)
            if model is None:
                return False
            active = list(model.active_escrows or [])
            if escrow_id not in active:
                active.append(escrow_id)
            model.active_escrows = active
            model.updated_at = utcnow()
            return True

    def complete_escrow(self, user_id: str, escrow_id: str) -> bool:
        """
        Move an escrow id from the active list to the completed list.

        Returns:
            False when the user has no profile.
        """
        with self._db_manager.get_session() as session:
            model = session.get(UserModel, user_id)
            if model is None:
                return False
            model.active_escrows = [e for e in (model.active_escrows or []) if e != escrow_id]
            completed = list(model.completed_escrows or [])
            if escrow_id not in completed:
                completed.append(escrow_id)
            model.completed_escrows = completed
            model.updated_at = utcnow()
            return True
