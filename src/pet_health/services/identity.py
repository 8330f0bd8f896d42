"""
Owner session holder.

Every store call is scoped to the owner returned here. A missing session is
reported with :class:`NotAuthenticatedException`, never as empty data.
"""

import logging
import uuid
from typing import Any, Optional

from ..exceptions import NotAuthenticatedException
from ..schemas.owner import OwnerProfile, OwnerProfileUpdate
from ..utils.validation import clean_payload
from .change_bus import ChangeBus, Topic

logger = logging.getLogger(__name__)


class SessionIdentityProvider:
    """Holds the current owner session in memory."""

    def __init__(self, bus: Optional[ChangeBus] = None):
        self.bus = bus
        self._profile: Optional[OwnerProfile] = None

    @property
    def is_authenticated(self) -> bool:
        return self._profile is not None

    @property
    def current_owner_id(self) -> Optional[uuid.UUID]:
        return self._profile.id if self._profile else None

    def require_owner_id(self) -> uuid.UUID:
        """
        Get the id of the signed-in owner.

        Raises:
            NotAuthenticatedException: If nobody is signed in
        """
        if self._profile is None:
            raise NotAuthenticatedException()
        return self._profile.id

    def me(self) -> OwnerProfile:
        """
        Get the signed-in owner's profile.

        Raises:
            NotAuthenticatedException: If nobody is signed in
        """
        if self._profile is None:
            raise NotAuthenticatedException()
        return self._profile

    async def sign_in(self, owner_id: Any, **profile: Any) -> OwnerProfile:
        """
        Start a session for ``owner_id``, replacing any previous one, and
        broadcast ``user_changed`` with the new profile.
        """
        self._profile = OwnerProfile(id=owner_id, **clean_payload(profile))
        logger.info(f"Owner {self._profile.id} signed in")
        await self._user_changed()
        return self._profile

    async def sign_out(self) -> None:
        """End the session. Broadcasts ``user_changed`` with ``None`` if one was open."""
        if self._profile is None:
            return
        logger.info(f"Owner {self._profile.id} signed out")
        self._profile = None
        await self._user_changed()

    async def update_profile(self, **changes: Any) -> OwnerProfile:
        """
        Update profile fields and broadcast ``user_changed``.

        Empty values are ignored rather than clearing the stored field.

        Raises:
            NotAuthenticatedException: If nobody is signed in
        """
        current = self.me()
        update = OwnerProfileUpdate(**clean_payload(changes))
        data = current.model_dump()
        data.update(update.model_dump(exclude_none=True))
        self._profile = OwnerProfile(**data)
        await self._user_changed()
        return self._profile

    async def _user_changed(self) -> None:
        if self.bus is not None:
            await self.bus.publish(Topic.USER_CHANGED, self._profile)
