import logging

from models.entities import User
from repository.base import Store
from repository.errors import UserNotFound
from services.errors import bad_request, internal, not_found


logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store: Store):
        self._store = store

    async def set_is_active(self, user_id: str, is_active: bool) -> User:
        """
        POST /users/setIsActive
        Update user's is_active flag; open PRs are left untouched
        """
        if not user_id:
            raise bad_request("user_id is required")
        try:
            user = await self._store.set_user_active(user_id, is_active)
        except UserNotFound as err:
            raise not_found("user not found") from err
        except Exception as err:
            raise internal("failed to update user", err) from err

        logger.info("user_active_changed: user=%s is_active=%s", user.user_id, user.is_active)
        return user
