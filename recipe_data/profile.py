"""Local user profile kept in the preference store."""

from __future__ import annotations

import base64
import binascii
import logging
import uuid

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from recipe_data.errors import ProfileError
from recipe_data.preferences import PreferenceStore

logger = logging.getLogger(__name__)

PROFILE_KEY = 'profile'
DEFAULT_USERNAME = 'Guest'
MAX_AVATAR_BYTES = 2 * 1024 * 1024


class UserProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias='userId')
    username: str = DEFAULT_USERNAME
    avatar: str | None = None
    bio: str | None = None


class ProfileService:
    """Reads and updates the single local profile.

    A profile is created and persisted on first access, so ``get`` always
    returns one.
    """

    def __init__(self, preferences: PreferenceStore) -> None:
        self._preferences = preferences

    def get(self) -> UserProfile:
        raw = self._preferences.get(PROFILE_KEY)
        if raw is not None:
            try:
                return UserProfile.model_validate(raw)
            except ValidationError as exc:
                logger.warning('Replacing invalid stored profile: %s', exc)
        return self.save(UserProfile(user_id=f'user_{uuid.uuid4().hex[:8]}'))

    def save(self, profile: UserProfile) -> UserProfile:
        self._preferences.set(PROFILE_KEY, profile.model_dump(by_alias=True))
        return profile

    def update_username(self, username: str) -> UserProfile:
        trimmed = (username or '').strip()
        if not trimmed:
            raise ProfileError('Username must not be empty')
        return self.save(self.get().model_copy(update={'username': trimmed}))

    def update_avatar(self, data_url: str) -> UserProfile:
        _check_avatar(data_url)
        return self.save(self.get().model_copy(update={'avatar': data_url}))


def _check_avatar(data_url: str) -> None:
    header, sep, encoded = (data_url or '').partition(',')
    if not sep or not header.startswith('data:image/') or not header.endswith(';base64'):
        raise ProfileError('Avatar must be a base64 data:image/ URL')
    try:
        size = len(base64.b64decode(encoded, validate=True))
    except binascii.Error as exc:
        raise ProfileError(f'Avatar is not valid base64: {exc}') from exc
    if size > MAX_AVATAR_BYTES:
        raise ProfileError(f'Avatar exceeds {MAX_AVATAR_BYTES // (1024 * 1024)} MiB')
