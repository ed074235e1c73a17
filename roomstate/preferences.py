"""
Local preference store.

Holds the own identity presets (username, email, avatar, last own user id)
outside the lifetime of a reducer. The reducer writes to it synchronously,
and only for the local user's own fields; session bootstrap reads it back
with load().
"""

import json
import os
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Optional

from .core.canonical import canonical_json_str
from .core.errors import PreferenceStoreError
from .core.state import Presets
from .logging_config import get_logger


class PreferenceStore(ABC):
    """Abstract preference store interface."""

    @abstractmethod
    def set_preset_username(self, username: Optional[str]) -> None:
        ...

    @abstractmethod
    def set_preset_email(self, email: Optional[str]) -> None:
        ...

    @abstractmethod
    def set_preset_avatar(self, avatar: Optional[int]) -> None:
        ...

    @abstractmethod
    def set_preset_user_id(self, user_id: Optional[str]) -> None:
        ...

    @abstractmethod
    def load(self) -> Presets:
        """Return the stored presets (empty Presets if nothing was stored)."""
        ...


class InMemoryPreferenceStore(PreferenceStore):
    """Preference store kept in process memory."""

    def __init__(self, presets: Optional[Presets] = None) -> None:
        self.presets = presets or Presets()

    def set_preset_username(self, username: Optional[str]) -> None:
        self.presets = replace(self.presets, username=username)

    def set_preset_email(self, email: Optional[str]) -> None:
        self.presets = replace(self.presets, email=email)

    def set_preset_avatar(self, avatar: Optional[int]) -> None:
        self.presets = replace(self.presets, avatar=avatar)

    def set_preset_user_id(self, user_id: Optional[str]) -> None:
        self.presets = replace(self.presets, user_id=user_id)

    def load(self) -> Presets:
        return self.presets


class FilePreferenceStore(PreferenceStore):
    """
    Preference store persisted as a canonical JSON file.

    Every setter rewrites the file before returning. A missing file loads as
    empty presets; an unreadable one is reported and loads as empty presets,
    so the next setter replaces it.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    def load(self) -> Presets:
        if not os.path.exists(self.path):
            return Presets()
        try:
            with open(self.path, "r") as f:
                return Presets.from_dict(json.load(f))
        except (OSError, ValueError, TypeError, AttributeError) as ex:
            get_logger(__name__).warning(
                f"Discarding unreadable preference file {self.path}: {ex}"
            )
            return Presets()

    def _set(self, **changes: Any) -> None:
        presets = replace(self.load(), **changes)
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w") as f:
                f.write(canonical_json_str(presets.to_dict()))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as ex:
            raise PreferenceStoreError(str(ex)) from ex

    def set_preset_username(self, username: Optional[str]) -> None:
        self._set(username=username)

    def set_preset_email(self, email: Optional[str]) -> None:
        self._set(email=email)

    def set_preset_avatar(self, avatar: Optional[int]) -> None:
        self._set(avatar=avatar)

    def set_preset_user_id(self, user_id: Optional[str]) -> None:
        self._set(user_id=user_id)
