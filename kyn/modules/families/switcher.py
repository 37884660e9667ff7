"""
Family switcher: which family the profile is currently looking at.

The selection is kept behind a small storage port so the same logic runs
against Supabase in the app and against a dict in tests.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

from supabase import Client

from kyn.config import settings
from kyn.core.errors import NotFamilyMember, OperationFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FamilyContext:
    """The caller and the family a feature request is scoped to."""
    profile_id: str
    family_id: str
    role: str


class SelectionStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...


class InMemorySelectionStore:
    def __init__(self):
        self._values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def clear(self, key: str) -> None:
        self._values.pop(key, None)


class SupabaseSelectionStore:
    """Persists selections in profile_preferences. Keys are '<profile_id>:<name>'."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    @staticmethod
    def _split(key: str) -> Tuple[str, str]:
        profile_id, _, name = key.partition(":")
        return profile_id, name

    def get(self, key: str) -> Optional[str]:
        profile_id, name = self._split(key)
        try:
            result = self.supabase.table("profile_preferences")\
                .select("value")\
                .eq("profile_id", profile_id)\
                .eq("key", name)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error reading preference {name} for {profile_id}: {e}")
            raise OperationFailed("Could not load selected family")
        return result.data[0]["value"] if result.data else None

    def set(self, key: str, value: str) -> None:
        profile_id, name = self._split(key)
        try:
            self.supabase.table("profile_preferences").upsert({
                "profile_id": profile_id,
                "key": name,
                "value": value,
            }, on_conflict="profile_id,key").execute()
        except Exception as e:
            logger.error(f"Error saving preference {name} for {profile_id}: {e}")
            raise OperationFailed("Could not save selected family")

    def clear(self, key: str) -> None:
        profile_id, name = self._split(key)
        try:
            self.supabase.table("profile_preferences")\
                .delete()\
                .eq("profile_id", profile_id)\
                .eq("key", name)\
                .execute()
        except Exception as e:
            logger.error(f"Error clearing preference {name} for {profile_id}: {e}")
            raise OperationFailed("Could not clear selected family")


class FamilySwitcher:
    def __init__(self, store: SelectionStore, profile_id: str, key_name: str = None):
        self.store = store
        self.profile_id = profile_id
        self.key = f"{profile_id}:{key_name or settings.selected_family_key}"

    def current(self) -> Optional[str]:
        return self.store.get(self.key)

    def resolve(self, family_ids: List[str]) -> Optional[str]:
        """Return the selected family id, repairing a stale or missing selection.

        family_ids are the profile's memberships, first one is the default.
        """
        if not family_ids:
            if self.current() is not None:
                self.store.clear(self.key)
            return None
        stored = self.current()
        if stored in family_ids:
            return stored
        selected = family_ids[0]
        self.store.set(self.key, selected)
        logger.debug(f"Selected family for {self.profile_id} reset to {selected}")
        return selected

    def select(self, family_id: str, family_ids: List[str]) -> str:
        if family_id not in family_ids:
            raise NotFamilyMember()
        self.store.set(self.key, family_id)
        return family_id

    def clear(self) -> None:
        self.store.clear(self.key)
