"""Scope repository for ClaimScope.

Storage interface for the per-session inspection state the engine reads
and writes: rooms, damage observations, water classifications and scope
items. Identifiers are allocated per repository instance.
"""

from abc import ABC, abstractmethod
from itertools import count
from typing import Dict, List, Optional

from claimscope.config.errors import ClaimScopeError, ErrorCode
from claimscope.models.inspection import DamageObservation, Room, WaterClassification
from claimscope.models.scope import ScopeItem


class ScopeRepository(ABC):
    """Persistence interface for inspection sessions."""

    # ---- Rooms --------------------------------------------------------------

    @abstractmethod
    def save_room(self, room: Room) -> Room:
        """Insert or replace a room."""

    @abstractmethod
    def find_room(self, room_id: int) -> Optional[Room]:
        """Return the room or None."""

    @abstractmethod
    def list_rooms(self, session_id: int) -> List[Room]:
        """Rooms of a session in creation order."""

    def get_room(self, room_id: int) -> Room:
        """Return the room.

        Raises:
            ClaimScopeError: If the room does not exist.
        """
        room = self.find_room(room_id)
        if room is None:
            raise ClaimScopeError(
                code=ErrorCode.ROOM_NOT_FOUND,
                message=f"Room {room_id} not found",
                details={"room_id": room_id},
            )
        return room

    # ---- Damage / water -----------------------------------------------------

    @abstractmethod
    def add_damage(self, damage: DamageObservation) -> DamageObservation:
        """Store a damage observation, assigning an id."""

    @abstractmethod
    def list_damages(self, session_id: int, room_id: Optional[int] = None) -> List[DamageObservation]:
        """Damage observations of a session, optionally for one room."""

    @abstractmethod
    def set_water_classification(self, session_id: int, classification: WaterClassification) -> None:
        """Record the session's water classification."""

    @abstractmethod
    def get_water_classification(self, session_id: int) -> Optional[WaterClassification]:
        """Return the session's water classification, if any."""

    # ---- Scope items --------------------------------------------------------

    @abstractmethod
    def add_scope_item(self, item: ScopeItem) -> ScopeItem:
        """Store a scope item, assigning an id. Returns the stored copy."""

    @abstractmethod
    def update_scope_item(self, item: ScopeItem) -> ScopeItem:
        """Replace a stored scope item."""

    @abstractmethod
    def list_scope_items(
        self,
        session_id: int,
        room_id: Optional[int] = None,
        active_only: bool = False,
    ) -> List[ScopeItem]:
        """Scope items of a session in creation order."""


class InMemoryScopeRepository(ScopeRepository):
    """Dictionary-backed scope repository."""

    def __init__(self):
        self._rooms: Dict[int, Room] = {}
        self._damages: Dict[int, DamageObservation] = {}
        self._water: Dict[int, WaterClassification] = {}
        self._items: Dict[int, ScopeItem] = {}
        self._damage_ids = count(1)
        self._item_ids = count(1)

    def save_room(self, room: Room) -> Room:
        self._rooms[room.id] = room
        return room

    def find_room(self, room_id: int) -> Optional[Room]:
        return self._rooms.get(room_id)

    def list_rooms(self, session_id: int) -> List[Room]:
        return [room for room in self._rooms.values() if room.session_id == session_id]

    def add_damage(self, damage: DamageObservation) -> DamageObservation:
        stored = damage.model_copy(update={"id": damage.id or next(self._damage_ids)})
        self._damages[stored.id] = stored
        return stored

    def list_damages(self, session_id: int, room_id: Optional[int] = None) -> List[DamageObservation]:
        return [
            d for d in self._damages.values()
            if d.session_id == session_id and (room_id is None or d.room_id == room_id)
        ]

    def set_water_classification(self, session_id: int, classification: WaterClassification) -> None:
        self._water[session_id] = classification

    def get_water_classification(self, session_id: int) -> Optional[WaterClassification]:
        return self._water.get(session_id)

    def add_scope_item(self, item: ScopeItem) -> ScopeItem:
        stored = item.model_copy(update={"id": next(self._item_ids)})
        self._items[stored.id] = stored
        return stored

    def update_scope_item(self, item: ScopeItem) -> ScopeItem:
        if item.id not in self._items:
            raise ClaimScopeError(
                code=ErrorCode.SCOPE_ITEM_NOT_FOUND,
                message=f"Scope item {item.id} not found",
                details={"scope_item_id": item.id},
            )
        self._items[item.id] = item
        return item

    def list_scope_items(
        self,
        session_id: int,
        room_id: Optional[int] = None,
        active_only: bool = False,
    ) -> List[ScopeItem]:
        return [
            item for item in self._items.values()
            if item.session_id == session_id
            and (room_id is None or item.room_id == room_id)
            and (not active_only or item.is_active)
        ]
