"""Evaluation context supplied by callers.

The context is the read/write handle every condition and value source
queries: a player snapshot, the equipped-item snapshot, the current dice
hand and the per-action "used" scratch counters. Callers own it; the
engine only reads it (and updates the used scratch during consumption).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TYPE_CHECKING

from .constants import ITEM_RARITY_RANK

if TYPE_CHECKING:
    from .affix import Affix
    from ..combat.dice import Die


class ItemRarity(Enum):
    """Rarity of an equipped item."""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return ITEM_RARITY_RANK[self.value]


class EquipmentSlot(Enum):
    """Equipment slots a player can fill."""
    MAIN_HAND = "main_hand"
    OFF_HAND = "off_hand"
    HEAD = "head"
    CHEST = "chest"
    HANDS = "hands"
    LEGS = "legs"
    FEET = "feet"
    ACCESSORY = "accessory"


@dataclass(eq=False)
class EquippedItem:
    """
    Snapshot of an equipped item.

    Items compare by identity: a two-handed weapon is a single object that
    occupies both hand slots.

    Attributes:
        id: Unique item identifier.
        name: Display name.
        slot: Slot the item is equipped to.
        rarity: Item rarity.
        tags: Free-form tags ("heavy", "sword", ...).
        is_two_handed: Occupies main hand and off hand.
        affixes: Affixes the item grants while equipped.
    """

    id: str
    name: str
    slot: EquipmentSlot = EquipmentSlot.MAIN_HAND
    rarity: ItemRarity = ItemRarity.COMMON
    tags: set[str] = field(default_factory=set)
    is_two_handed: bool = False
    affixes: list["Affix"] = field(default_factory=list)

    @property
    def rarity_rank(self) -> int:
        return self.rarity.rank

    def __repr__(self) -> str:
        return f"EquippedItem({self.id!r}, {self.slot.value}, {self.rarity.value})"


@dataclass
class PlayerSnapshot:
    """Player facts visible to conditions and value sources."""

    class_name: str = ""
    stats: dict[str, float] = field(default_factory=dict)
    health: float = 0.0
    max_health: float = 0.0

    def get_stat(self, stat_name: str) -> Optional[float]:
        """Get a stat value, or None if the player has no such stat."""
        value = self.stats.get(stat_name)
        return None if value is None else float(value)

    @property
    def health_percent(self) -> float:
        """Current health as a fraction of max health (0.0 when unknown)."""
        if self.max_health <= 0:
            return 0.0
        return self.health / self.max_health


@dataclass
class EvaluationContext:
    """
    Runtime facts for one evaluation call.

    Attributes:
        player: Player snapshot.
        equipment: Slot -> equipped item (None for an empty slot).
        hand: Current dice hand in slot order (consumed dice included).
        used_count: Dice used during the current action.
        used_indices: Slot indices used during the current action.
        in_combat: Whether a combat is in progress.
        turn_number: Current combat turn (0 outside combat).
    """

    player: PlayerSnapshot = field(default_factory=PlayerSnapshot)
    equipment: dict[EquipmentSlot, Optional[EquippedItem]] = field(default_factory=dict)
    hand: list["Die"] = field(default_factory=list)
    used_count: int = 0
    used_indices: set[int] = field(default_factory=set)
    in_combat: bool = False
    turn_number: int = 0

    # =========================================================================
    # EQUIPMENT
    # =========================================================================

    def equip(self, item: EquippedItem, slot: Optional[EquipmentSlot] = None) -> None:
        """Place an item in a slot. Two-handed weapons fill both hand slots."""
        if item.is_two_handed:
            self.equipment[EquipmentSlot.MAIN_HAND] = item
            self.equipment[EquipmentSlot.OFF_HAND] = item
            return
        self.equipment[slot or item.slot] = item

    def unequip(self, slot: EquipmentSlot) -> Optional[EquippedItem]:
        """Empty a slot, returning what was there."""
        item = self.equipment.get(slot)
        if item is None:
            return None
        for other_slot, other in self.equipment.items():
            if other is item:
                self.equipment[other_slot] = None
        return item

    def get_equipped(self, slot: EquipmentSlot) -> Optional[EquippedItem]:
        return self.equipment.get(slot)

    def filled_slot_count(self) -> int:
        """Number of non-empty slots."""
        return sum(1 for item in self.equipment.values() if item is not None)

    def all_slots_filled(self) -> bool:
        return all(self.equipment.get(slot) is not None for slot in EquipmentSlot)

    def equipped_items(self) -> list[EquippedItem]:
        """Distinct equipped items, in slot order."""
        seen: list[EquippedItem] = []
        for item in self.equipment.values():
            if item is not None and not any(item is s for s in seen):
                seen.append(item)
        return seen

    def equipment_rarity_sum(self) -> int:
        return sum(item.rarity_rank for item in self.equipped_items())

    # =========================================================================
    # USED-DICE SCRATCH
    # =========================================================================

    def mark_used(self, slot_index: int) -> None:
        """Record a die as used for the current action."""
        if slot_index in self.used_indices:
            return
        self.used_indices.add(slot_index)
        self.used_count += 1

    def is_used(self, slot_index: int) -> bool:
        return slot_index in self.used_indices

    def reset_action(self) -> None:
        """Clear the per-action scratch."""
        self.used_indices.clear()
        self.used_count = 0
