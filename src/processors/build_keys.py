"""
Build Key Normalization

Reduces raw build information into canonical, comparable keys:
- Core build key: first three completed items, boots collapsed to one id
- Summoner spell pair key (order independent)
- Starting item signature (order independent)
- Skill max order ("qwe") from a level-up sequence
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from loguru import logger

# Starting-tier boots are a component, not a completed item
TIER1_BOOT_ID = 1001
TIER2_BOOT_IDS = frozenset({3006, 3009, 3020, 3047, 3111, 3117, 3158})
BOOT_IDS = TIER2_BOOT_IDS | {TIER1_BOOT_ID}

# Sentinel every finished boot collapses to inside a core key
NORMALIZED_BOOT_ID = 99999
CORE_KEY_SEPARATOR = "_"
CORE_SIZE = 3

# Items at or above this id are legendary when no catalog entry exists,
# unless they are a known component below
LEGENDARY_ID_FLOOR = 3000

# Build components and support/starter items numbered above the floor
COMPONENT_IDS = frozenset({
    3024,  # Glacial Buckler
    3035,  # Last Whisper
    3044,  # Phage
    3051,  # Hearthbound Axe
    3057,  # Sheen
    3066,  # Winged Moonplate
    3067,  # Kindlegem
    3070,  # Tear of the Goddess
    3076,  # Bramble Vest
    3082,  # Warden's Mail
    3086,  # Zeal
    3105,  # Aegis of the Legion
    3108,  # Fiendish Codex
    3112,  # Guardian's Orb
    3113,  # Aether Wisp
    3114,  # Forbidden Idol
    3123,  # Executioner's Calling
    3133,  # Caulfield's Warhammer
    3134,  # Serrated Dirk
    3140,  # Quicksilver Sash
    3145,  # Hextech Alternator
    3147,  # Haunting Guise
    3155,  # Hexdrinker
    3177,  # Guardian's Blade
    3184,  # Guardian's Hammer
    3211,  # Spectre's Cowl
    3330,  # Scarecrow Effigy
    3340,  # Stealth Ward
    3363,  # Farsight Alteration
    3364,  # Oracle Lens
    3400,  # Your Cut
    3513,  # Eye of the Herald
    3599,  # Kalista's Black Spear
    3600,  # Kalista's Black Spear
    3801,  # Crystalline Bracer
    3802,  # Lost Chapter
    3803,  # Catalyst of Aeons
    3850,  # Spellthief's Edge
    3851,  # Frostfang
    3854,  # Steel Shoulderguards
    3855,  # Runesteel Spaulders
    3858,  # Relic Shield
    3859,  # Targon's Buckler
    3862,  # Spectral Sickle
    3863,  # Harrowing Crescent
    3865,  # World Atlas
    3866,  # Runic Compass
    3916,  # Oblivion Orb
    4630,  # Blighting Jewel
    4632,  # Verdant Barrier
    4635,  # Leeching Leer
    4642,  # Bandleglass Mirror
    6029,  # Ironspike Whip
    6660,  # Bami's Cinder
    6670,  # Noonquiver
    6677,  # Rageknife
    6690,  # Rectrix
})



class ItemType(str, Enum):
    """Item classification used to decide what counts as completed."""

    LEGENDARY = "legendary"
    MYTHIC = "mythic"
    BOOTS = "boots"
    COMPONENT = "component"
    STARTER = "starter"
    CONSUMABLE = "consumable"
    UNKNOWN = "unknown"


COMPLETED_TYPES = frozenset({ItemType.LEGENDARY, ItemType.MYTHIC, ItemType.BOOTS})


class ItemCatalog:
    """
    Item type lookup.

    Uses explicit item types when they are provided (for example from a
    game data export); ids missing from a loaded catalog are not completed.
    An empty catalog falls back to an id-range heuristic that excludes
    known components.
    """

    def __init__(self, item_types: dict[int, ItemType | str] | None = None) -> None:
        """
        Initialize the catalog.

        Args:
            item_types: Optional mapping of item id to item type
        """
        self._types: dict[int, ItemType] = {}
        for item_id, item_type in (item_types or {}).items():
            try:
                self._types[int(item_id)] = ItemType(item_type)
            except ValueError:
                self._types[int(item_id)] = ItemType.UNKNOWN

    @classmethod
    def from_json(cls, path: str | Path) -> ItemCatalog:
        """Load a ``{"<id>": {"itemType": "legendary", ...}}`` export."""
        with open(path) as f:
            data = json.load(f)
        types = {
            int(item_id): entry.get("itemType", ItemType.UNKNOWN.value)
            for item_id, entry in data.items()
            if isinstance(entry, dict)
        }
        logger.debug(f"Loaded {len(types)} item types from {path}")
        return cls(types)

    def __len__(self) -> int:
        return len(self._types)

    def item_type(self, item_id: int) -> ItemType | None:
        return self._types.get(item_id)

    @staticmethod
    def is_boots(item_id: int) -> bool:
        """Any tier of boots, including the starting tier."""
        return item_id in BOOT_IDS

    def is_completed(self, item_id: int) -> bool:
        """Legendary, mythic or finished (tier 2+) boots."""
        if item_id <= 0 or item_id == TIER1_BOOT_ID:
            return False
        if item_id in TIER2_BOOT_IDS:
            return True

        if self._types:
            return self._types.get(item_id) in COMPLETED_TYPES
        return item_id >= LEGENDARY_ID_FLOOR and item_id not in COMPONENT_IDS

    def normalize_for_core(self, item_id: int) -> int:
        """Collapse finished boots to the sentinel id."""
        if item_id in TIER2_BOOT_IDS or self._types.get(item_id) == ItemType.BOOTS:
            return NORMALIZED_BOOT_ID
        return item_id


class ComboKeyNormalizer:
    """
    Canonical core build identity.

    The core is the first three distinct completed items in purchase
    order, with finished boots collapsed to one sentinel. The key is the
    sorted ids joined by ``_``; builds that never complete three distinct
    items have no key.
    """

    def __init__(self, catalog: ItemCatalog | None = None) -> None:
        self.catalog = catalog or ItemCatalog()

    def core_items(
        self,
        purchase_order: Sequence[int],
        final_items: Iterable[int] | None = None,
    ) -> list[int]:
        """
        Collect normalized core item ids in purchase order.

        Args:
            purchase_order: Item ids in chronological buy order
            final_items: Final inventory; purchases missing from it (sold
                items) are skipped when given

        Returns:
            Up to three distinct normalized ids
        """
        inventory = {i for i in final_items if i > 0} if final_items is not None else None
        core: list[int] = []

        for item_id in purchase_order:
            if len(core) >= CORE_SIZE:
                break
            if not self.catalog.is_completed(item_id):
                continue
            if inventory is not None and item_id not in inventory:
                continue

            normalized = self.catalog.normalize_for_core(item_id)
            if normalized not in core:
                core.append(normalized)

        return core

    def core_key(
        self,
        purchase_order: Sequence[int],
        final_items: Iterable[int] | None = None,
    ) -> str | None:
        """Return the canonical core key, or None when fewer than 3 items qualify."""
        core = self.core_items(purchase_order, final_items)
        if len(set(core)) != CORE_SIZE:
            return None
        return CORE_KEY_SEPARATOR.join(str(i) for i in sorted(core))


def split_core_key(key: str) -> list[int]:
    """Parse a core key back into its item ids."""
    return [int(part) for part in key.split(CORE_KEY_SEPARATOR) if part]


def core_overlap(key_a: str, key_b: str) -> int:
    """Number of item ids two core keys share."""
    return len(set(split_core_key(key_a)) & set(split_core_key(key_b)))


def spell_pair_key(spell1: int, spell2: int) -> str:
    """Order-independent summoner spell key, e.g. ``"4_14"``."""
    return f"{min(spell1, spell2)}_{max(spell1, spell2)}"


def starting_items_key(item_ids: Iterable[int]) -> str | None:
    """Sorted comma-separated starting item signature."""
    ids = sorted(i for i in item_ids if i > 0)
    if not ids:
        return None
    return ",".join(str(i) for i in ids)


def normalize_starting_key(key: str | None) -> str | None:
    """Re-sort a stored starting item signature (``"1055,1001"`` -> ``"1001,1055"``)."""
    if not key:
        return None
    ids = []
    for part in key.split(","):
        part = part.strip()
        if part.isdigit():
            ids.append(int(part))
    return starting_items_key(ids)


def skill_max_order(ability_order: str | Sequence[str] | None) -> str | None:
    """
    Derive the skill max order from a level-up sequence.

    A basic ability is maxed on its fifth point. Two maxed abilities imply
    the third; fewer than two give no order.

    Args:
        ability_order: Space separated ("Q W E Q ...") or a sequence of letters

    Returns:
        Lowercase max order such as ``"qwe"``, or None
    """
    if not ability_order:
        return None

    abilities = ability_order.split() if isinstance(ability_order, str) else ability_order
    counts = {"Q": 0, "W": 0, "E": 0}
    max_order: list[str] = []

    for ability in abilities:
        ability = ability.upper()
        if ability not in counts:
            continue
        counts[ability] += 1
        if counts[ability] == 5:
            max_order.append(ability.lower())

    if len(max_order) < 2:
        return None
    if len(max_order) == 2:
        missing = next(a for a in "qwe" if a not in max_order)
        max_order.append(missing)
    return "".join(max_order)
