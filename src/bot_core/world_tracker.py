# track blocks and player state from packets; feed the event bridge
# src/bot_core/world_tracker.py
"""
World tracker for bot_core.

Consumes normalized packet / IPC events from a PacketClient and maintains
a raw, incrementally updated view of the blocks and the local player. It
is the default WorldModel and PlayerStateSource for the digging controller
and the producer of the world-change side of the event bridge.

PacketClient implementations must normalize wire data into logically
named event types:

    - "position_update"       → player position/rotation
    - "block_change"          → one block changed
    - "multi_block_change"    → several blocks changed
    - "chunk_unload"          → a chunk column left view distance
    - "world_unload"          → dimension change / disconnect
    - "set_slot"              → single inventory slot changed
    - "window_items"          → full inventory snapshot
    - "held_item"             → selected hotbar slot changed
    - "entity_effect"         → status effect added/updated on the player
    - "remove_entity_effect"  → status effect removed
    - "game_mode"             → game mode changed
    - "update_health"         → health changed; <= 0 means death

Rules:
- Never embed tool or dig-time semantics here.
- Keep storage minimal and "raw".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Tuple

from contracts.types import (
    Block,
    Enchantment,
    ItemStack,
    PlayerState,
    RaycastHit,
    Vec3,
)
from .blocks import BlockRegistry
from .events import BLOCK_UPDATE, DEATH, EventEmitter, block_update_topic
from .net import PacketClient
from .raycast import raycast as cast_ray

log = logging.getLogger(__name__)

BlockKey = Tuple[int, int, int]

# player window layout: 5 = helmet, 36..44 = hotbar
HELMET_SLOT = 5
HOTBAR_START = 36

PLAYER_EYE_HEIGHT = 1.62

_WATER_NAMES = ("water", "flowing_water")


@dataclass
class _PlayerState:
    """Minimal tracked state for the local player."""

    pos: Dict[str, float] = field(
        default_factory=lambda: {"x": 0.0, "y": 64.0, "z": 0.0}
    )
    yaw: float = 0.0
    pitch: float = 0.0
    on_ground: bool = True
    held_slot: int = 0
    game_mode: str = "survival"
    health: float = 20.0
    effects: Dict[str, int] = field(default_factory=dict)


def _item_from_payload(item: Any) -> Optional[ItemStack]:
    if not isinstance(item, Mapping) or not item:
        return None
    try:
        type_id = int(item.get("type_id", item.get("id", -1)))
    except (TypeError, ValueError):
        return None
    if type_id < 0:
        return None

    enchants: List[Enchantment] = []
    for raw in item.get("enchantments") or ():
        if not isinstance(raw, Mapping):
            continue
        try:
            enchants.append(Enchantment(name=str(raw["name"]), level=int(raw.get("level", 1))))
        except (KeyError, TypeError, ValueError):
            continue

    return ItemStack(
        type_id=type_id,
        name=str(item.get("name", f"item_{type_id}")),
        count=int(item.get("count", 1) or 1),
        enchantments=tuple(enchants),
    )


class WorldTracker:
    """
    Maintains blocks and player state fed by packets.

    Implements:
      - WorldModel: block_at(), raycast()
      - PlayerStateSource: player_state()

    Emits on the shared EventEmitter:
      - block_update_topic(pos) with (old, new) for every block change
      - (None, None) to every watched position when chunks/world unload
      - DEATH when health drops to zero
    """

    def __init__(
        self,
        client: PacketClient,
        events: Optional[EventEmitter] = None,
        *,
        registry: Optional[BlockRegistry] = None,
    ) -> None:
        self._client = client
        self._events = events if events is not None else EventEmitter()
        self._registry = registry or BlockRegistry()

        self._player = _PlayerState()
        self._blocks: Dict[BlockKey, Block] = {}
        self._inventory: Dict[int, ItemStack] = {}

        self._lock = RLock()

        # Wire client → handlers
        self._register_handlers()

    # ------------------------------------------------------------------
    # Packet wiring
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        self._client.on_packet("position_update", self._handle_position_update)
        self._client.on_packet("block_change", self._handle_block_change)
        self._client.on_packet("multi_block_change", self._handle_multi_block_change)
        self._client.on_packet("chunk_unload", self._handle_chunk_unload)
        self._client.on_packet("world_unload", self._handle_world_unload)
        self._client.on_packet("set_slot", self._handle_set_slot)
        self._client.on_packet("window_items", self._handle_window_items)
        self._client.on_packet("held_item", self._handle_held_item)
        self._client.on_packet("entity_effect", self._handle_entity_effect)
        self._client.on_packet("remove_entity_effect", self._handle_remove_entity_effect)
        self._client.on_packet("game_mode", self._handle_game_mode)
        self._client.on_packet("update_health", self._handle_update_health)

    # ------------------------------------------------------------------
    # Packet handlers
    # ------------------------------------------------------------------

    def _handle_position_update(self, pkt: Mapping[str, Any]) -> None:
        """
        Update player position/rotation.

        Expected fields:
            - "x", "y", "z": float
            - "yaw", "pitch": float
            - "on_ground": bool (optional)
        """
        with self._lock:
            try:
                self._player.pos = {
                    "x": float(pkt.get("x", self._player.pos["x"])),
                    "y": float(pkt.get("y", self._player.pos["y"])),
                    "z": float(pkt.get("z", self._player.pos["z"])),
                }
            except (TypeError, ValueError):
                # Ignore malformed position updates.
                pass

            for key in ("yaw", "pitch"):
                value = pkt.get(key)
                if value is None:
                    continue
                try:
                    setattr(self._player, key, float(value))
                except (TypeError, ValueError):
                    pass

            if "on_ground" in pkt:
                self._player.on_ground = bool(pkt["on_ground"])

    def _handle_block_change(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "x", "y", "z": int block coordinates
            - "type_id": int (0 = air)
        """
        try:
            key = (int(pkt["x"]), int(pkt["y"]), int(pkt["z"]))
            type_id = int(pkt.get("type_id", pkt.get("block_id")))
        except (KeyError, TypeError, ValueError):
            log.debug("WorldTracker ignoring malformed block_change: %r", pkt)
            return
        self.set_block(key, type_id)

    def _handle_multi_block_change(self, pkt: Mapping[str, Any]) -> None:
        for record in pkt.get("records") or ():
            if isinstance(record, Mapping):
                self._handle_block_change(record)

    def _handle_chunk_unload(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "chunk_x", "chunk_z": ints
        """
        try:
            cx = int(pkt["chunk_x"])
            cz = int(pkt["chunk_z"])
        except (KeyError, TypeError, ValueError):
            return

        with self._lock:
            dropped = [k for k in self._blocks if k[0] >> 4 == cx and k[2] >> 4 == cz]
            for key in dropped:
                del self._blocks[key]

        self._emit_unload(lambda key: key[0] >> 4 == cx and key[2] >> 4 == cz)

    def _handle_world_unload(self, pkt: Mapping[str, Any]) -> None:
        with self._lock:
            self._blocks.clear()
        self._emit_unload(lambda key: True)

    def _handle_set_slot(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields (normalized):
            - "slot": int
            - "item": mapping (type_id, name, count, enchantments) or None
        """
        try:
            idx = int(pkt.get("slot"))
        except (TypeError, ValueError):
            return

        item = _item_from_payload(pkt.get("item"))
        with self._lock:
            if item is None:
                self._inventory.pop(idx, None)
            else:
                self._inventory[idx] = item

    def _handle_window_items(self, pkt: Mapping[str, Any]) -> None:
        """
        Replace the entire inventory representation.

        Expected fields:
            - "items": list (one entry per slot, None/{} for empty)
        """
        items = pkt.get("items")
        if not isinstance(items, list):
            return

        new_inv: Dict[int, ItemStack] = {}
        for idx, entry in enumerate(items):
            item = _item_from_payload(entry)
            if item is not None:
                new_inv[idx] = item
        with self._lock:
            self._inventory = new_inv

    def _handle_held_item(self, pkt: Mapping[str, Any]) -> None:
        try:
            slot = int(pkt.get("slot"))
        except (TypeError, ValueError):
            return
        if 0 <= slot <= 8:
            with self._lock:
                self._player.held_slot = slot

    def _handle_entity_effect(self, pkt: Mapping[str, Any]) -> None:
        name = pkt.get("effect")
        if not isinstance(name, str):
            return
        try:
            amplifier = int(pkt.get("amplifier", 0))
        except (TypeError, ValueError):
            amplifier = 0
        with self._lock:
            self._player.effects[name] = amplifier

    def _handle_remove_entity_effect(self, pkt: Mapping[str, Any]) -> None:
        name = pkt.get("effect")
        with self._lock:
            self._player.effects.pop(name, None)

    def _handle_game_mode(self, pkt: Mapping[str, Any]) -> None:
        mode = pkt.get("mode")
        if isinstance(mode, str):
            with self._lock:
                self._player.game_mode = mode

    def _handle_update_health(self, pkt: Mapping[str, Any]) -> None:
        try:
            health = float(pkt["health"])
        except (KeyError, TypeError, ValueError):
            return

        with self._lock:
            was_alive = self._player.health > 0
            self._player.health = health

        if was_alive and health <= 0:
            log.info("WorldTracker: player died")
            self._events.emit(DEATH)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def events(self) -> EventEmitter:
        return self._events

    def set_block(self, key: BlockKey, type_id: int) -> Block:
        """Store a block and notify watchers of its position."""
        position = Vec3(*key)
        new = self._registry.make_block(type_id, position)
        with self._lock:
            old = self._blocks.get(key)
            self._blocks[key] = new
        self._events.emit(block_update_topic(position), old, new)
        return new

    def block_at(self, position: Vec3) -> Optional[Block]:
        with self._lock:
            return self._blocks.get(position.block_key())

    def raycast(
        self,
        origin: Vec3,
        direction: Vec3,
        max_distance: float,
    ) -> Optional[RaycastHit]:
        return cast_ray(self.block_at, origin, direction, max_distance)

    def player_state(self) -> PlayerState:
        """Build a PlayerState snapshot from the current tracked state."""
        with self._lock:
            pos = Vec3(self._player.pos["x"], self._player.pos["y"], self._player.pos["z"])
            feet = self._blocks.get(pos.block_key())
            return PlayerState(
                position=pos,
                eye_height=PLAYER_EYE_HEIGHT,
                is_in_water=feet is not None and feet.name in _WATER_NAMES,
                on_ground=self._player.on_ground,
                held_item=self._inventory.get(HOTBAR_START + self._player.held_slot),
                helmet=self._inventory.get(HELMET_SLOT),
                effects=dict(self._player.effects),
                game_mode=self._player.game_mode,
            )

    @property
    def yaw(self) -> float:
        return self._player.yaw

    @property
    def pitch(self) -> float:
        return self._player.pitch

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _emit_unload(self, matches) -> None:
        for topic in self._events.topics():
            if not (isinstance(topic, tuple) and topic[0] == BLOCK_UPDATE):
                continue
            if matches(topic[1]):
                self._events.emit(topic, None, None)


__all__ = ["WorldTracker"]
