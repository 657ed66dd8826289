# block metadata lookup for the world tracker
# src/bot_core/blocks.py
"""
Minimal block registry.

Maps numeric block ids from "block_change" events to the metadata digging
needs (name, collision shapes, hardness, material, harvest tools). The
table covers common terrain blocks; anything else is treated as a full,
diggable cube with hardness 1.0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from contracts.types import FULL_CUBE, Block, Shape, Vec3

PICKAXES = frozenset(
    {"wooden_pickaxe", "stone_pickaxe", "iron_pickaxe", "golden_pickaxe", "diamond_pickaxe"}
)
STONE_TIER_PICKAXES = PICKAXES - {"wooden_pickaxe", "golden_pickaxe"}
DIAMOND_PICKAXES = frozenset({"diamond_pickaxe"})

HALF_SLAB: Shape = (0.0, 0.0, 0.0, 1.0, 0.5, 1.0)


@dataclass(frozen=True)
class BlockInfo:
    """Static metadata for one block id."""
    type_id: int
    name: str
    hardness: Optional[float] = 1.0
    material: Optional[str] = None
    harvest_tools: Optional[frozenset] = None
    shapes: Tuple[Shape, ...] = (FULL_CUBE,)
    diggable: bool = True

    def at(self, position: Vec3) -> Block:
        return Block(
            type_id=self.type_id,
            name=self.name,
            position=position,
            shapes=self.shapes,
            hardness=self.hardness,
            material=self.material,
            harvest_tools=self.harvest_tools,
            diggable=self.diggable,
        )


DEFAULT_BLOCKS: Tuple[BlockInfo, ...] = (
    BlockInfo(0, "air", hardness=None, shapes=(), diggable=False),
    BlockInfo(1, "stone", 1.5, "rock", PICKAXES),
    BlockInfo(2, "grass", 0.6, "dirt"),
    BlockInfo(3, "dirt", 0.5, "dirt"),
    BlockInfo(4, "cobblestone", 2.0, "rock", PICKAXES),
    BlockInfo(5, "planks", 2.0, "wood"),
    BlockInfo(7, "bedrock", None, "rock", diggable=False),
    BlockInfo(8, "flowing_water", 100.0, "water", shapes=(), diggable=False),
    BlockInfo(9, "water", 100.0, "water", shapes=(), diggable=False),
    BlockInfo(12, "sand", 0.5, "dirt"),
    BlockInfo(13, "gravel", 0.6, "dirt"),
    BlockInfo(14, "gold_ore", 3.0, "rock", STONE_TIER_PICKAXES - {"stone_pickaxe"}),
    BlockInfo(15, "iron_ore", 3.0, "rock", STONE_TIER_PICKAXES),
    BlockInfo(16, "coal_ore", 3.0, "rock", PICKAXES),
    BlockInfo(17, "log", 2.0, "wood"),
    BlockInfo(18, "leaves", 0.2, "leaves"),
    BlockInfo(31, "tallgrass", 0.0, "plant", shapes=()),
    BlockInfo(37, "yellow_flower", 0.0, "plant", shapes=()),
    BlockInfo(44, "stone_slab", 2.0, "rock", PICKAXES, shapes=(HALF_SLAB,)),
    BlockInfo(49, "obsidian", 50.0, "rock", DIAMOND_PICKAXES),
    BlockInfo(56, "diamond_ore", 3.0, "rock", STONE_TIER_PICKAXES - {"stone_pickaxe"}),
)


class BlockRegistry:
    """id → BlockInfo table with a permissive fallback for unknown ids."""

    def __init__(self, infos: Iterable[BlockInfo] = DEFAULT_BLOCKS) -> None:
        self._by_id: Dict[int, BlockInfo] = {}
        self._by_name: Dict[str, BlockInfo] = {}
        for info in infos:
            self.register(info)

    def register(self, info: BlockInfo) -> None:
        self._by_id[info.type_id] = info
        self._by_name[info.name] = info

    def info(self, type_id: int) -> BlockInfo:
        found = self._by_id.get(type_id)
        if found is not None:
            return found
        return BlockInfo(type_id, f"unknown_{type_id}")

    def by_name(self, name: str) -> Optional[BlockInfo]:
        return self._by_name.get(name)

    def make_block(self, type_id: int, position: Vec3) -> Block:
        return self.info(type_id).at(position)
