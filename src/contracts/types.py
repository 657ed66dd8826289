# core shared types: Vec3, BlockFace, Block, RaycastHit, PlayerState
# src/contracts/types.py

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Optional, Tuple


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Vec3:
    """Immutable 3D vector used for positions, directions and aim points."""
    x: float
    y: float
    z: float

    def offset(self, dx: float, dy: float, dz: float) -> "Vec3":
        return Vec3(self.x + dx, self.y + dy, self.z + dz)

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scaled(self, k: float) -> "Vec3":
        return Vec3(self.x * k, self.y * k, self.z * k)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalized(self) -> "Vec3":
        n = self.length()
        if n == 0:
            return Vec3(0.0, 0.0, 0.0)
        return Vec3(self.x / n, self.y / n, self.z / n)

    def distance_squared(self, other: "Vec3") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return dx * dx + dy * dy + dz * dz

    def distance_to(self, other: "Vec3") -> float:
        return math.sqrt(self.distance_squared(other))

    def floored(self) -> "Vec3":
        return Vec3(math.floor(self.x), math.floor(self.y), math.floor(self.z))

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def block_key(self) -> Tuple[int, int, int]:
        """Integer (x, y, z) of the block containing this point."""
        return (math.floor(self.x), math.floor(self.y), math.floor(self.z))


class BlockFace(IntEnum):
    """Block faces as numbered on the wire by the dig packet."""
    BOTTOM = 0
    TOP = 1
    NORTH = 2   # -z
    SOUTH = 3   # +z
    WEST = 4    # -x
    EAST = 5    # +x


# Axis-aligned box in block-local coordinates: (x0, y0, z0, x1, y1, z1)
Shape = Tuple[float, float, float, float, float, float]

FULL_CUBE: Shape = (0.0, 0.0, 0.0, 1.0, 1.0, 1.0)

AIR_NAMES = frozenset({"air", "cave_air", "void_air"})


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Block:
    """Snapshot of a single block at a world position.

    Fields:

      - type_id / name:
          Numeric id and registry name. type_id 0 is air.

      - position:
          Integer block coordinates (minimum corner).

      - shapes:
          Collision boxes in block-local coordinates. Empty for passable
          blocks (air, tall grass, flowers).

      - hardness:
          Break hardness; None means unbreakable.

      - material:
          Tool-affinity material ("rock", "dirt", "wood", "plant", ...).

      - harvest_tools:
          Item names able to harvest the block; None means any tool (or bare hand).
    """
    type_id: int
    name: str
    position: Vec3
    shapes: Tuple[Shape, ...] = (FULL_CUBE,)
    hardness: Optional[float] = 1.0
    material: Optional[str] = None
    harvest_tools: Optional[frozenset] = None
    diggable: bool = True

    @property
    def is_air(self) -> bool:
        return self.type_id == 0 or self.name in AIR_NAMES

    @property
    def center(self) -> Vec3:
        return self.position.offset(0.5, 0.5, 0.5)


@dataclass(frozen=True)
class RaycastHit:
    """Result of a world raycast: hit block position, entry face, intersection point."""
    position: Vec3
    face: BlockFace
    intersect: Vec3
    block: Optional[Block] = None


# ---------------------------------------------------------------------------
# Player / entity state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Enchantment:
    name: str      # e.g. "efficiency", "aqua_affinity"
    level: int


@dataclass(frozen=True)
class ItemStack:
    """Minimal item view needed for dig-time estimates."""
    type_id: int
    name: str
    count: int = 1
    enchantments: Tuple[Enchantment, ...] = ()


@dataclass
class PlayerState:
    """Snapshot of the local player used by digging.

    effects maps effect name ("haste", "mining_fatigue", ...) to amplifier
    (0 = level I).
    """
    position: Vec3
    eye_height: float = 1.62
    is_in_water: bool = False
    on_ground: bool = True
    held_item: Optional[ItemStack] = None
    helmet: Optional[ItemStack] = None
    effects: Dict[str, int] = field(default_factory=dict)
    game_mode: str = "survival"

    @property
    def eye_position(self) -> Vec3:
        return self.position.offset(0.0, self.eye_height, 0.0)
