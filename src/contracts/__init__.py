# src/contracts/__init__.py

from __future__ import annotations

"""
Public contract surface for the digging client.

This module re-exports *interfaces and data types* used across the codebase:
  - geometry and block primitives (Vec3, BlockFace, Block, RaycastHit)
  - player snapshot types (PlayerState, ItemStack, Enchantment)
  - collaborator protocols (WorldModel, PlayerStateSource, OrientationControl)

Deliberately does NOT export concrete implementations; those live in
src/bot_core/.
"""

from .types import (
    AIR_NAMES,
    FULL_CUBE,
    Block,
    BlockFace,
    Enchantment,
    ItemStack,
    PlayerState,
    RaycastHit,
    Shape,
    Vec3,
)

from .world import (
    OrientationControl,
    PlayerStateSource,
    WorldModel,
)

__all__ = [
    # geometry / blocks
    "AIR_NAMES",
    "FULL_CUBE",
    "Block",
    "BlockFace",
    "RaycastHit",
    "Shape",
    "Vec3",
    # player
    "Enchantment",
    "ItemStack",
    "PlayerState",
    # collaborators
    "OrientationControl",
    "PlayerStateSource",
    "WorldModel",
]
