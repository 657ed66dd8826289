# dig-time estimate inputs and the default estimator
# src/bot_core/dig_time.py
"""
Completion-time estimates for digging.

The controller treats the estimator as an opaque function:

    DigTimeFn(block, conditions) -> seconds | math.inf

conditions_from_player() assembles the inputs from a PlayerState snapshot
(held tool, helmet enchantments, water, airborne, effects, game mode).
vanilla_dig_time() is the default estimator; callers with better block
metadata inject their own.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Tuple

from contracts.types import Block, Enchantment, PlayerState

TICKS_PER_SECOND = 20

# tool name suffix → block material it is effective on
_TOOL_MATERIALS: Dict[str, Tuple[str, ...]] = {
    "_pickaxe": ("rock", "metal"),
    "_shovel": ("dirt",),
    "_axe": ("wood",),
    "_hoe": ("plant",),
}

# tool tier prefix → mining speed multiplier
_TIER_SPEEDS: Dict[str, float] = {
    "wooden": 2.0,
    "stone": 4.0,
    "iron": 6.0,
    "diamond": 8.0,
    "netherite": 9.0,
    "golden": 12.0,
}

# mining fatigue multiplier by amplifier (0 = level I)
_FATIGUE_MULTIPLIERS = (0.3, 0.09, 0.0027, 0.00081)


@dataclass(frozen=True)
class DigConditions:
    """Environment snapshot the estimate depends on."""
    tool: Optional[str] = None
    creative: bool = False
    submerged: bool = False
    airborne: bool = False
    enchantments: Tuple[Enchantment, ...] = ()
    effects: Mapping[str, int] = field(default_factory=dict)

    def enchantment_level(self, name: str) -> int:
        return max((e.level for e in self.enchantments if e.name == name), default=0)


DigTimeFn = Callable[[Block, DigConditions], float]


def conditions_from_player(player: PlayerState) -> DigConditions:
    """
    Build DigConditions from the current player snapshot.

    Helmet enchantments are appended to the held item's because aqua
    affinity on the helmet changes underwater dig speed.
    """
    tool = None
    enchantments: Tuple[Enchantment, ...] = ()
    if player.held_item is not None:
        tool = player.held_item.name
        enchantments = tuple(player.held_item.enchantments)
    if player.helmet is not None:
        enchantments = enchantments + tuple(player.helmet.enchantments)

    return DigConditions(
        tool=tool,
        creative=player.game_mode == "creative",
        submerged=player.is_in_water,
        airborne=not player.on_ground,
        enchantments=enchantments,
        effects=dict(player.effects),
    )


def tool_speed(tool: Optional[str], material: Optional[str]) -> float:
    """Speed multiplier of `tool` against `material` (1.0 when not effective)."""
    if not tool or not material:
        return 1.0
    for suffix, materials in _TOOL_MATERIALS.items():
        if tool.endswith(suffix) and material in materials:
            tier = tool[: -len(suffix)]
            return _TIER_SPEEDS.get(tier, 1.0)
    if tool == "shears" and material in ("plant", "leaves", "wool"):
        return 5.0 if material == "wool" else 15.0
    return 1.0


def vanilla_dig_time(block: Block, conditions: DigConditions) -> float:
    """
    Estimate seconds to break `block` under `conditions`.

    Returns 0 for instant breaks (creative, zero hardness) and math.inf for
    unbreakable blocks.
    """
    if conditions.creative:
        return 0.0
    if block.hardness is None or block.hardness < 0 or not block.diggable:
        return math.inf
    if block.hardness == 0:
        return 0.0

    can_harvest = block.harvest_tools is None or conditions.tool in block.harvest_tools

    speed = tool_speed(conditions.tool, block.material)
    efficiency = conditions.enchantment_level("efficiency")
    if speed > 1.0 and efficiency > 0:
        speed += efficiency * efficiency + 1

    haste = conditions.effects.get("haste")
    if haste is not None:
        speed *= 1.0 + 0.2 * (haste + 1)

    fatigue = conditions.effects.get("mining_fatigue")
    if fatigue is not None:
        speed *= _FATIGUE_MULTIPLIERS[min(fatigue, len(_FATIGUE_MULTIPLIERS) - 1)]

    if conditions.submerged and conditions.enchantment_level("aqua_affinity") == 0:
        speed /= 5.0
    if conditions.airborne:
        speed /= 5.0

    # ticks = 1 / damage, with damage = speed / hardness / divisor
    ticks = block.hardness * (30.0 if can_harvest else 100.0) / speed
    if ticks < 1.0:
        return 0.0

    return math.ceil(ticks) / TICKS_PER_SECOND


__all__ = [
    "DigConditions",
    "DigTimeFn",
    "conditions_from_player",
    "tool_speed",
    "vanilla_dig_time",
]
