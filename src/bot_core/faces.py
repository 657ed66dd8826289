# choose which block face to dig and where to aim
# src/bot_core/faces.py
"""
Face resolution for digging.

Given a target block and a facing hint, decide which face of the block the
dig packets should name and which point the viewpoint should track.

Hint modes:
    - Vec3 with a non-zero component  → explicit face along that axis
    - "auto" / None                   → aim at block center, face TOP
    - "raycast"                       → probe each visible face with a ray
                                        and keep the nearest unobstructed one

Resolution is deterministic: axes are probed in the order y, x, z and the
first candidate wins exact distance ties.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from contracts.types import Block, BlockFace, RaycastHit, Vec3
from contracts.world import WorldModel
from .errors import BlockNotInViewError

log = logging.getLogger(__name__)

FaceHint = Union[str, Vec3, None]

DEFAULT_FACE = BlockFace.TOP

# Displacements at or below this are hidden behind the block itself.
VISIBLE_AXIS_THRESHOLD = 0.5

# Tolerance when comparing a hit distance with the candidate face distance.
_DISTANCE_EPSILON = 1e-6

_PROBE_AXES = ("y", "x", "z")


@dataclass(frozen=True)
class FaceResolution:
    """Chosen dig face and aim point.

    confirmed is False when the face is only the default (auto mode or a
    passable block with no visible face).
    """
    face: BlockFace
    aim_point: Vec3
    confirmed: bool = True


def face_for_vector(hint: Vec3) -> Optional[Tuple[BlockFace, str, int]]:
    """Map a direction hint to (face, axis, sign) using its first non-zero axis."""
    if hint.x:
        return (BlockFace.EAST if hint.x > 0 else BlockFace.WEST), "x", (1 if hint.x > 0 else -1)
    if hint.y:
        return (BlockFace.TOP if hint.y > 0 else BlockFace.BOTTOM), "y", (1 if hint.y > 0 else -1)
    if hint.z:
        return (BlockFace.SOUTH if hint.z > 0 else BlockFace.NORTH), "z", (1 if hint.z > 0 else -1)
    return None


def _axis_offset(axis: str, amount: float) -> Vec3:
    return Vec3(
        amount if axis == "x" else 0.0,
        amount if axis == "y" else 0.0,
        amount if axis == "z" else 0.0,
    )


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def visible_axes(block: Block, eye: Vec3) -> List[Tuple[str, int]]:
    """
    Return [(axis, sign)] for faces that could be visible from `eye`.

    An axis counts only if the eye is more than half a block from the
    block center along it; sign points from the block toward the eye.
    """
    center = block.center
    deltas = {
        "y": eye.y - center.y,
        "x": eye.x - center.x,
        "z": eye.z - center.z,
    }
    result: List[Tuple[str, int]] = []
    for axis in _PROBE_AXES:
        d = deltas[axis]
        if abs(d) > VISIBLE_AXIS_THRESHOLD:
            result.append((axis, _sign(d)))
    return result


def _resolve_by_raycast(
    block: Block,
    eye: Vec3,
    world: WorldModel,
    max_distance: float,
) -> FaceResolution:
    candidates: List[RaycastHit] = []
    closer_blocks: List[RaycastHit] = []

    for axis, sign in visible_axes(block, eye):
        target_point = block.center + _axis_offset(axis, 0.5 * sign)
        direction = (target_point - eye).normalized()
        hit = world.raycast(eye, direction, max_distance)
        if hit is None:
            continue

        target_distance = eye.distance_to(target_point)
        if eye.distance_to(hit.intersect) < target_distance - _DISTANCE_EPSILON:
            # Something nearer than the target sits on this line of sight.
            closer_blocks.append(hit)
            continue

        if hit.position.block_key() == block.position.block_key():
            candidates.append(hit)

    if candidates:
        best = candidates[0]
        best_dist = best.intersect.distance_squared(eye)
        for hit in candidates[1:]:
            dist = hit.intersect.distance_squared(eye)
            if dist < best_dist:
                best, best_dist = hit, dist
        return FaceResolution(face=best.face, aim_point=best.intersect)

    # Passable blocks (tall grass, flowers) have no faces to hit. Any
    # recorded obstruction, on any axis, still blocks this fallback.
    if not closer_blocks and not block.shapes:
        return FaceResolution(face=DEFAULT_FACE, aim_point=block.center, confirmed=False)

    log.debug(
        "face probe failed for %s at %s (closer=%d)",
        block.name,
        block.position.as_tuple(),
        len(closer_blocks),
    )
    raise BlockNotInViewError(block)


def resolve_face(
    block: Block,
    hint: FaceHint,
    eye: Vec3,
    world: WorldModel,
    *,
    max_distance: float = 5.0,
) -> FaceResolution:
    """
    Resolve the dig face and aim point for `block` seen from `eye`.

    Raises:
        BlockNotInViewError in "raycast" mode when every probe is blocked.
    """
    if isinstance(hint, Vec3):
        mapped = face_for_vector(hint)
        if mapped is not None:
            face, axis, sign = mapped
            return FaceResolution(
                face=face,
                aim_point=block.center + _axis_offset(axis, 0.5 * sign),
            )
        # A zero vector carries no direction; treat as auto.
        hint = "auto"

    if hint == "raycast":
        return _resolve_by_raycast(block, eye, world, max_distance)

    if hint not in (None, "auto"):
        raise ValueError(f"Unknown face hint: {hint!r}")

    return FaceResolution(face=DEFAULT_FACE, aim_point=block.center, confirmed=False)


__all__ = [
    "BlockNotInViewError",
    "DEFAULT_FACE",
    "FaceHint",
    "FaceResolution",
    "face_for_vector",
    "resolve_face",
    "visible_axes",
]
