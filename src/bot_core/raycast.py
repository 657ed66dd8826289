# voxel raycast over block collision boxes
# src/bot_core/raycast.py
"""
Ray casting through the block grid.

Walks the voxels a ray passes through (Amanatides & Woo traversal) and,
for each loaded block with collision shapes, intersects the ray with the
block's boxes. The first box hit within range wins.

Only used for visibility probes when choosing which face to dig; it does
not model entities or fluids.
"""

from __future__ import annotations

import math
from typing import Callable, Optional, Tuple

from contracts.types import Block, BlockFace, RaycastHit, Shape, Vec3

BlockAtFn = Callable[[Vec3], Optional[Block]]

_INF = float("inf")

# (low-side face, high-side face) per axis
_AXIS_FACES = (
    (BlockFace.WEST, BlockFace.EAST),
    (BlockFace.BOTTOM, BlockFace.TOP),
    (BlockFace.NORTH, BlockFace.SOUTH),
)


def intersect_box(
    origin: Vec3,
    direction: Vec3,
    box: Shape,
) -> Optional[Tuple[float, BlockFace]]:
    """
    Slab test of a ray against an axis-aligned box in world coordinates.

    Returns (distance along the ray, entry face) or None. A ray starting
    inside the box reports distance 0.
    """
    o = origin.as_tuple()
    d = direction.as_tuple()
    lo = box[:3]
    hi = box[3:]

    t_enter = -_INF
    t_exit = _INF
    face: Optional[BlockFace] = None

    for axis in range(3):
        if d[axis] == 0:
            if o[axis] < lo[axis] or o[axis] > hi[axis]:
                return None
            continue

        t1 = (lo[axis] - o[axis]) / d[axis]
        t2 = (hi[axis] - o[axis]) / d[axis]
        if d[axis] > 0:
            near, far, entry = t1, t2, _AXIS_FACES[axis][0]
        else:
            near, far, entry = t2, t1, _AXIS_FACES[axis][1]

        if near > t_enter:
            t_enter = near
            face = entry
        t_exit = min(t_exit, far)

    if face is None or t_enter > t_exit or t_exit < 0:
        return None

    return max(t_enter, 0.0), face


def _intersect_block(
    block: Block,
    origin: Vec3,
    direction: Vec3,
    max_distance: float,
) -> Optional[RaycastHit]:
    px, py, pz = block.position.as_tuple()
    best: Optional[Tuple[float, BlockFace]] = None

    for shape in block.shapes:
        box = (
            px + shape[0], py + shape[1], pz + shape[2],
            px + shape[3], py + shape[4], pz + shape[5],
        )
        hit = intersect_box(origin, direction, box)
        if hit is None or hit[0] > max_distance:
            continue
        if best is None or hit[0] < best[0]:
            best = hit

    if best is None:
        return None

    t, face = best
    return RaycastHit(
        position=block.position,
        face=face,
        intersect=origin + direction.scaled(t),
        block=block,
    )


def raycast(
    block_at: BlockAtFn,
    origin: Vec3,
    direction: Vec3,
    max_distance: float,
) -> Optional[RaycastHit]:
    """
    Return the first block hit by the ray, or None.

    `direction` must be normalized; distances are measured along it.
    """
    if direction.length() == 0:
        return None

    pos = [math.floor(origin.x), math.floor(origin.y), math.floor(origin.z)]
    o = origin.as_tuple()
    d = direction.as_tuple()

    step = [0, 0, 0]
    t_max = [_INF, _INF, _INF]
    t_delta = [_INF, _INF, _INF]
    for axis in range(3):
        if d[axis] > 0:
            step[axis] = 1
            t_max[axis] = (pos[axis] + 1 - o[axis]) / d[axis]
            t_delta[axis] = 1 / d[axis]
        elif d[axis] < 0:
            step[axis] = -1
            t_max[axis] = (pos[axis] - o[axis]) / d[axis]
            t_delta[axis] = -1 / d[axis]

    t = 0.0
    while t <= max_distance:
        block = block_at(Vec3(pos[0], pos[1], pos[2]))
        if block is not None and block.shapes:
            hit = _intersect_block(block, origin, direction, max_distance)
            if hit is not None:
                return hit

        # Step into the neighbouring voxel with the nearest boundary.
        axis = min(range(3), key=lambda a: t_max[a])
        t = t_max[axis]
        pos[axis] += step[axis]
        t_max[axis] += t_delta[axis]

    return None


__all__ = ["intersect_box", "raycast"]
