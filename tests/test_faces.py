# tests/test_faces.py
"""
Unit tests for dig face resolution.

Covers:
- explicit direction hints
- auto / zero-vector hints
- raycast probing: nearest face, obstructed face, passable fallback
- BlockNotInViewError when every line of sight is blocked
"""

from __future__ import annotations

import pytest

from contracts.types import Block, BlockFace, Vec3
from bot_core.errors import BlockNotInViewError
from bot_core.faces import resolve_face, visible_axes
from bot_core.testing.fakes import FakeWorld

# Player at (0.5, 64, 0.5) with the default 1.62 eye height.
EYE = Vec3(0.5, 65.62, 0.5)


def _stone(x: int, y: int, z: int) -> Block:
    return Block(type_id=1, name="stone", position=Vec3(x, y, z), hardness=1.5)


def _tallgrass(x: int, y: int, z: int) -> Block:
    return Block(type_id=31, name="tallgrass", position=Vec3(x, y, z), shapes=(), hardness=0.0)


def _approx(vec: Vec3):
    return pytest.approx(vec.as_tuple(), abs=1e-6)


def test_explicit_vector_hint_selects_axis_face() -> None:
    world = FakeWorld()
    block = _stone(2, 64, 0)

    east = resolve_face(block, Vec3(1, 0, 0), EYE, world)
    assert east.face is BlockFace.EAST
    assert east.aim_point.as_tuple() == _approx(Vec3(3.0, 64.5, 0.5))

    bottom = resolve_face(block, Vec3(0, -1, 0), EYE, world)
    assert bottom.face is BlockFace.BOTTOM
    assert bottom.aim_point.as_tuple() == _approx(Vec3(2.5, 64.0, 0.5))

    north = resolve_face(block, Vec3(0, 0, -1), EYE, world)
    assert north.face is BlockFace.NORTH
    assert north.aim_point.as_tuple() == _approx(Vec3(2.5, 64.5, 0.0))


def test_vector_hint_uses_first_nonzero_axis() -> None:
    resolution = resolve_face(_stone(2, 64, 0), Vec3(-1, 1, 1), EYE, FakeWorld())
    assert resolution.face is BlockFace.WEST


def test_auto_hint_aims_at_center_with_top_face() -> None:
    block = _stone(2, 64, 0)
    for hint in ("auto", None, Vec3(0, 0, 0)):
        resolution = resolve_face(block, hint, EYE, FakeWorld())
        assert resolution.face is BlockFace.TOP
        assert resolution.aim_point == block.center
        assert resolution.confirmed is False


def test_unknown_hint_is_rejected() -> None:
    with pytest.raises(ValueError):
        resolve_face(_stone(2, 64, 0), "sideways", EYE, FakeWorld())


def test_visible_axes_threshold_and_order() -> None:
    # dy = 2.12 and dx = -2 are visible; dz = 0 is not.
    assert visible_axes(_stone(2, 63, 0), EYE) == [("y", 1), ("x", -1)]
    # dy = 0.12 is hidden behind the block itself.
    assert visible_axes(_stone(2, 65, 0), EYE) == [("x", -1)]


def test_raycast_single_visible_face() -> None:
    world = FakeWorld()
    block = world.put(_stone(2, 65, 0))

    resolution = resolve_face(block, "raycast", EYE, world)

    assert resolution.face is BlockFace.WEST
    assert resolution.confirmed is True
    assert resolution.aim_point.as_tuple() == _approx(Vec3(2.0, 65.5, 0.5))


def test_raycast_picks_nearest_unobstructed_face() -> None:
    world = FakeWorld()
    block = world.put(_stone(2, 63, 0))

    resolution = resolve_face(block, "raycast", EYE, world)

    # Top face point is ~2.574 away, west face point ~2.597.
    assert resolution.face is BlockFace.TOP
    assert resolution.aim_point.as_tuple() == _approx(Vec3(2.5, 64.0, 0.5))


def test_raycast_skips_obstructed_face() -> None:
    world = FakeWorld()
    block = world.put(_stone(2, 63, 0))
    # Sits on the line of sight to the top face only.
    world.put(_stone(2, 64, 0))

    resolution = resolve_face(block, "raycast", EYE, world)

    assert resolution.face is BlockFace.WEST
    assert resolution.aim_point.as_tuple() == _approx(Vec3(2.0, 63.5, 0.5))


def test_raycast_raises_when_every_face_is_blocked() -> None:
    world = FakeWorld()
    block = world.put(_stone(2, 65, 0))
    world.put(_stone(1, 65, 0))

    with pytest.raises(BlockNotInViewError) as excinfo:
        resolve_face(block, "raycast", EYE, world)
    assert excinfo.value.block is block


def test_passable_block_falls_back_to_center() -> None:
    world = FakeWorld()
    block = world.put(_tallgrass(2, 65, 0))

    resolution = resolve_face(block, "raycast", EYE, world)

    assert resolution.face is BlockFace.TOP
    assert resolution.aim_point == block.center
    assert resolution.confirmed is False


def test_passable_fallback_blocked_by_obstruction_on_other_axis() -> None:
    world = FakeWorld()
    block = world.put(_tallgrass(2, 63, 0))
    # Blocks the top-face probe; the west probe is clear but finds no face.
    world.put(_stone(2, 64, 0))

    with pytest.raises(BlockNotInViewError):
        resolve_face(block, "raycast", EYE, world)
