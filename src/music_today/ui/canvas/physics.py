"""
2D rigid-body world for the track canvas.

Bodies live in a slot-indexed arena (``World.bodies``); slots are stable for
the lifetime of the world, so other layers refer to bodies by slot.

Movable bodies collide as circles of their half-size and render as rotated
squares; static bodies are axis-aligned boxes (the arena walls). Positions
are body centres in canvas units (pixels), y grows downward, time is in
seconds.
"""

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

GRAVITY = 1000.0  # units/s^2, downward
FIXED_DT = 1.0 / 60.0
WALL_THICKNESS = 100.0
OUT_OF_BOUNDS_MARGIN = 200.0
SPAWN_HEIGHT = 100.0

AIR_FRICTION = 0.01  # fraction of velocity lost per step
RESTING_SPEED = 60.0  # below this closing speed contacts don't bounce
POSITION_SLOP = 0.5
POSITION_CORRECTION = 0.8
SOLVER_ITERATIONS = 3


def _cross(ax: float, ay: float, bx: float, by: float) -> float:
    return ax * by - ay * bx


@dataclass
class Body:
    """A simulated body. Static bodies never move and have infinite mass."""

    x: float
    y: float
    width: float
    height: float
    vx: float = 0.0
    vy: float = 0.0
    angle: float = 0.0  # radians
    angular_velocity: float = 0.0  # radians/s
    is_static: bool = False
    restitution: float = 0.8
    friction: float = 0.1
    density: float = 0.001

    @property
    def mass(self) -> float:
        return math.inf if self.is_static else self.density * self.width * self.height

    @property
    def inv_mass(self) -> float:
        return 0.0 if self.is_static else 1.0 / self.mass

    @property
    def inv_inertia(self) -> float:
        if self.is_static:
            return 0.0
        inertia = self.mass * (self.width ** 2 + self.height ** 2) / 12.0
        return 1.0 / inertia

    @property
    def radius(self) -> float:
        return min(self.width, self.height) / 2.0

    def contains(self, px: float, py: float) -> bool:
        """Point containment against the body's (rotated) rectangle."""
        lx, ly = self.to_local(px, py)
        return abs(lx) <= self.width / 2.0 and abs(ly) <= self.height / 2.0

    def to_local(self, px: float, py: float) -> Tuple[float, float]:
        dx, dy = px - self.x, py - self.y
        c, s = math.cos(-self.angle), math.sin(-self.angle)
        return dx * c - dy * s, dx * s + dy * c

    def to_world(self, lx: float, ly: float) -> Tuple[float, float]:
        c, s = math.cos(self.angle), math.sin(self.angle)
        return self.x + lx * c - ly * s, self.y + lx * s + ly * c

    def set_position(self, x: float, y: float) -> None:
        self.x, self.y = x, y

    def stop(self) -> None:
        self.vx = self.vy = 0.0
        self.angular_velocity = 0.0


@dataclass
class PointerSpring:
    """Spring between a point on a body and the pointer.

    Each step the body's anchor closes ``stiffness`` of the remaining gap, so
    a grabbed body follows quickly but never jumps to the pointer.
    """

    slot: int
    anchor_x: float  # body-local
    anchor_y: float
    target_x: float
    target_y: float
    stiffness: float = 0.2

    def apply(self, body: Body, dt: float) -> None:
        ax, ay = body.to_world(self.anchor_x, self.anchor_y)
        dx, dy = self.target_x - ax, self.target_y - ay
        body.vx = dx * self.stiffness / dt
        body.vy = dy * self.stiffness / dt

        rx, ry = ax - body.x, ay - body.y
        r2 = rx * rx + ry * ry
        if r2 > 1.0:
            body.angular_velocity = self.stiffness * _cross(rx, ry, dx, dy) / r2 / dt


class World:
    """Bounded arena of bodies stepped with a fixed timestep."""

    def __init__(
        self,
        width: float,
        height: float,
        gravity: float = GRAVITY,
        margin: float = OUT_OF_BOUNDS_MARGIN,
        cell_size: float = 120.0,
    ):
        self.width = width
        self.height = height
        self.gravity = gravity
        self.margin = margin
        self.cell_size = cell_size
        self.spawn_point = (width / 2.0, SPAWN_HEIGHT)
        self.bodies: List[Body] = []
        self.spring: Optional[PointerSpring] = None

    # Population -------------------------------------------------------------

    def add(self, body: Body) -> int:
        """Add a body and return its slot."""
        self.bodies.append(body)
        return len(self.bodies) - 1

    def add_walls(self, thickness: float = WALL_THICKNESS) -> List[int]:
        """Enclose the arena with four static walls just outside its edges."""
        w, h, t = self.width, self.height, thickness
        walls = [
            Body(w / 2, h + t / 2, w, t, is_static=True),  # ground
            Body(w / 2, -t / 2, w, t, is_static=True),  # roof
            Body(-t / 2, h / 2, t, h, is_static=True),  # left
            Body(w + t / 2, h / 2, t, h, is_static=True),  # right
        ]
        return [self.add(wall) for wall in walls]

    def clear(self) -> None:
        self.spring = None
        self.bodies = []

    # Queries ----------------------------------------------------------------

    def query_point(self, x: float, y: float) -> List[int]:
        """Slots of bodies containing the point, most recently added first."""
        return [
            slot
            for slot in range(len(self.bodies) - 1, -1, -1)
            if self.bodies[slot].contains(x, y)
        ]

    def is_out_of_bounds(self, body: Body) -> bool:
        m = self.margin
        return (
            body.x < -m
            or body.x > self.width + m
            or body.y < -m
            or body.y > self.height + m
        )

    # Pointer spring ---------------------------------------------------------

    def attach_spring(self, slot: int, x: float, y: float, stiffness: float) -> None:
        """Grab body ``slot`` at world point (x, y)."""
        lx, ly = self.bodies[slot].to_local(x, y)
        self.spring = PointerSpring(slot, lx, ly, x, y, stiffness)

    def move_spring(self, x: float, y: float) -> None:
        if self.spring:
            self.spring.target_x, self.spring.target_y = x, y

    def detach_spring(self) -> None:
        self.spring = None

    # Stepping ---------------------------------------------------------------

    def recycle_out_of_bounds(self) -> List[int]:
        """Teleport escaped bodies back to the spawn point, motionless.

        Returns:
            Slots that were recycled
        """
        recycled = []
        for slot, body in enumerate(self.bodies):
            if not body.is_static and self.is_out_of_bounds(body):
                body.set_position(*self.spawn_point)
                body.stop()
                recycled.append(slot)
        return recycled

    def step(self, dt: float = FIXED_DT) -> List[int]:
        """Advance the simulation by one fixed step.

        A pointer spring on a recycled body is dropped before integrating.

        Returns:
            Slots recycled at the start of the step
        """
        recycled = self.recycle_out_of_bounds()
        if self.spring and self.spring.slot in recycled:
            self.spring = None

        damping = 1.0 - AIR_FRICTION
        for slot, body in enumerate(self.bodies):
            if body.is_static:
                continue
            body.vy += self.gravity * dt
            if self.spring and self.spring.slot == slot:
                self.spring.apply(body, dt)
            body.vx *= damping
            body.vy *= damping
            body.angular_velocity *= damping
            body.x += body.vx * dt
            body.y += body.vy * dt
            body.angle += body.angular_velocity * dt

        dynamic = [s for s, b in enumerate(self.bodies) if not b.is_static]
        static = [s for s, b in enumerate(self.bodies) if b.is_static]
        pairs = self._broad_phase(dynamic)

        for _ in range(SOLVER_ITERATIONS):
            for i, j in pairs:
                self._collide_circles(self.bodies[i], self.bodies[j])
            for i in dynamic:
                for k in static:
                    self._collide_box(self.bodies[k], self.bodies[i])

        return recycled

    def _broad_phase(self, slots: List[int]) -> List[Tuple[int, int]]:
        """Candidate pairs from a uniform grid keyed by cell coordinates."""
        grid: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        size = self.cell_size
        for slot in slots:
            body = self.bodies[slot]
            r = body.radius
            x0, x1 = int(math.floor((body.x - r) / size)), int(math.floor((body.x + r) / size))
            y0, y1 = int(math.floor((body.y - r) / size)), int(math.floor((body.y + r) / size))
            for cx in range(x0, x1 + 1):
                for cy in range(y0, y1 + 1):
                    grid[(cx, cy)].append(slot)

        seen: Set[Tuple[int, int]] = set()
        for members in grid.values():
            for a in range(len(members)):
                for b in range(a + 1, len(members)):
                    pair = (min(members[a], members[b]), max(members[a], members[b]))
                    seen.add(pair)
        return sorted(seen)

    def _collide_circles(self, a: Body, b: Body) -> None:
        dx, dy = b.x - a.x, b.y - a.y
        dist = math.hypot(dx, dy)
        radii = a.radius + b.radius
        if dist >= radii:
            return
        if dist < 1e-9:
            nx, ny = 0.0, 1.0
        else:
            nx, ny = dx / dist, dy / dist
        _resolve_contact(
            a, b, nx, ny, radii - dist,
            nx * a.radius, ny * a.radius,
            -nx * b.radius, -ny * b.radius,
        )

    def _collide_box(self, box: Body, body: Body) -> None:
        half_w, half_h = box.width / 2.0, box.height / 2.0
        left, right = box.x - half_w, box.x + half_w
        top, bottom = box.y - half_h, box.y + half_h
        r = body.radius

        cx = min(max(body.x, left), right)
        cy = min(max(body.y, top), bottom)
        dx, dy = body.x - cx, body.y - cy
        dist2 = dx * dx + dy * dy

        if dist2 > 1e-18:
            if dist2 >= r * r:
                return
            dist = math.sqrt(dist2)
            nx, ny = dx / dist, dy / dist
            penetration = r - dist
        else:
            # Centre inside the box: push out through the nearest face
            exits = [
                (body.x - left, -1.0, 0.0),
                (right - body.x, 1.0, 0.0),
                (body.y - top, 0.0, -1.0),
                (bottom - body.y, 0.0, 1.0),
            ]
            depth, nx, ny = min(exits)
            penetration = depth + r

        _resolve_contact(
            box, body, nx, ny, penetration, 0.0, 0.0, -nx * r, -ny * r
        )


def _resolve_contact(
    a: Body,
    b: Body,
    nx: float,
    ny: float,
    penetration: float,
    rax: float,
    ray: float,
    rbx: float,
    rby: float,
) -> None:
    """Impulse response for a contact with normal (nx, ny) pointing from a to b.

    (rax, ray) and (rbx, rby) are contact offsets from each body's centre.
    """
    inv_a, inv_b = a.inv_mass, b.inv_mass
    inv_ia, inv_ib = a.inv_inertia, b.inv_inertia
    if inv_a + inv_b == 0.0:
        return

    # Positional correction
    correction = max(penetration - POSITION_SLOP, 0.0) * POSITION_CORRECTION / (inv_a + inv_b)
    a.x -= nx * correction * inv_a
    a.y -= ny * correction * inv_a
    b.x += nx * correction * inv_b
    b.y += ny * correction * inv_b

    # Relative velocity at the contact point
    rvx = (b.vx - b.angular_velocity * rby) - (a.vx - a.angular_velocity * ray)
    rvy = (b.vy + b.angular_velocity * rbx) - (a.vy + a.angular_velocity * rax)
    closing = rvx * nx + rvy * ny
    if closing > 0.0:
        return

    restitution = min(a.restitution, b.restitution)
    if -closing < RESTING_SPEED:
        restitution = 0.0

    ra_n = _cross(rax, ray, nx, ny)
    rb_n = _cross(rbx, rby, nx, ny)
    denom = inv_a + inv_b + ra_n * ra_n * inv_ia + rb_n * rb_n * inv_ib
    j = -(1.0 + restitution) * closing / denom
    _apply_impulse(a, b, nx * j, ny * j, rax, ray, rbx, rby)

    # Coulomb friction along the tangent
    rvx = (b.vx - b.angular_velocity * rby) - (a.vx - a.angular_velocity * ray)
    rvy = (b.vy + b.angular_velocity * rbx) - (a.vy + a.angular_velocity * rax)
    tx, ty = rvx - (rvx * nx + rvy * ny) * nx, rvy - (rvx * nx + rvy * ny) * ny
    t_len = math.hypot(tx, ty)
    if t_len < 1e-9:
        return
    tx, ty = tx / t_len, ty / t_len

    ra_t = _cross(rax, ray, tx, ty)
    rb_t = _cross(rbx, rby, tx, ty)
    denom_t = inv_a + inv_b + ra_t * ra_t * inv_ia + rb_t * rb_t * inv_ib
    jt = -(rvx * tx + rvy * ty) / denom_t
    mu = math.sqrt(a.friction * b.friction)
    jt = max(-mu * j, min(mu * j, jt))
    _apply_impulse(a, b, tx * jt, ty * jt, rax, ray, rbx, rby)


def _apply_impulse(
    a: Body, b: Body, px: float, py: float,
    rax: float, ray: float, rbx: float, rby: float,
) -> None:
    inv_a, inv_b = a.inv_mass, b.inv_mass
    a.vx -= px * inv_a
    a.vy -= py * inv_a
    a.angular_velocity -= _cross(rax, ray, px, py) * a.inv_inertia
    b.vx += px * inv_b
    b.vy += py * inv_b
    b.angular_velocity += _cross(rbx, rby, px, py) * b.inv_inertia
