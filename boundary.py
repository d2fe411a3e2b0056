"""
Periodic boundary wrap for Particle Lenia 3D.

Maps every position into the primary cell [-L/2, L/2)³, L = world size,
with a centered floor plus one correction each
way for rounding at the faces. Cost is constant for any finite coordinate.
Coordinates so large that fp64 cannot resolve the cell (|x| beyond ~1e16 L)
are placed on the lower face. Non-finite coordinates are rejected by the
step before the wrap runs.

Only positions wrap. Pair distances in potential.py are not minimum-image
corrected, so particles near opposite faces do not see each other; the
world must be large relative to the kernel reach (~mu_k + 3*sigma_k).
"""

import taichi as ti


@ti.func
def wrap_coord(x, world_size, half_l):
    """Wrap one coordinate into [-half_l, half_l)."""
    y = x - world_size * ti.floor((x + half_l) / world_size)
    if y < -half_l:
        y += world_size
    if y >= half_l:
        y -= world_size
    if y < -half_l or y >= half_l:
        y = -half_l  # Cell unresolvable at this magnitude
    return y


@ti.kernel
def apply_periodic_wrap(pos: ti.template(), n: ti.i32, world_size: ti.f64):
    """
    Wrap all active positions into the primary cell.

    Args:
        pos: Particle positions (modified in-place)
        n: Number of active particles
        world_size: Side length of the periodic cube
    """
    half_l = 0.5 * world_size
    for i in range(n):
        p = pos[i]
        for d in ti.static(range(3)):
            p[d] = wrap_coord(p[d], world_size, half_l)
        pos[i] = p


def wrap_store(store, config):
    """Wrapper: apply_periodic_wrap on a ParticleStore."""
    apply_periodic_wrap(store.pos, store.n, config.world_size)
