"""
Field computation for Particle Lenia 3D (brute-force pairwise).

For every particle, accumulate:
- R_val, R_grad: repulsion field and gradient (pairs with r < 1)
- U_val, U_grad: kernel potential K and gradient (all pairs)

Each accumulator starts from the particle's self-term (the response at r = 0)
and then every unordered pair (i, j), i < j, is visited once:
  gradient: +dF * n to i, -dF * n to j   (n = unit vector from j to i)
  value:    +F to both

The outer loop is parallel; contributions to j are written from i's thread,
so all accumulation goes through atomics. Summation order is therefore not
fixed and results agree within rounding, not bit-for-bit, across backends.

Distances are plain Euclidean (no minimum-image across the periodic wrap).
"""

import numpy as np
import taichi as ti

from config import DIST_EPS
from lenia_math import peak, repulsion


@ti.kernel
def compute_fields(pos: ti.template(),
                   r_val: ti.template(), u_val: ti.template(),
                   r_grad: ti.template(), u_grad: ti.template(),
                   n: ti.i32,
                   mu_k: ti.f64, sigma_k: ti.f64, w_k: ti.f64,
                   c_rep: ti.f64, use_fast: ti.i32):
    """
    Recompute all field accumulators from the current positions.

    Args:
        pos: Particle positions (read only)
        r_val, u_val, r_grad, u_grad: Accumulators (overwritten)
        n: Number of active particles
        mu_k, sigma_k, w_k: Kernel K parameters
        c_rep: Repulsion strength
        use_fast: 1 = fast exponential, 0 = exact
    """
    # Self-term (finishes for all particles before the pair loop starts)
    for i in range(n):
        r_self, _dr = repulsion(0.0, c_rep)
        u_self, _du = peak(0.0, mu_k, sigma_k, w_k, use_fast)
        r_val[i] = r_self
        u_val[i] = u_self
        r_grad[i] = ti.Vector([0.0, 0.0, 0.0])
        u_grad[i] = ti.Vector([0.0, 0.0, 0.0])

    # Pairwise contributions
    for i in range(n):
        for j in range(i + 1, n):
            diff = pos[i] - pos[j]
            r = diff.norm() + DIST_EPS
            direction = diff / r  # Unit vector from j to i

            # Repulsion (only inside unit distance)
            if r < 1.0:
                R, dR = repulsion(r, c_rep)
                ti.atomic_add(r_grad[i], direction * dR)
                ti.atomic_sub(r_grad[j], direction * dR)
                ti.atomic_add(r_val[i], R)
                ti.atomic_add(r_val[j], R)

            # Kernel K (always)
            K, dK = peak(r, mu_k, sigma_k, w_k, use_fast)
            ti.atomic_add(u_grad[i], direction * dK)
            ti.atomic_sub(u_grad[j], direction * dK)
            ti.atomic_add(u_val[i], K)
            ti.atomic_add(u_val[j], K)


def compute_store_fields(store, config):
    """Wrapper: run compute_fields on a ParticleStore with a LeniaConfig."""
    compute_fields(store.pos, store.r_val, store.u_val, store.r_grad, store.u_grad,
                   store.n,
                   config.mu_k, config.sigma_k, config.w_k,
                   config.c_rep, config.fast_exp)


def field_totals(store):
    """
    Sum the accumulators over all particles (host side, fp64).

    Pair gradients cancel, so both gradient sums should be ~0.

    Returns:
        (sum_R_grad, sum_U_grad, sum_R_val, sum_U_val)
    """
    snap = store.snapshot()
    return (snap['R_grad'].sum(axis=0), snap['U_grad'].sum(axis=0),
            float(np.sum(snap['R_val'])), float(np.sum(snap['U_val'])))
