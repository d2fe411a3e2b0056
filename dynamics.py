"""
Growth integration kernels for Particle Lenia 3D.

This module provides:
1. Velocity update from the growth-coupled force (with damping)
2. Position update (separate pass, after all velocities are final)
3. Non-finite detection (NaN/Inf guard, run before the wrap)
4. Growth telemetry (mean U, mean G, max speed)

Force law:
    (G, dG) = peak(U, mu_g, sigma_g, 1)
    F = dG * grad(U) - grad(R)

Unit mass, explicit Euler with per-step damping.
"""

import taichi as ti

from lenia_math import peak

# ==============================================================================
# Kernel 1: Velocity update
# ==============================================================================

@ti.kernel
def integrate_velocities(vel: ti.template(), u_val: ti.template(),
                         u_grad: ti.template(), r_grad: ti.template(),
                         n: ti.i32, mu_g: ti.f64, sigma_g: ti.f64,
                         dt: ti.f64, damping: ti.f64, use_fast: ti.i32):
    """
    Apply the growth-coupled force to every velocity, then damp.

    Reads only the field snapshot, so no position is touched here.

    Args:
        vel: Velocities (modified in-place)
        u_val, u_grad, r_grad: Field snapshot from compute_fields
        n: Number of active particles
        mu_g, sigma_g: Growth G parameters
        dt: Time step
        damping: Per-step velocity factor (0 < damping <= 1)
        use_fast: 1 = fast exponential, 0 = exact
    """
    for i in range(n):
        _g, dG = peak(u_val[i], mu_g, sigma_g, 1.0, use_fast)
        force = dG * u_grad[i] - r_grad[i]
        vel[i] += force * dt
        vel[i] *= damping


# ==============================================================================
# Kernel 2: Position update
# ==============================================================================

@ti.kernel
def integrate_positions(pos: ti.template(), vel: ti.template(), n: ti.i32, dt: ti.f64):
    """Advance positions with the finalized velocities."""
    for i in range(n):
        pos[i] += vel[i] * dt


# ==============================================================================
# Kernel 3: Non-finite guard
# ==============================================================================

@ti.func
def is_finite(x):
    """True unless x is NaN/Inf (exponent bits, unaffected by fast-math)."""
    bits = ti.bit_cast(ti.cast(x, ti.f64), ti.u64)
    return ((bits >> ti.u64(52)) & ti.u64(0x7FF)) != ti.u64(0x7FF)


@ti.kernel
def count_non_finite(pos: ti.template(), vel: ti.template(), n: ti.i32) -> ti.i32:
    """
    Count particles whose position or velocity holds NaN/Inf.

    Returns:
        Number of bad particles (0 = store is finite)
    """
    bad = 0
    for i in range(n):
        flag = 0
        for d in ti.static(range(3)):
            if not is_finite(pos[i][d]) or not is_finite(vel[i][d]):
                flag = 1
        bad += flag
    return bad


# ==============================================================================
# Kernel 4: Telemetry
# ==============================================================================

@ti.kernel
def compute_growth_stats(u_val: ti.template(), vel: ti.template(), n: ti.i32,
                         mu_g: ti.f64, sigma_g: ti.f64,
                         use_fast: ti.i32) -> (ti.f64, ti.f64, ti.f64):
    """
    Population summary for HUD/console output.

    Args:
        u_val: Potential field (from the latest compute_fields)
        vel: Velocities
        n: Number of active particles
        mu_g, sigma_g: Growth G parameters
        use_fast: 1 = fast exponential, 0 = exact

    Returns:
        (mean_U, mean_G, max_speed)
    """
    sum_u = 0.0
    sum_g = 0.0
    max_speed = 0.0
    for i in range(n):
        G, _dg = peak(u_val[i], mu_g, sigma_g, 1.0, use_fast)
        sum_u += u_val[i]
        sum_g += G
        ti.atomic_max(max_speed, vel[i].norm())

    mean_u = 0.0
    mean_g = 0.0
    if n > 0:
        mean_u = sum_u / n
        mean_g = sum_g / n
    return mean_u, mean_g, max_speed


def growth_stats(store, config):
    """Wrapper: compute_growth_stats on a ParticleStore."""
    mean_u, mean_g, max_speed = compute_growth_stats(
        store.u_val, store.vel, store.n, config.mu_g, config.sigma_g, config.fast_exp)
    return float(mean_u), float(mean_g), float(max_speed)
