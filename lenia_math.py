"""
Lenia kernel math for Particle Lenia 3D.

This module provides the two radial response functions and their analytic
derivatives with respect to distance:
1. peak(r, mu, sigma, w)   - Gaussian-like bump centered at mu (kernel K, growth G)
2. repulsion(r, c_rep)     - quadratic penalty, zero for r >= 1

Both are @ti.func so the field and integration kernels inline them. The
evaluate_* wrappers run one-shot kernels for use from Python scope.

Exponential modes
-----------------
exact: exp(-x) via ti.exp
fast:  exp(-x) ≈ 1 / (1 + x/32)^32   (five squarings, no transcendental call)

Since (1 + x/n)^n <= e^x, the fast value over-estimates the exact one by a
factor of about exp(x²/(2n)), n = 32, with x = t² = ((r - mu)/sigma)²:
    |t| <= 1  ->  < 1.6 %
    |t| =  2  ->  ≈ 28 %  (value is already < 2 % of the peak there)
The derivative keeps the -2·t·value/sigma form in both modes, so in fast
mode it is the derivative of the exact bump scaled by the fast value.
"""

import taichi as ti

# ==============================================================================
# Exponential
# ==============================================================================

@ti.func
def fast_exp(x):
    """(1 + x/32)^32 ≈ e^x."""
    t = 1.0 + x / 32.0
    t *= t
    t *= t
    t *= t
    t *= t
    t *= t
    return t


@ti.func
def neg_exp(x, use_fast: ti.i32):
    """exp(-x) for x >= 0, exact or fast."""
    y = 0.0 * x
    if use_fast != 0:
        y = 1.0 / fast_exp(x)
    else:
        y = ti.exp(-x)
    return y


# ==============================================================================
# Response functions
# ==============================================================================

@ti.func
def peak(r, mu, sigma, w, use_fast: ti.i32):
    """
    Peak function and its derivative w.r.t. r.

    t = (r - mu) / sigma
    value = w * exp(-t²)
    deriv = -2 t value / sigma
    """
    t = (r - mu) / sigma
    value = w * neg_exp(t * t, use_fast)
    deriv = -2.0 * t * value / sigma
    return value, deriv


@ti.func
def repulsion(r, c_rep):
    """
    Repulsion and its derivative w.r.t. r (active for r < 1).

    t = max(1 - r, 0)
    value = 0.5 c_rep t²
    deriv = -c_rep t
    """
    t = ti.max(1.0 - r, 0.0)
    value = 0.5 * c_rep * t * t
    deriv = -c_rep * t
    return value, deriv


# ==============================================================================
# Python-scope evaluation
# ==============================================================================

@ti.kernel
def _peak_kernel(r: ti.f64, mu: ti.f64, sigma: ti.f64, w: ti.f64,
                 use_fast: ti.i32) -> (ti.f64, ti.f64):
    value, deriv = peak(r, mu, sigma, w, use_fast)
    return value, deriv


@ti.kernel
def _repulsion_kernel(r: ti.f64, c_rep: ti.f64) -> (ti.f64, ti.f64):
    value, deriv = repulsion(r, c_rep)
    return value, deriv


def evaluate_peak(r, mu, sigma, w=1.0, exp_mode="exact"):
    """Return (value, derivative) of peak() at r."""
    value, deriv = _peak_kernel(r, mu, sigma, w, 1 if exp_mode == "fast" else 0)
    return float(value), float(deriv)


def evaluate_repulsion(r, c_rep):
    """Return (value, derivative) of repulsion() at r."""
    value, deriv = _repulsion_kernel(r, c_rep)
    return float(value), float(deriv)


def self_terms(config):
    """
    Field values every particle contributes to itself (r = 0).

    Returns:
        (R_self, U_self)
    """
    r_self, _ = evaluate_repulsion(0.0, config.c_rep)
    u_self, _ = evaluate_peak(0.0, config.mu_k, config.sigma_k, config.w_k, config.exp_mode)
    return r_self, u_self
