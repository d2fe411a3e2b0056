import math

import numpy as np
import pytest

from config import LeniaConfig
from lenia_math import evaluate_peak
from particles import ParticleStore
from potential import compute_store_fields
from dynamics import (integrate_velocities, integrate_positions, count_non_finite,
                      growth_stats)
from simulation import step

CONFIG = LeniaConfig()


def make_store(positions, velocities=None):
    positions = np.asarray(positions, dtype=np.float64)
    store = ParticleStore(len(positions))
    store.load_positions(positions)
    if velocities is not None:
        store.load_velocities(velocities)
    return store


def run_velocity_update(store, config):
    integrate_velocities(store.vel, store.u_val, store.u_grad, store.r_grad, store.n,
                         config.mu_g, config.sigma_g, config.dt, config.damping,
                         config.fast_exp)


def test_velocity_update_follows_force_law():
    positions = [[0.0, 0.0, 0.0], [0.7, 0.0, 0.0], [0.0, 3.5, 1.0], [-2.0, -2.0, 2.0]]
    v0 = np.array([[0.1, 0.0, 0.0], [0.0, -0.2, 0.0], [0.0, 0.0, 0.05], [0.0, 0.0, 0.0]])
    store = make_store(positions, v0)
    compute_store_fields(store, CONFIG)
    snap = store.snapshot()

    run_velocity_update(store, CONFIG)

    for i in range(store.n):
        _, dG = evaluate_peak(snap['U_val'][i], CONFIG.mu_g, CONFIG.sigma_g)
        force = dG * snap['U_grad'][i] - snap['R_grad'][i]
        expected = (v0[i] + force * CONFIG.dt) * CONFIG.damping
        np.testing.assert_allclose(store.velocities()[i], expected, rtol=1e-12, atol=1e-15)

    # Velocity pass leaves positions alone
    np.testing.assert_array_equal(store.positions(), np.asarray(positions))


def test_position_update_uses_final_velocity():
    store = make_store([[1.0, 2.0, 3.0]], [[0.5, -1.0, 0.25]])
    integrate_positions(store.pos, store.vel, store.n, 0.1)
    np.testing.assert_allclose(store.positions(), [[1.05, 1.9, 3.025]])


def test_repulsion_pushes_close_pair_apart():
    config = CONFIG.replace(w_k=0.0)
    store = make_store([[-0.2, 0.0, 0.0], [0.2, 0.0, 0.0]])
    step(store, config)
    vel = store.velocities()
    assert vel[0][0] < 0.0
    assert vel[1][0] > 0.0
    assert vel[0][0] == pytest.approx(-vel[1][0])


def test_damping_monotonic_without_force():
    config = LeniaConfig(world_size=60.0, damping=0.9)
    store = make_store([[-10.0, 0.0, 0.0], [10.0, 0.0, 0.0]],
                       [[0.5, 0.2, 0.0], [0.0, -0.3, 0.4]])
    speeds = [np.linalg.norm(store.velocities(), axis=1)]
    for _ in range(20):
        step(store, config)
        speeds.append(np.linalg.norm(store.velocities(), axis=1))

    speeds = np.array(speeds)
    assert np.all(np.diff(speeds, axis=0) <= 0.0)
    np.testing.assert_allclose(speeds[-1], speeds[0] * 0.9 ** 20, rtol=1e-9)


def test_count_non_finite():
    store = make_store([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2.0, 2.0, 2.0]])
    assert count_non_finite(store.pos, store.vel, store.n) == 0

    store.load_positions([[0.0, 0.0, 0.0], [math.nan, 1.0, 1.0], [2.0, 2.0, 2.0]])
    store.load_velocities([[0.0, 0.0, math.inf], [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
    assert count_non_finite(store.pos, store.vel, store.n) == 2


def test_growth_stats():
    store = make_store([[0.0, 0.0, 0.0], [4.0, 0.0, 0.0]], [[0.3, 0.4, 0.0], [0.0, 0.0, 0.1]])
    compute_store_fields(store, CONFIG)
    mean_u, mean_g, max_speed = growth_stats(store, CONFIG)

    u = store.snapshot()['U_val']
    g = [evaluate_peak(x, CONFIG.mu_g, CONFIG.sigma_g)[0] for x in u]
    assert mean_u == pytest.approx(u.mean())
    assert mean_g == pytest.approx(np.mean(g))
    assert max_speed == pytest.approx(0.5)


def test_growth_stats_empty_store():
    store = ParticleStore(0)
    assert growth_stats(store, CONFIG) == (0.0, 0.0, 0.0)
