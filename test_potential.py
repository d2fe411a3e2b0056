import numpy as np
import pytest

from config import LeniaConfig
from lenia_math import evaluate_peak, evaluate_repulsion, self_terms
from particles import ParticleStore
from potential import compute_store_fields, field_totals

CONFIG = LeniaConfig()


def make_store(positions):
    positions = np.asarray(positions, dtype=np.float64)
    store = ParticleStore(len(positions))
    store.load_positions(positions)
    return store


def reference_fields(positions, config):
    """Straight NumPy transcription of the pair loop."""
    n = len(positions)
    r_self, u_self = self_terms(config)
    r_val = np.full(n, r_self)
    u_val = np.full(n, u_self)
    r_grad = np.zeros((n, 3))
    u_grad = np.zeros((n, 3))
    for i in range(n):
        for j in range(i + 1, n):
            diff = positions[i] - positions[j]
            r = np.linalg.norm(diff) + 1e-20
            direction = diff / r
            if r < 1.0:
                R, dR = evaluate_repulsion(r, config.c_rep)
                r_grad[i] += direction * dR
                r_grad[j] -= direction * dR
                r_val[i] += R
                r_val[j] += R
            K, dK = evaluate_peak(r, config.mu_k, config.sigma_k, config.w_k)
            u_grad[i] += direction * dK
            u_grad[j] -= direction * dK
            u_val[i] += K
            u_val[j] += K
    return r_val, u_val, r_grad, u_grad


def test_pair_contributions_are_antisymmetric():
    store = make_store([[0.3, -0.1, 0.2], [0.1, 0.25, -0.05]])
    compute_store_fields(store, CONFIG)
    snap = store.snapshot()

    assert np.array_equal(snap['R_grad'][0], -snap['R_grad'][1])
    assert np.array_equal(snap['U_grad'][0], -snap['U_grad'][1])
    assert snap['R_val'][0] == snap['R_val'][1]
    assert snap['U_val'][0] == snap['U_val'][1]


def test_repulsion_inside_unit_distance():
    store = make_store([[0.25, 0.0, 0.0], [-0.25, 0.0, 0.0]])
    compute_store_fields(store, CONFIG)
    snap = store.snapshot()

    R, dR = evaluate_repulsion(0.5, CONFIG.c_rep)
    assert snap['R_val'] == pytest.approx([0.5 + R, 0.5 + R])
    # Gradient on particle 0 points along +x (from 1 to 0) scaled by dR < 0
    assert snap['R_grad'][0] == pytest.approx([dR, 0.0, 0.0])
    assert snap['R_grad'][1] == pytest.approx([-dR, 0.0, 0.0])


def test_matches_reference_for_random_cloud():
    rng = np.random.default_rng(7)
    positions = rng.random((12, 3)) * 6.0 - 3.0
    store = make_store(positions)
    compute_store_fields(store, CONFIG)
    snap = store.snapshot()

    r_val, u_val, r_grad, u_grad = reference_fields(positions, CONFIG)
    assert snap['R_val'] == pytest.approx(r_val, rel=1e-10)
    assert snap['U_val'] == pytest.approx(u_val, rel=1e-10)
    np.testing.assert_allclose(snap['R_grad'], r_grad, atol=1e-12)
    np.testing.assert_allclose(snap['U_grad'], u_grad, atol=1e-12)


def test_gradient_totals_cancel():
    rng = np.random.default_rng(3)
    positions = rng.random((30, 3)) * 8.0 - 4.0
    store = make_store(positions)
    compute_store_fields(store, CONFIG)

    sum_r_grad, sum_u_grad, _, sum_u_val = field_totals(store)
    np.testing.assert_allclose(sum_r_grad, 0.0, atol=1e-10)
    np.testing.assert_allclose(sum_u_grad, 0.0, atol=1e-10)

    _, u_self = self_terms(CONFIG)
    _, u_val, _, _ = reference_fields(positions, CONFIG)
    assert sum_u_val == pytest.approx(u_val.sum(), rel=1e-10)
    assert sum_u_val > 30 * u_self


def test_coincident_particles_stay_finite():
    store = make_store([[1.0, 2.0, 3.0], [1.0, 2.0, 3.0]])
    compute_store_fields(store, CONFIG)
    snap = store.snapshot()

    for key in ('R_val', 'U_val', 'R_grad', 'U_grad'):
        assert np.all(np.isfinite(snap[key]))
    # Zero separation: full repulsion value, no preferred direction
    assert snap['R_val'] == pytest.approx([1.0, 1.0])
    np.testing.assert_array_equal(snap['R_grad'], 0.0)


def test_no_minimum_image_across_wrap():
    half = CONFIG.world_size / 2.0
    store = make_store([[half - 0.2, 0.0, 0.0], [-half + 0.2, 0.0, 0.0]])
    compute_store_fields(store, CONFIG)
    snap = store.snapshot()

    # 0.4 apart through the wrap, but only the direct distance counts
    r_self, _ = self_terms(CONFIG)
    assert snap['R_val'] == pytest.approx([r_self, r_self])
    np.testing.assert_array_equal(snap['R_grad'], 0.0)


def test_fields_are_recomputed_not_accumulated():
    store = make_store([[0.0, 0.0, 0.0], [0.6, 0.0, 0.0], [0.0, 3.9, 0.0]])
    compute_store_fields(store, CONFIG)
    first = store.snapshot()
    compute_store_fields(store, CONFIG)
    second = store.snapshot()

    for key in ('R_val', 'U_val', 'R_grad', 'U_grad'):
        np.testing.assert_allclose(first[key], second[key], rtol=1e-14, atol=1e-15)


def test_single_particle_self_term():
    store = make_store([[0.5, -0.5, 2.0]])
    compute_store_fields(store, CONFIG)
    snap = store.snapshot()

    r_self, u_self = self_terms(CONFIG)
    assert snap['R_val'][0] == pytest.approx(r_self, rel=1e-15)
    assert snap['U_val'][0] == pytest.approx(u_self, rel=1e-15)
    np.testing.assert_array_equal(snap['U_grad'], 0.0)
