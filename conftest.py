import pytest
import taichi as ti


@pytest.fixture(scope='session', autouse=True)
def taichi_cpu():
    """Single Taichi runtime for the whole session (CPU, fp64, no fast-math)."""
    ti.init(arch=ti.cpu, default_fp=ti.f64, fast_math=False, random_seed=0)
    yield
    ti.reset()
