"""
Particle state store for Particle Lenia 3D.

SoA (Structure of Arrays) layout, one Taichi field per quantity:
- pos, vel:          positions and velocities
- r_val, u_val:      repulsion / potential scalars (recomputed every step)
- r_grad, u_grad:    repulsion / potential gradients (recomputed every step)

The store holds numbers only. Viewers keep their own per-index handles and
read positions through positions(), which returns a read-only NumPy copy.
"""

import numpy as np
import taichi as ti

from config import validate_config

REAL = ti.f64


class ParticleStore:
    """
    Per-particle state for one run.

    Fields are allocated with capacity max(n, 1) (Taichi cannot allocate
    zero-sized fields); kernels only touch the first n entries.
    """

    def __init__(self, n):
        self.n = int(n)
        self.capacity = max(self.n, 1)

        self.pos = ti.Vector.field(3, dtype=REAL, shape=self.capacity)     # Positions
        self.vel = ti.Vector.field(3, dtype=REAL, shape=self.capacity)     # Velocities
        self.r_val = ti.field(dtype=REAL, shape=self.capacity)             # Repulsion value
        self.u_val = ti.field(dtype=REAL, shape=self.capacity)             # Potential value
        self.r_grad = ti.Vector.field(3, dtype=REAL, shape=self.capacity)  # Repulsion gradient
        self.u_grad = ti.Vector.field(3, dtype=REAL, shape=self.capacity)  # Potential gradient

    def __len__(self):
        return self.n

    # --------------------------------------------------------------------------
    # Read-only accessors
    # --------------------------------------------------------------------------

    def _read(self, field):
        arr = field.to_numpy()[:self.n].copy()
        arr.setflags(write=False)
        return arr

    def positions(self):
        """(n, 3) array of current positions (read-only copy)."""
        return self._read(self.pos)

    def velocities(self):
        """(n, 3) array of current velocities (read-only copy)."""
        return self._read(self.vel)

    def snapshot(self):
        """All per-particle quantities as read-only arrays, keyed by name."""
        return {
            'pos': self._read(self.pos),
            'vel': self._read(self.vel),
            'R_val': self._read(self.r_val),
            'U_val': self._read(self.u_val),
            'R_grad': self._read(self.r_grad),
            'U_grad': self._read(self.u_grad),
        }

    # --------------------------------------------------------------------------
    # Loaders (scenario setup)
    # --------------------------------------------------------------------------

    def _load(self, field, values):
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (self.n, 3):
            raise ValueError(f"expected shape ({self.n}, 3), got {values.shape}")
        if self.n == 0:
            return
        buf = np.zeros((self.capacity, 3), dtype=np.float64)
        buf[:self.n] = values
        field.from_numpy(buf)

    def load_positions(self, positions):
        self._load(self.pos, positions)

    def load_velocities(self, velocities):
        self._load(self.vel, velocities)


def seed_positions(config):
    """
    Draw initial positions uniformly from [-spread/2, spread/2)³.

    Args:
        config: LeniaConfig (particle_count, initial_spread, seed)

    Returns:
        (N, 3) float64 array
    """
    rng = np.random.default_rng(config.seed)
    spread = config.initial_spread
    return rng.random((config.particle_count, 3)) * spread - spread / 2.0


def create_particles(config):
    """
    Allocate and seed a fresh store: random positions, zero velocity,
    zero field accumulators.

    Raises:
        ConfigError: if the configuration is invalid
    """
    validate_config(config)
    store = ParticleStore(config.particle_count)
    store.load_positions(seed_positions(config))
    return store
