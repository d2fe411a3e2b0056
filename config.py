"""
Configuration parameters for Particle Lenia 3D.

This module defines all simulation parameters:
- Particle population (count, world size, initial spread)
- Kernel K (peak position, width, weight)
- Growth G (peak position, width)
- Repulsion and integration (strength, time step, damping)
- Runtime (steps per frame, exponential mode, seed)

The module-level constants are the defaults. A run reads its parameters only
from an immutable LeniaConfig value, never from these globals directly.

Domain is a periodic cubic box [-WORLD_SIZE/2, WORLD_SIZE/2)³.
"""

import math
from dataclasses import dataclass, replace, fields
from typing import Optional

from errors import ConfigError

# ==============================================================================
# Particle population
# ==============================================================================

PARTICLE_COUNT = 200        # Number of particles (cost is O(N²) per step)
WORLD_SIZE = 25.0           # Side length of the periodic cube
INITIAL_SPREAD = 12.0       # Side length of the cube used for random seeding
                            # Keep WORLD_SIZE well above MU_K + 3*SIGMA_K: distances
                            # are not minimum-image corrected across the wrap.

# ==============================================================================
# Lenia kernel K (potential / attraction)
# ==============================================================================

MU_K = 4.0                  # Peak position of K
SIGMA_K = 1.0               # Width of K
W_K = 0.022                 # Weight of K (U of a particle ≈ W_K * neighbors in shell)

# ==============================================================================
# Lenia growth G (applied to accumulated potential U)
# ==============================================================================

MU_G = 0.6                  # Potential at which growth peaks
SIGMA_G = 0.15              # Width of G

# ==============================================================================
# Repulsion and integration
# ==============================================================================

C_REP = 1.0                 # Repulsion strength (active for r < 1)
DT = 0.1                    # Integration time step
DAMPING = 0.98              # Velocity damping per step (0 < DAMPING <= 1)

# ==============================================================================
# Runtime
# ==============================================================================

STEPS_PER_FRAME = 10        # Simulation steps per rendered frame
EXP_MODE = "exact"          # "exact" = ti.exp, "fast" = 1/(1+x/32)^32 (see lenia_math)
EXP_MODES = ("exact", "fast")

DIST_EPS = 1e-20            # Distance floor for coincident particles


@dataclass(frozen=True)
class LeniaConfig:
    """
    Immutable parameter set for one simulation run.

    Every core operation receives this value explicitly. Use replace() to
    derive a modified copy; changing parameters mid-run means building a new
    config and a new particle store.
    """

    particle_count: int = PARTICLE_COUNT
    world_size: float = WORLD_SIZE
    initial_spread: float = INITIAL_SPREAD

    mu_k: float = MU_K
    sigma_k: float = SIGMA_K
    w_k: float = W_K

    mu_g: float = MU_G
    sigma_g: float = SIGMA_G

    c_rep: float = C_REP
    dt: float = DT
    damping: float = DAMPING

    steps_per_frame: int = STEPS_PER_FRAME
    exp_mode: str = EXP_MODE
    seed: Optional[int] = None

    @property
    def half_world(self):
        return 0.5 * self.world_size

    @property
    def fast_exp(self):
        """Integer flag passed to kernels (1 = fast approximation)."""
        return 1 if self.exp_mode == "fast" else 0

    def replace(self, **changes):
        return replace(self, **changes)

    def summary(self):
        return (f"N={self.particle_count}, World={self.world_size}, "
                f"Spread={self.initial_spread}, K=(μ={self.mu_k}, σ={self.sigma_k}, w={self.w_k}), "
                f"G=(μ={self.mu_g}, σ={self.sigma_g}), c_rep={self.c_rep}, "
                f"dt={self.dt}, damping={self.damping}, exp={self.exp_mode}")


def validate_config(config):
    """
    Check a LeniaConfig before any particle is allocated.

    All problems are collected and reported in a single ConfigError.

    Raises:
        ConfigError: if any parameter is out of range
    """
    problems = []

    for f in fields(config):
        value = getattr(config, f.name)
        if isinstance(value, float) and not math.isfinite(value):
            problems.append(f"{f.name} must be finite (got {value})")

    if config.particle_count < 0:
        problems.append(f"particle_count must be >= 0 (got {config.particle_count})")
    if not config.world_size > 0:
        problems.append(f"world_size must be > 0 (got {config.world_size})")
    if config.initial_spread < 0:
        problems.append(f"initial_spread must be >= 0 (got {config.initial_spread})")
    if not config.sigma_k > 0:
        problems.append(f"sigma_k must be > 0 (got {config.sigma_k})")
    if not config.sigma_g > 0:
        problems.append(f"sigma_g must be > 0 (got {config.sigma_g})")
    if not config.dt > 0:
        problems.append(f"dt must be > 0 (got {config.dt})")
    if not 0.0 < config.damping <= 1.0:
        problems.append(f"damping must be in (0, 1] (got {config.damping})")
    if config.steps_per_frame < 0:
        problems.append(f"steps_per_frame must be >= 0 (got {config.steps_per_frame})")
    if config.exp_mode not in EXP_MODES:
        problems.append(f"exp_mode must be one of {EXP_MODES} (got {config.exp_mode!r})")

    if problems:
        raise ConfigError(problems)
    return config
