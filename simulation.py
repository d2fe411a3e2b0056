"""
Simulation step and driver for Particle Lenia 3D.

step() runs one time increment on a ParticleStore in fixed phase order:
  1. compute_fields        (positions -> field snapshot)
  2. integrate_velocities  (snapshot -> velocities, damped)
  3. integrate_positions   (velocities -> positions)
  4. non-finite guard      (raises before anything wraps)
  5. apply_periodic_wrap   (positions -> primary cell)

Each phase is its own kernel launch, so every phase has finished for all
particles before the next one starts.

Simulation wraps a store with the run/pause/reset controls and the
steps-per-frame loop used by run.py.
"""

from config import LeniaConfig, validate_config
from errors import NumericalInstabilityError
from particles import create_particles
from potential import compute_store_fields
from dynamics import integrate_velocities, integrate_positions, count_non_finite, growth_stats
from boundary import wrap_store


def step(store, config, step_index=None):
    """
    Advance the store in place by one time step dt.

    Args:
        store: ParticleStore (mutated)
        config: LeniaConfig
        step_index: Optional step number used in the error message

    Raises:
        NumericalInstabilityError: if a position or velocity became NaN/Inf
    """
    n = store.n
    if n == 0:
        return

    compute_store_fields(store, config)
    integrate_velocities(store.vel, store.u_val, store.u_grad, store.r_grad, n,
                         config.mu_g, config.sigma_g, config.dt, config.damping,
                         config.fast_exp)
    integrate_positions(store.pos, store.vel, n, config.dt)

    # Checked before the wrap: a non-finite coordinate has no cell to wrap into
    bad = count_non_finite(store.pos, store.vel, n)
    if bad > 0:
        raise NumericalInstabilityError(step_index, bad)

    wrap_store(store, config)


class Simulation:
    """
    Driver holding the config, the store and the paused flag.

    Counters:
        frame:      frames advanced while running
        step_count: steps since the last reset
    """

    def __init__(self, config=None, verbose=False):
        self.config = validate_config(config if config is not None else LeniaConfig())
        self.verbose = verbose
        self.paused = False
        self.frame = 0
        self.step_count = 0
        self.store = None
        self.reset()

    # --------------------------------------------------------------------------
    # Controls
    # --------------------------------------------------------------------------

    def reset(self):
        """Replace the store with a freshly seeded one and resume."""
        self.store = create_particles(self.config)
        self.frame = 0
        self.step_count = 0
        self.paused = False
        if self.verbose:
            print(f"[Init] Seeded {self.store.n} particles "
                  f"(spread={self.config.initial_spread}, seed={self.config.seed})")

    def reconfigure(self, config):
        """Swap in a new config; parameters never change under a live store."""
        self.config = validate_config(config)
        self.reset()

    def toggle_pause(self):
        self.paused = not self.paused
        if self.verbose:
            print(f"[Control] {'Paused' if self.paused else 'Resumed'}")
        return self.paused

    # --------------------------------------------------------------------------
    # Stepping
    # --------------------------------------------------------------------------

    def step(self):
        """Run exactly one step, regardless of the paused flag."""
        self.step_count += 1
        step(self.store, self.config, self.step_count)

    def advance_frame(self, steps=None):
        """
        Run one frame worth of steps (config.steps_per_frame by default).

        Returns:
            Number of steps taken (0 while paused)
        """
        if self.paused:
            return 0
        steps = self.config.steps_per_frame if steps is None else steps
        for _ in range(steps):
            self.step()
        self.frame += 1
        return steps

    # --------------------------------------------------------------------------
    # Read-only views
    # --------------------------------------------------------------------------

    def positions(self):
        return self.store.positions()

    def stats(self):
        """(mean_U, mean_G, max_speed) of the current state."""
        return growth_stats(self.store, self.config)
