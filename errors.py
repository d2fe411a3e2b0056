"""
Error types for Particle Lenia 3D.

ConfigError is raised before any particle is allocated.
NumericalInstabilityError is raised after a step that left NaN/Inf in the store.
Coincident particles are not an error (handled by the distance floor).
"""


class LeniaError(Exception):
    """Base class for all simulation errors."""


class ConfigError(LeniaError, ValueError):
    """Invalid configuration, detected at store-creation time."""

    def __init__(self, problems):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class NumericalInstabilityError(LeniaError, ArithmeticError):
    """Non-finite positions or velocities appeared during a step."""

    def __init__(self, step, bad_count):
        self.step = step
        self.bad_count = bad_count
        where = f" after step {step}" if step is not None else ""
        super().__init__(
            f"Non-finite position/velocity in {bad_count} particle(s){where}; "
            f"reduce dt or increase damping"
        )
