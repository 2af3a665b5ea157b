"""Generic adaptive ODE integration."""

from src.solver.rk45 import (
    Trajectory,
    interpolate,
    resample_trajectory,
    rk45_step,
    solve_ode,
    uniform_grid,
)

__all__ = [
    "Trajectory",
    "interpolate",
    "resample_trajectory",
    "rk45_step",
    "solve_ode",
    "uniform_grid",
]
