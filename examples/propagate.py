# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "tlejax"]
#
# [tool.uv.sources]
# tlejax = { path = ".." }
# ///
"""Propagate a TLE with SGP4/SDP4 and report its state transition matrix.

Parses a two-line element set (the ISS by default), propagates it over a
time grid with the vectorized kernel, and optionally evaluates the state
transition matrix and the B* parameter Jacobian at the final step using
forward-mode derivatives, comparing them with the 8-point finite
difference oracle.

Requires tlejax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/propagate.py [OPTIONS]

Examples:
    # ISS over one day at a 10 minute step
    uv run examples/propagate.py --duration 1.0 --timestep 600

    # Custom TLE with derivative checks
    uv run examples/propagate.py --line1 "1 27421U ..." --line2 "2 27421 ..." --derivatives
"""

import time
from typing import Annotated

import jax.numpy as jnp
import numpy as np
import typer

from tlejax import set_dtype
from tlejax.sgp4 import (
    BSTAR,
    TLE,
    Representation,
    TLEPropagator,
    element_vector,
    finite_difference_jacobian,
    propagate_samples,
)

ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"

set_dtype(jnp.float64)  # Must be before any JIT compilation


def main(
    line1: Annotated[str, typer.Option(help="First TLE line")] = ISS_LINE1,
    line2: Annotated[str, typer.Option(help="Second TLE line")] = ISS_LINE2,
    gravity: Annotated[str, typer.Option(help="Gravity model: wgs72old, wgs72 or wgs84")] = "wgs72",
    timestep: Annotated[float, typer.Option(help="Propagation timestep in seconds")] = 60.0,
    duration: Annotated[float, typer.Option(help="Propagation duration in days")] = 1.0,
    derivatives: Annotated[
        bool, typer.Option(help="Evaluate the STM and B* Jacobian at the final step")
    ] = False,
) -> None:
    """Propagate a TLE and print its TEME trajectory summary."""
    tle = TLE.from_lines(line1, line2)
    prop = TLEPropagator(tle, gravity=gravity)
    print(f"Satellite {tle.satellite_number} ({prop.method.upper()}), epoch {tle.epoch}")
    print(f"  Mean motion: {tle.mean_motion_rev_per_day:.8f} rev/day, e = {tle.e:.7f}")

    # ── Stage 1: Vectorized propagation ──────────────────────────────────
    dts = np.arange(0.0, duration * 86400.0 + timestep, timestep)
    x = element_vector(tle)

    t0 = time.perf_counter()
    states, status, _ = propagate_samples(x, dts / 60.0, prop.flags, prop.gravity)
    elapsed = time.perf_counter() - t0
    print(f"\n── Propagated {len(dts)} steps in {elapsed:.3f}s (including compilation) ──")

    failed = np.flatnonzero(status)
    if failed.size:
        print(f"  WARNING: {failed.size} steps failed, first status {int(status[failed[0]])} "
              f"at dt = {dts[failed[0]]:.0f} s")

    radii = np.linalg.norm(states[:, :3], axis=1) / 1e3
    print(f"  Radius: min {radii.min():.3f} km, max {radii.max():.3f} km")
    last = states[-1]
    print(f"  Final position [km]:  {np.array2string(last[:3] / 1e3, precision=3)}")
    print(f"  Final velocity [m/s]: {np.array2string(last[3:], precision=3)}")

    if not derivatives:
        return

    # ── Stage 2: Derivatives at the final step ───────────────────────────
    dprop = TLEPropagator(tle, gravity=gravity, representation=Representation.DERIVATIVE,
                          parameters=[BSTAR])
    state = dprop.propagate(float(dts[-1]))
    stm = np.asarray(dprop.get_state_transition_matrix(state))
    dydp = np.asarray(dprop.get_parameters_jacobian(state))

    analytic = np.asarray(state.jacobian)
    reference = np.asarray(finite_difference_jacobian(dprop, float(dts[-1])))
    print("\n── State transition matrix ──")
    print(np.array2string(stm, precision=4, max_line_width=120))
    print("\n── dY/dB* ──")
    print(np.array2string(dydp.ravel(), precision=4))
    print(f"\n  Max |analytic - finite difference| on the element Jacobian: "
          f"{np.max(np.abs(analytic - reference)):.3e}")


if __name__ == "__main__":
    typer.run(main)
