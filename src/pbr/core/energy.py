"""Radiometric energy helpers.

Energy is an RGB triple stored in a vec3. It represents emitted light,
surface colour / transmission coefficients, or the throughput ("signal")
carried along a path.
"""

import taichi as ti
import taichi.math as tm

from pbr.core.ray import max_component

vec3 = tm.vec3


@ti.func
def merged(energy: vec3, b: vec3, signal: vec3) -> vec3:
    """Add ``b`` weighted by the path throughput ``signal`` to ``energy``."""
    return energy + b * signal


@ti.func
def amplified(energy: vec3, n: ti.f32) -> vec3:
    return energy * n


@ti.func
def strength(energy: vec3, b: vec3) -> vec3:
    return energy * b


@ti.func
def random_gain(signal: vec3, u: ti.f32):
    """Russian roulette on a path throughput.

    The path survives with probability ``max(signal)`` (capped at 1 by the
    uniform draw) and its throughput is divided by that maximum, keeping
    the estimator's expectation unchanged. A throughput whose largest
    channel is not positive always terminates.

    Args:
        signal: The current path throughput.
        u: Uniform draw in [0, 1).

    Returns:
        A tuple (survived, new_signal). When survived is 0 the returned
        signal is the input unchanged.
    """
    peak = max_component(signal)
    survived = 0
    result = signal
    if peak > 0.0 and u <= peak:
        survived = 1
        result = amplified(signal, 1.0 / peak)
    return survived, result
