"""Per-pixel random streams and Monte Carlo sampling helpers.

Every sampling function takes an explicit ``stream`` index instead of drawing
from a shared global generator. Each stream is a 32-bit xorshift state stored in
a Taichi field; the renderer assigns one stream per pixel, so the sequence a
pixel consumes does not depend on how Taichi schedules pixels across threads.

Streams are seeded from ``(seed, stream index)`` with Thomas Wang's integer
hash, which is a bijection on 32-bit words: distinct streams start from
distinct states.

Example:
    >>> from pathtracer.core.sampling import seed_random_streams
    >>> seed_random_streams(seed=7)
    >>> # inside a kernel: u = random_real(stream)
"""

import taichi as ti

from pathtracer.core.ray import length_squared, unit_vector, vec3

# One stream per pixel of the largest supported image
MAX_STREAMS = 1024 * 1024

# Scale mapping a 32-bit word into [0, 1)
_INV_U32 = 1.0 / 4294967296.0

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def _u32(value):
    return ti.cast(value, ti.u32)


@ti.func
def _wang_hash(key: ti.u32) -> ti.u32:
    h = (key ^ _u32(61)) ^ (key >> _u32(16))
    h *= _u32(9)
    h = h ^ (h >> _u32(4))
    h *= _u32(0x27D4EB2D)
    h = h ^ (h >> _u32(15))
    return h


@ti.kernel
def _seed_streams(seed: ti.i32, count: ti.i32):
    for i in range(count):
        state = _wang_hash(_wang_hash(_u32(seed)) + _u32(i))
        if state == _u32(0):
            state = _u32(i + 1)
        _rng_state[i] = state


def seed_random_streams(seed: int = 0, count: int = MAX_STREAMS) -> None:
    """Seed the first ``count`` random streams.

    Args:
        seed: Any integer; only its low 31 bits are used.
        count: Number of streams to seed, at most MAX_STREAMS.

    Raises:
        ValueError: If count is outside [1, MAX_STREAMS].
    """
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} outside [1, {MAX_STREAMS}]")
    _seed_streams(seed & 0x7FFFFFFF, count)


# =============================================================================
# Uniform Scalars and Vectors
# =============================================================================


@ti.func
def random_real(stream: ti.i32) -> ti.f64:
    """Draw a uniform float in [0, 1) from a stream and advance it."""
    x = _rng_state[stream]
    if x == _u32(0):
        # unseeded stream; xorshift would stay at zero forever
        x = _u32(stream + 1)
    x ^= x << _u32(13)
    x ^= x >> _u32(17)
    x ^= x << _u32(5)
    _rng_state[stream] = x
    return ti.cast(x, ti.f64) * _INV_U32


@ti.func
def random_range(stream: ti.i32, lo: ti.f64, hi: ti.f64) -> ti.f64:
    """Draw a uniform float in [lo, hi)."""
    return lo + (hi - lo) * random_real(stream)


@ti.func
def random_vec(stream: ti.i32) -> vec3:
    """Draw a vector with each component uniform in [0, 1)."""
    x = random_real(stream)
    y = random_real(stream)
    z = random_real(stream)
    return vec3(x, y, z)


@ti.func
def random_vec_range(stream: ti.i32, lo: ti.f64, hi: ti.f64) -> vec3:
    """Draw a vector with each component uniform in [lo, hi)."""
    x = random_range(stream, lo, hi)
    y = random_range(stream, lo, hi)
    z = random_range(stream, lo, hi)
    return vec3(x, y, z)


# =============================================================================
# Rejection Sampling
# =============================================================================


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Draw a point uniformly inside the unit sphere.

    Samples the [-1, 1) cube until the point lands inside the sphere. The loop
    has no iteration cap; it terminates with probability 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    while found == 0:
        p = random_vec_range(stream, -1.0, 1.0)
        if length_squared(p) < 1.0:
            found = 1
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Draw a unit vector by normalizing a point from the unit sphere."""
    return unit_vector(random_in_unit_sphere(stream))


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Draw a point uniformly inside the unit disk in the xy-plane (z = 0)."""
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    while found == 0:
        p = vec3(random_range(stream, -1.0, 1.0), random_range(stream, -1.0, 1.0), 0.0)
        if p.x * p.x + p.y * p.y < 1.0:
            found = 1
    return p
