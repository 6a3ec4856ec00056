"""Taichi runtime initialisation.

Every kernel in the package works in double precision, so Taichi has to be
initialised with ``default_fp=ti.f64``. Float literals inside kernels take the
default type, and a single-precision default would silently truncate locals
that are later assigned float64 values.

Example:
    >>> from pathtracer.runtime import init_taichi
    >>> init_taichi("cpu")
    >>> from pathtracer.scene.manager import Scene  # safe after init
"""

import logging

import taichi as ti

logger = logging.getLogger(__name__)

_ARCHS = {
    "cpu": ti.cpu,
    "cuda": ti.cuda,
    "gpu": ti.gpu,
}


def init_taichi(arch: str = "cpu", *, debug: bool = False, random_seed: int = 0) -> None:
    """Initialise Taichi for rendering.

    Must be called once, before importing any module that declares Taichi
    fields (everything under ``pathtracer.core``, ``geometry``, ``materials``,
    ``scene`` and ``camera``).

    Args:
        arch: Backend name: "cpu", "cuda" or "gpu". The backend must support
            64-bit floats.
        debug: Enable Taichi debug mode (bounds checking in kernels).
        random_seed: Seed for Taichi's own generator. The renderer draws from
            its own per-pixel streams, so this only affects ``ti.random`` users.

    Raises:
        ValueError: If the backend name is unknown.
    """
    if arch not in _ARCHS:
        raise ValueError(f"Unknown Taichi backend: {arch!r} (expected one of {sorted(_ARCHS)})")

    ti.init(
        arch=_ARCHS[arch],
        default_fp=ti.f64,
        default_ip=ti.i32,
        debug=debug,
        random_seed=random_seed,
    )
    logger.debug("Taichi initialised (arch=%s, default_fp=f64, debug=%s)", arch, debug)
