"""Image export utilities for rendered images.

Rendered images are 8-bit sRGB-like buffers of shape (height, width, 3) with
row 0 at the top, which is the layout Pillow expects.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from pathtracer.preview.export import save_png
    >>> pixels = camera.render(scene)
    >>> save_png(pixels, "spheres.png")
"""

from __future__ import annotations

import os

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def _check_rgb_shape(image: np.ndarray) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")


def save_png(pixels: npt.NDArray[np.uint8], filepath: str | os.PathLike[str]) -> None:
    """Save an 8-bit RGB buffer as a PNG file.

    Args:
        pixels: Array of shape (height, width, 3) with dtype uint8.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If the array has the wrong shape or dtype.
        OSError: If the file cannot be written.
    """
    _check_rgb_shape(pixels)
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 image, got {pixels.dtype}")

    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels))
    pil_image.save(filepath, format="PNG")


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Encode a linear image the same way the renderer encodes pixels.

    Applies a square root (gamma 2), clamps to [0, 0.999] and scales by
    255.99 before truncating to 8 bits.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    _check_rgb_shape(image)
    encoded = np.clip(np.sqrt(image.astype(np.float64)), 0.0, 0.999) * 255.99
    return encoded.astype(np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.number],
    image_b: npt.NDArray[np.number],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
