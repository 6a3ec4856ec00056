"""Preview module for rendered output.

Components:
    export: PNG writing through Pillow and image comparison helpers

Example:
    >>> from pathtracer.preview import save_png
    >>> save_png(camera.render(scene), "output.png")
"""

from pathtracer.preview.export import compute_rmse, image_to_uint8, save_png

__all__ = [
    "save_png",
    "image_to_uint8",
    "compute_rmse",
]
