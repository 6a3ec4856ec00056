"""Reference demo scene: three spheres resting on a large ground sphere.

The scene contains:
- a large matte ground sphere (radius 100) the others sit on
- a matte blue sphere in the center
- a hollow glass sphere on the left (outer glass shell plus an inner sphere
  with negative radius, which flips its normals)
- a fuzzy gold metal sphere on the right

The default camera (at the origin looking down -z) frames all of them.

Example:
    >>> from pathtracer.scene.demo import create_demo_scene
    >>> scene = create_demo_scene()
    >>> scene.get_sphere_count()
    5
"""

from pathtracer.materials import Dielectric, Lambertian, Metal
from pathtracer.scene.manager import Scene

# =============================================================================
# Demo Scene Constants
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
GLASS_IOR = 1.5
GOLD_ALBEDO = (0.8, 0.6, 0.2)
GOLD_FUZZ = 0.1

# Inner radius of the hollow glass sphere; negative to turn the surface inside out
BUBBLE_RADIUS = -0.4


def create_demo_scene(hollow_glass: bool = True) -> Scene:
    """Build the reference three-sphere scene.

    Args:
        hollow_glass: Add the inner negative-radius sphere that makes the
            left glass sphere a hollow shell.

    Returns:
        A new Scene ready for rendering.
    """
    scene = Scene()

    ground = Lambertian(albedo=GROUND_ALBEDO)
    center = Lambertian(albedo=CENTER_ALBEDO)
    glass = Dielectric(refractive_index=GLASS_IOR)
    gold = Metal(albedo=GOLD_ALBEDO, fuzz=GOLD_FUZZ)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    if hollow_glass:
        scene.add_sphere((-1.0, 0.0, -1.0), BUBBLE_RADIUS, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    return scene
