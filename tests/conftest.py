"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    from pathtracer.runtime import init_taichi

    init_taichi("cpu", random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear the Taichi registries and re-seed random streams before each test.

    Scenes re-upload themselves on the next query, so tests stay isolated
    even when they write to the registries directly.
    """
    # Import here so Taichi is initialized first
    from pathtracer.core.sampling import seed_random_streams
    from pathtracer.materials.dielectric import clear_dielectric_materials
    from pathtracer.materials.lambertian import clear_lambertian_materials
    from pathtracer.materials.metal import clear_metal_materials
    from pathtracer.scene import manager
    from pathtracer.scene.intersection import clear_scene

    clear_scene()
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    manager._clear_material_tracking()
    manager._active_upload = None
    seed_random_streams(42)

    yield


@pytest.fixture
def fresh_scene():
    """Create an empty Scene for each test."""
    from pathtracer.scene.manager import Scene

    scene = Scene()
    yield scene
    scene.clear()
