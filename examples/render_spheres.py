#!/usr/bin/env python3
"""Render the three-sphere demo scene.

This script renders a matte sphere, a hollow glass sphere and a fuzzy gold
sphere resting on a large ground sphere, reports the elapsed time and writes
the result as a PNG.

Usage:
    python examples/render_spheres.py [options]

Options:
    --width WIDTH           Image width in pixels (default: 512)
    --aspect-ratio RATIO    Width over height (default: 16/9)
    --samples SAMPLES       Samples per pixel (default: 100)
    --max-depth DEPTH       Maximum ray bounces (default: 50)
    --vfov DEGREES          Vertical field of view (default: 90)
    --look-from X Y Z       Camera position (default: 0 0 0)
    --look-at X Y Z         Point looked at (default: 0 0 -1)
    --defocus-angle DEG     Defocus cone angle, 0 disables blur (default: 0)
    --focus-dist DIST       Focus distance (default: 10)
    --seed SEED             Random stream seed (default: 0)
    --parallel              Let Taichi render pixels in parallel
    --arch ARCH             Taichi backend: cpu, cuda or gpu (default: cpu)
    --output OUTPUT         Output file path (default: spheres.png)
    --quiet                 Suppress progress output
    --verbose               Enable debug logging

Example:
    python examples/render_spheres.py --width 256 --samples 20 --output small.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

logger = logging.getLogger("render_spheres")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the three-sphere demo scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=512, help="Image width in pixels (default: 512)")
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=16.0 / 9.0,
        help="Image width over height (default: 16/9)",
    )
    parser.add_argument(
        "--samples", type=int, default=100, help="Samples per pixel (default: 100)"
    )
    parser.add_argument(
        "--max-depth", type=int, default=50, help="Maximum ray bounces (default: 50)"
    )
    parser.add_argument(
        "--vfov", type=float, default=90.0, help="Vertical field of view in degrees (default: 90)"
    )
    parser.add_argument(
        "--look-from",
        type=float,
        nargs=3,
        default=(0.0, 0.0, 0.0),
        metavar=("X", "Y", "Z"),
        help="Camera position (default: 0 0 0)",
    )
    parser.add_argument(
        "--look-at",
        type=float,
        nargs=3,
        default=(0.0, 0.0, -1.0),
        metavar=("X", "Y", "Z"),
        help="Point the camera looks at (default: 0 0 -1)",
    )
    parser.add_argument(
        "--defocus-angle",
        type=float,
        default=0.0,
        help="Defocus cone angle in degrees, 0 disables blur (default: 0)",
    )
    parser.add_argument(
        "--focus-dist", type=float, default=10.0, help="Focus distance (default: 10)"
    )
    parser.add_argument("--seed", type=int, default=0, help="Random stream seed (default: 0)")
    parser.add_argument(
        "--parallel", action="store_true", help="Let Taichi render pixels in parallel"
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "cuda", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--output", type=str, default="spheres.png", help="Output file path (default: spheres.png)"
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def render_spheres(args: argparse.Namespace) -> Path:
    """Render the demo scene with the given options and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.camera import Camera, CameraConfig
    from pathtracer.preview.export import save_png
    from pathtracer.scene.demo import create_demo_scene

    config = CameraConfig(
        image_width=args.width,
        aspect_ratio=args.aspect_ratio,
        vfov=args.vfov,
        look_from=tuple(args.look_from),
        look_at=tuple(args.look_at),
        defocus_angle=args.defocus_angle,
        focus_dist=args.focus_dist,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        seed=args.seed,
        parallel=args.parallel,
    )
    camera = Camera(config)
    scene = create_demo_scene()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        print(".", end="", flush=True)

    if not args.quiet:
        print(f"Rendering {camera.image_width}x{camera.image_height}", end="", flush=True)

    start_time = time.perf_counter()
    pixels = camera.render(scene, progress=None if args.quiet else progress_callback)
    elapsed = time.perf_counter() - start_time

    if not args.quiet:
        print(" Completed")
        print(f"Elapsed {elapsed:.2f}s")

    output_file = Path(args.output)
    save_png(pixels, output_file)
    logger.info("Saved %s", output_file.absolute())
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        from pathtracer.runtime import init_taichi

        init_taichi(args.arch)
        render_spheres(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
