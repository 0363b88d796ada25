#!/usr/bin/env python3
"""Render one of the preset sphere scenes.

Usage:
    python examples/render_spheres.py [options]

Options:
    --scene {simple,showcase}   Preset scene (default: showcase)
    --width WIDTH               Image width in pixels (default: 480)
    --height HEIGHT             Image height in pixels (default: 270)
    --samples SAMPLES           Samples per pixel (default: 64)
    --bounces BOUNCES           Maximum bounces per path (default: 10)
    --f-stop F_STOP             Camera f-number, "inf" for a pinhole
    --seed SEED                 Random seed (default: 0)
    --output OUTPUT             Output file path (default: spheres.png)
    --batch-size SIZE           Samples per progress update (default: 8)
    --cpu                       Force the CPU backend
    --quiet                     Suppress progress output

Example:
    python examples/render_spheres.py --scene simple --width 160 --height 120 --samples 32
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--scene", choices=("simple", "showcase"), default="showcase")
    parser.add_argument("--width", type=int, default=480, help="Image width in pixels (default: 480)")
    parser.add_argument("--height", type=int, default=270, help="Image height in pixels (default: 270)")
    parser.add_argument("--samples", type=int, default=64, help="Samples per pixel (default: 64)")
    parser.add_argument("--bounces", type=int, default=10, help="Maximum bounces per path (default: 10)")
    parser.add_argument(
        "--f-stop",
        type=float,
        default=None,
        help='Camera f-number, "inf" for a pinhole (default: scene preset)',
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=8,
        help="Samples per progress update (default: 8)",
    )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_spheres(
    scene_name: str = "showcase",
    width: int = 480,
    height: int = 270,
    num_samples: int = 64,
    max_bounces: int = 10,
    f_stop: float | None = None,
    output_path: str = "spheres.png",
    batch_size: int = 8,
    quiet: bool = False,
) -> Path:
    """Render a preset scene and save it as PNG.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pbr.core.progressive import ProgressiveRenderer
    from pbr.core.sampler import SamplerConfig
    from pbr.preview.export import save_png
    from pbr.scene.presets import create_showcase_scene, create_simple_scene

    factory = create_simple_scene if scene_name == "simple" else create_showcase_scene
    kwargs = {"width": width, "height": height}
    if f_stop is not None:
        kwargs["f_stop"] = f_stop

    if not quiet:
        print(f"Creating {scene_name} scene ({width}x{height})...")
    scene, camera = factory(**kwargs)

    renderer = ProgressiveRenderer(camera, scene, SamplerConfig(max_bounces=max_bounces))

    if not quiet:
        print(f"Rendering {num_samples} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(num_samples=num_samples, batch_size=batch_size, callback=progress_callback)

    if not quiet:
        print()

    output_file = save_png(renderer, output_path, gamma=2.2)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    if args.cpu:
        ti.init(arch=ti.cpu, random_seed=args.seed)
    else:
        try:
            ti.init(arch=ti.gpu, random_seed=args.seed)
        except RuntimeError:
            logger.info("GPU backend unavailable, using CPU")
            ti.init(arch=ti.cpu, random_seed=args.seed)

    try:
        render_spheres(
            scene_name=args.scene,
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_bounces=args.bounces,
            f_stop=args.f_stop,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Render failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
