"""Command-line preview of chunk generation."""

import argparse
import asyncio
import logging
import time

import numpy as np
import structlog


def main() -> None:
    """CLI entry point: generate one chunk through the background path."""
    parser = argparse.ArgumentParser(
        description="Generate a terrain chunk and report height field and mesh statistics"
    )
    parser.add_argument(
        "--config", type=str, default=None, help="Path or name of a TOML config"
    )
    parser.add_argument("--seed", type=int, default=None, help="Noise seed (overrides config)")
    parser.add_argument("--lod", type=int, default=None, help="Mesh LOD (overrides config)")
    parser.add_argument(
        "--center",
        type=float,
        nargs=2,
        default=(0.0, 0.0),
        metavar=("X", "Y"),
        help="Chunk centre in world units (default: 0 0)",
    )
    parser.add_argument("--flat-shading", action="store_true", help="Build a flat-shaded mesh")
    parser.add_argument("--falloff", action="store_true", help="Apply the island falloff mask")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from ..config import GeneratorConfig, find_config, load_config
    from ..mapgen import MapGenerator
    from .heightmap import MapData
    from .mesh import NUM_SUPPORTED_LODS, MeshData
    from ..tick import TickLoop

    if args.config:
        try:
            config = load_config(find_config(args.config))
        except FileNotFoundError as e:
            logger.error("config_not_found", path=args.config, error=str(e))
            raise SystemExit(1)
    else:
        config = GeneratorConfig()

    if args.seed is not None:
        config.noise.seed = args.seed
    if args.flat_shading:
        config.terrain.use_flat_shading = True
    if args.falloff:
        config.terrain.use_falloff = True
    lod = config.chunks.preview_lod if args.lod is None else args.lod
    if not 0 <= lod < NUM_SUPPORTED_LODS:
        logger.error("unsupported_lod", lod=lod, max_lod=NUM_SUPPORTED_LODS - 1)
        raise SystemExit(1)

    center = (args.center[0], args.center[1])
    results: dict[str, object] = {}

    with MapGenerator(config) as generator:
        loop = TickLoop(generator)

        def on_mesh_data(mesh: MeshData) -> None:
            results["mesh"] = mesh
            loop.stop()

        def on_map_data(map_data: MapData) -> None:
            results["map"] = map_data
            generator.request_mesh_data(map_data, lod, on_mesh_data)

        start_time = time.time()
        generator.request_map_data(center, on_map_data)
        asyncio.run(loop.run())
        gen_time = time.time() - start_time

    map_data = results["map"]
    mesh = results["mesh"]
    heights = map_data.height_map

    print(f"Chunk at {center}, {config.map_chunk_size} vertices per side, LOD {lod}")
    print(
        f"Height field {heights.shape[1]}x{heights.shape[0]}: "
        f"min {heights.min():.3f}, max {heights.max():.3f}, mean {heights.mean():.3f}"
    )
    print(
        f"Mesh: {mesh.vertex_count} vertices, {mesh.triangle_count} triangles"
        f"{' (flat shaded)' if mesh.flat_shaded else ''}, "
        f"height range {np.ptp(mesh.vertices[:, 1]):.2f}"
    )
    print(f"Generated in {gen_time * 1000:.0f} ms over {loop.current_tick} ticks")


if __name__ == "__main__":
    main()
