#!/usr/bin/env python3
"""
Generate Variations - run one pipeline cycle outside the server

Fetches the configured source (or a given URL / local file), then writes the
five JPEG variants and the SVG placeholder to an output directory.

    python scripts/generate_variations.py --out ./out
    python scripts/generate_variations.py --file photo.jpg --out ./out --primitives 100 --mode 3
"""

import sys
import time
import asyncio
import logging
import argparse
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.config import PipelineConfig, settings
from src.pipeline.orchestrator import PlaceholderPipeline

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def generate(config: PipelineConfig, out_dir: Path, source_file: Path = None) -> None:
    if source_file is not None:
        async def read_file(url, **kwargs):
            return source_file.read_bytes()
        pipeline = PlaceholderPipeline(config, fetcher=read_file)
    else:
        pipeline = PlaceholderPipeline(config)

    start = time.time()
    result = await pipeline.generate_variations()
    elapsed = time.time() - start

    out_dir.mkdir(parents=True, exist_ok=True)
    for variant in result.variants.ordered():
        path = out_dir / f"{variant.name.value}.jpg"
        path.write_bytes(variant.content)
        logger.info(f"{path.name}: {variant.width}x{variant.height}, {variant.size_bytes / 1024:.1f}KB")

    svg_path = out_dir / result.placeholder.name
    svg_path.write_bytes(result.placeholder.content)
    logger.info(f"{svg_path.name}: {result.placeholder.size_bytes / 1024:.1f}KB")
    logger.info(f"Source: {result.source_size / 1024:.1f}KB, total time: {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(
        description="Produce JPEG variants and a primitive SVG placeholder for one image"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--url", default=settings.SOURCE_IMAGE_URL, help="Source image URL")
    source.add_argument("--file", type=Path, help="Local source image instead of a URL")
    parser.add_argument("--out", type=Path, default=Path("./variations"), help="Output directory")
    parser.add_argument("--primitives", type=int, default=settings.PRIMITIVE_COUNT, help="Number of shapes")
    parser.add_argument("--mode", type=int, default=settings.PRIMITIVE_MODE, help="Shape mode (0-8, except 6)")
    parser.add_argument("--seed", type=int, default=settings.PRIMITIVE_SEED, help="Random seed for tracing")

    args = parser.parse_args()

    config = PipelineConfig.from_settings(settings).model_copy(update={
        "source_url": args.url,
        "primitive_count": args.primitives,
        "primitive_mode": args.mode,
        "primitive_seed": args.seed,
    })

    asyncio.run(generate(config, args.out, args.file))


if __name__ == "__main__":
    main()
