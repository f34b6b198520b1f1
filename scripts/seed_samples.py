"""Script to push a generated batch into a running stream service."""

import asyncio
import sys
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).parent.parent))

from stream_engine.core.config import settings
from stream_engine.services.sample_source import SampleGenerator


async def seed_samples(
    base_url: str = f"http://localhost:{settings.service_port}",
    count: int = 500,
    chunk_size: int = 100,
) -> None:
    """Generate samples locally and post them to /api/samples in chunks."""
    samples = SampleGenerator().generate_batch(count)

    async with httpx.AsyncClient(timeout=10.0) as client:
        for i in range(0, len(samples), chunk_size):
            chunk = samples[i:i + chunk_size]
            response = await client.post(
                f"{base_url}/api/samples",
                json={"samples": [sample.model_dump() for sample in chunk]},
            )
            response.raise_for_status()
            print(f"Pushed {len(chunk)} samples, pending: {response.json()['pending']}")

    print(f"\nSeeded {len(samples)} samples")


if __name__ == "__main__":
    asyncio.run(seed_samples())
