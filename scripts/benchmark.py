"""Performance benchmarking script for the stream engine."""

import asyncio
import sys
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx

sys.path.insert(0, str(Path(__file__).parent.parent))

from stream_engine.core.config import settings
from stream_engine.models.frame import ViewState
from stream_engine.models.geometry import RenderMode
from stream_engine.models.sample import AggregationPeriod, FilterSpec
from stream_engine.services.aggregation import aggregate
from stream_engine.services.filter_engine import apply_filter
from stream_engine.services.lod import decimate
from stream_engine.services.sample_source import SampleGenerator
from stream_engine.services.scheduler import render_frame
from stream_engine.services.viewport import compute_viewport
from stream_engine.services.virtualization import compute_window, sort_for_display


def _time_ms(fn: Callable[[], object], repeat: int) -> Dict:
    latencies: List[float] = []
    for _ in range(repeat):
        start = time.perf_counter()
        fn()
        latencies.append((time.perf_counter() - start) * 1000)
    latencies.sort()
    return {
        "avg_ms": sum(latencies) / len(latencies),
        "p50_ms": latencies[len(latencies) // 2],
        "p95_ms": latencies[int(len(latencies) * 0.95)],
        "within_render_interval": latencies[int(len(latencies) * 0.95)] < settings.render_interval_ms,
    }


def benchmark_core(size: Optional[int] = None, repeat: int = 50) -> Dict:
    """
    Time each core operation on a full buffer.

    Args:
        size: Number of samples, buffer capacity when omitted.
        repeat: Runs per operation.

    Returns:
        Benchmark results keyed by operation.
    """
    size = size or settings.max_buffer_size
    data = tuple(SampleGenerator(seed=7).generate_batch(size))
    spec = FilterSpec(categories=frozenset({"temperature", "pressure"}), min_value=40.0)
    rows = sort_for_display(data)

    return {
        "samples": size,
        "filter": _time_ms(lambda: apply_filter(data, spec), repeat),
        "aggregate_1min": _time_ms(
            lambda: aggregate(data, AggregationPeriod.ONE_MINUTE.milliseconds), repeat),
        "viewport": _time_ms(lambda: compute_viewport(data), repeat),
        "decimate": _time_ms(lambda: decimate(data, settings.line_target_density), repeat),
        "window": _time_ms(lambda: compute_window(rows, 2000, 40, 400, 5), repeat),
        "render_line": _time_ms(lambda: render_frame(data, ViewState()), repeat),
        "render_heatmap": _time_ms(
            lambda: render_frame(data, ViewState(mode=RenderMode.HEATMAP)), repeat),
    }


async def benchmark_stream_service(
    base_url: str = "http://localhost:8000",
    num_requests: int = 100,
    concurrent: int = 10,
) -> Dict:
    """
    Benchmark the batch endpoint of a running stream service.

    Args:
        base_url: Base URL of the stream service.
        num_requests: Total number of requests to run.
        concurrent: Number of concurrent requests.

    Returns:
        Benchmark results.
    """
    latencies = []
    errors = 0

    async def run_request(client: httpx.AsyncClient) -> None:
        nonlocal errors
        try:
            start = time.time()
            response = await client.get(f"{base_url}/api/data", params={"count": 1000})
            latency = time.time() - start
            if response.status_code == 200:
                latencies.append(latency)
            else:
                errors += 1
        except httpx.HTTPError as e:
            print(f"Error: {e}")
            errors += 1

    start_time = time.time()
    async with httpx.AsyncClient(timeout=30.0) as client:
        for i in range(0, num_requests, concurrent):
            batch = range(i, min(i + concurrent, num_requests))
            await asyncio.gather(*[run_request(client) for _ in batch])
    total_time = time.time() - start_time

    if latencies:
        latencies.sort()
        avg_latency = sum(latencies) / len(latencies)
        p50 = latencies[len(latencies) // 2]
        p95 = latencies[int(len(latencies) * 0.95)]
    else:
        avg_latency = p50 = p95 = 0

    return {
        "total_requests": num_requests,
        "successful": len(latencies),
        "errors": errors,
        "total_time_seconds": total_time,
        "requests_per_second": num_requests / total_time if total_time > 0 else 0,
        "avg_latency_seconds": avg_latency,
        "p50_latency_seconds": p50,
        "p95_latency_seconds": p95,
    }


if __name__ == "__main__":
    import json

    print("Running stream engine benchmarks...")

    core_results = benchmark_core()
    print("\nCore Results:")
    print(json.dumps(core_results, indent=2))

    if "--service" in sys.argv:
        service_results = asyncio.run(benchmark_stream_service())
        print("\nStream Service Results:")
        print(json.dumps(service_results, indent=2))
