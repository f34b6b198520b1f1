"""Prometheus metrics for monitoring."""

from prometheus_client import Counter, Gauge, Histogram

samples_ingested_total = Counter(
    "stream_samples_ingested_total", "Total number of samples appended to the buffer")
samples_evicted_total = Counter(
    "stream_samples_evicted_total", "Total number of samples evicted from the buffer")
buffer_size = Gauge(
    "stream_buffer_size", "Number of samples currently held in the buffer")

tick_errors_total = Counter(
    "stream_tick_errors_total", "Total number of failed ticks", ["tick"])

render_frame_seconds = Histogram(
    "stream_render_frame_seconds", "Render tick processing duration",
    buckets=[0.001, 0.004, 0.008, 0.016, 0.033, 0.1])
rendered_points = Gauge(
    "stream_rendered_points", "Points produced by the last render tick")
frames_per_second = Gauge(
    "stream_frames_per_second", "Frames per second over the rolling window")
frame_time_ms = Gauge(
    "stream_frame_time_ms", "Mean frame time over the rolling window")

query_counter = Counter(
    "stream_queries_total", "Total number of queries processed")
query_duration_seconds = Histogram(
    "stream_query_duration_seconds", "Query processing duration",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5])
generation_failures_total = Counter(
    "stream_generation_failures_total", "Total number of failed batch generations")
