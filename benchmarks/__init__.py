"""
Benchmark suite for jsonbuf JSON writing performance.

Compares jsonbuf against standard JSON serializers including:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Measures serialization speed and memory usage across different data shapes.
"""
