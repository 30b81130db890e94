"""
Benchmark suite for partialjson completion performance.

Compares the precise and fast completion paths on truncated documents and
measures complete documents against standard JSON libraries including:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)
"""
