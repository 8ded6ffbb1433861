# tests/property/__init__.py
"""Property-based tests for rowstream.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of. Resumability depends on the
decoders producing identical rows however the bytes arrive, and on the
pipeline delivering each row exactly once across pauses and restarts.

Test categories:
- test_chunk_boundaries: decoders are insensitive to chunk splits
- test_pipeline_properties: ordering, pause/resume and fastforward invariants
"""
