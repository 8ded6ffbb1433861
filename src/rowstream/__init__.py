"""
Rowstream: resumable row-stream ingestion.

Turns large append-only byte sources (CSV or JSON lines) into rows delivered
one at a time to a processor, with cooperative pausing and fingerprint-based
resumption after a restart.
"""

__version__ = "0.1.0"
