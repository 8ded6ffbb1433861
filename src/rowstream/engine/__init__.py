"""Engine: the pausable row pipeline and its host job adapter."""

from rowstream.engine.job import RowStreamJob
from rowstream.engine.pipeline import PausableRowPipeline

__all__ = [
    "PausableRowPipeline",
    "RowStreamJob",
]
