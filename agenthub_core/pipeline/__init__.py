"""Pipelines package - composing agents."""

from .fanout import FanoutPipeline, fanout_pipeline
from .msghub import MsgHub
from .sequential import SequentialPipeline, sequential_pipeline

__all__ = [
    "FanoutPipeline",
    "fanout_pipeline",
    "MsgHub",
    "SequentialPipeline",
    "sequential_pipeline",
]
