"""Generation pipeline and batch coordinator.

Usage:
    from boardmill.pipeline import generate_batch

    result = await generate_batch(host, sizes, config.sources, config.options)
    for entry in result.failed:
        print(entry.name, entry.phase, entry.reason)
"""

from boardmill.pipeline.batch import (
    BatchEntry,
    BatchResult,
    PlanAction,
    PlannedSize,
    generate_batch,
    generate_single,
    plan_batch,
)
from boardmill.pipeline.generation import GenerationPhase, GenerationPipeline, GenerationResult
from boardmill.pipeline.history import history

__all__ = [
    "BatchEntry",
    "BatchResult",
    "GenerationPhase",
    "GenerationPipeline",
    "GenerationResult",
    "PlanAction",
    "PlannedSize",
    "generate_batch",
    "generate_single",
    "history",
    "plan_batch",
]
