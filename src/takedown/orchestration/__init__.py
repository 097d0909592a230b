"""Orchestration of the resumable extract → load → prune → report pipeline.

This package provides:
- run_pipeline / execute: the stage state machine and its default wiring
- resume_point / pipeline_state: progress-record interpretation
"""

from takedown.orchestration.orchestrator import (
    CollaboratorFactories,
    PipelineOutput,
    PipelineRun,
    execute,
    plan_directory_map,
    run_pipeline,
)
from takedown.orchestration.utils import pipeline_state, resume_point

__all__ = [
    "CollaboratorFactories",
    "PipelineOutput",
    "PipelineRun",
    "execute",
    "plan_directory_map",
    "run_pipeline",
    "pipeline_state",
    "resume_point",
]
