"""
fixtureflow_pipeline.pipelines — run-level orchestration.

    from fixtureflow_pipeline.pipelines import Preprocessor, setup_run, teardown_run

    result = await setup_run()          # preprocess the configured source
    ...
    teardown_run()                      # restore the canonical file
"""

from fixtureflow_pipeline.pipelines.lifecycle import setup_run, teardown_run
from fixtureflow_pipeline.pipelines.preprocess import (
    FileOpOutcome,
    PreprocessResult,
    Preprocessor,
    run_preprocess,
)
from fixtureflow_pipeline.pipelines.seed import seed_relational

__all__ = [
    "FileOpOutcome",
    "PreprocessResult",
    "Preprocessor",
    "run_preprocess",
    "seed_relational",
    "setup_run",
    "teardown_run",
]
