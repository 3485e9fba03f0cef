# pbc_stage/training/steps/artifact_persist_step.py
from __future__ import annotations

from pbc_stage import logs
from pbc_stage.pipeline.step import PipelineStep
from pbc_stage.training.context import TrainingContext
from pbc_stage.utils.errors import PersistFailure
from pbc_stage.utils.filesystem import FileSystem


class ArtifactPersistStep(PipelineStep):
    """
    Semantics:
    - runs only after training fully succeeded
    - serializes in memory first, then ONE atomic write (tmp -> replace)
    - overwrites any prior artifact; on failure the prior artifact is untouched
    """

    stage = "persist"

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.model is None:
            raise RuntimeError("No model to persist")

        with self.timed():
            try:
                data = ctx.model.serialize()
                FileSystem.safe_write(ctx.artifact_path, data)
            except Exception as e:
                raise PersistFailure(
                    f"cannot write artifact {ctx.artifact_path}: {e}"
                ) from e

        ctx.artifact_bytes = len(data)
        logs.info(
            f"[{self.step_name}] artifact={ctx.artifact_path} "
            f"size={FileSystem.format_size(len(data))}"
        )
        return ctx
