# pbc_stage/training/steps/dataset_load_step.py
from __future__ import annotations

from pbc_stage import logs
from pbc_stage.dataloader.dataset_loader import DatasetLoader
from pbc_stage.pipeline.step import PipelineStep
from pbc_stage.training.context import TrainingContext


class DatasetLoadStep(PipelineStep):
    """
    Contract:
    - consumes ctx.dataset_path
    - produces ctx.dataset (reloaded in THIS process, never received over IPC)
    """

    stage = "dataset"

    def __init__(self, loader: DatasetLoader, inst=None):
        super().__init__(inst)
        self.loader = loader

    def run(self, ctx: TrainingContext) -> TrainingContext:
        with self.timed():
            ctx.dataset = self.loader.load(ctx.dataset_path)

        ctx.metrics["rows"] = len(ctx.dataset)
        ctx.metrics["dropped_rows"] = ctx.dataset.dropped_rows
        logs.info(f"[{self.step_name}] rows={len(ctx.dataset)}")
        return ctx
