# pbc_stage/training/steps/model_train_step.py
from __future__ import annotations

from pbc_stage import logs
from pbc_stage.observability.timer import stopwatch_ms
from pbc_stage.pipeline.step import PipelineStep
from pbc_stage.training.context import TrainingContext
from pbc_stage.training.engines.model_train_engine import ModelTrainEngine


class ModelTrainStep(PipelineStep):
    """
    Contract:
    - consumes ctx.dataset, ctx.cfg (full estimator_count)
    - produces ctx.model, ctx.train_elapsed_ms (fit call only)
    """

    stage = "train"

    def __init__(self, engine: ModelTrainEngine, inst=None):
        super().__init__(inst)
        self.engine = engine

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.dataset is None:
            raise RuntimeError("No dataset to train on")

        logs.info(
            f"[{self.step_name}] training estimators={ctx.cfg.estimator_count} "
            f"seed={ctx.cfg.random_seed} skip_oob={ctx.cfg.skip_out_of_bag}"
        )

        with self.timed(), stopwatch_ms() as elapsed:
            ctx.model = self.engine.train(
                X=ctx.dataset.features,
                y=ctx.dataset.labels,
                cfg=ctx.cfg,
                feature_order=ctx.dataset.feature_names,
            )

        ctx.train_elapsed_ms = elapsed[0]
        return ctx
