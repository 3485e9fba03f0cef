# pbc_stage/training/worker.py
from __future__ import annotations

import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List

from pbc_stage import logs
from pbc_stage.config.log_config import LogConfig
from pbc_stage.dataloader.dataset_loader import DatasetLoader
from pbc_stage.observability.instrumentation import Instrumentation
from pbc_stage.observability.progress import format_duration
from pbc_stage.pipeline.step import PipelineStep
from pbc_stage.training.context import TrainingContext, WorkerSpec
from pbc_stage.training.engines.forest_engine import RandomForestTrainEngine
from pbc_stage.training.engines.model_train_engine import ModelTrainEngine
from pbc_stage.training.messages import Done, Failed, PipeChannel
from pbc_stage.training.steps.artifact_persist_step import ArtifactPersistStep
from pbc_stage.training.steps.dataset_load_step import DatasetLoadStep
from pbc_stage.training.steps.model_train_step import ModelTrainStep


def _describe(e: BaseException) -> str:
    return str(e) or type(e).__name__


class TrainingWorker:
    """
    TrainingWorker

    Runs at full complexity inside its own process:
        DatasetLoadStep -> ModelTrainStep -> ArtifactPersistStep

    Exactly one message per run:
    - Done{elapsed_ms}  after the artifact is on disk   -> return 0
    - Failed{error}     on any load / train / persist error -> return 1
    """

    def __init__(
        self,
        spec: WorkerSpec,
        *,
        engine: ModelTrainEngine | None = None,
        loader: DatasetLoader | None = None,
        inst: Instrumentation | None = None,
    ):
        self.spec = spec
        self.engine = engine or RandomForestTrainEngine()
        self.loader = loader or DatasetLoader(
            feature_columns=spec.feature_columns,
            label_column=spec.label_column,
            chunksize=spec.chunksize,
        )
        self.inst = inst or Instrumentation()

    def build_steps(self) -> List[PipelineStep]:
        return [
            DatasetLoadStep(self.loader, inst=self.inst),
            ModelTrainStep(self.engine, inst=self.inst),
            ArtifactPersistStep(inst=self.inst),
        ]

    def run(self, channel) -> int:
        ctx = TrainingContext(
            run_id=uuid.uuid4().hex[:10],
            cfg=self.spec.training,
            dataset_path=Path(self.spec.dataset_path),
            artifact_path=Path(self.spec.artifact_path),
            inst=self.inst,
        )
        logs.info(
            f"[Worker] START run_id={ctx.run_id} "
            f"estimators={ctx.cfg.estimator_count} dataset={ctx.dataset_path}"
        )

        try:
            for step in self.build_steps():
                ctx = step.run(ctx)
        except Exception as e:
            logs.exception(f"[Worker] run_id={ctx.run_id} failed: {_describe(e)}")
            channel.send(Failed(error=_describe(e)))
            return 1

        channel.send(Done(elapsed_ms=ctx.train_elapsed_ms))

        self.inst.generate_timeline_report(f"worker run {ctx.run_id}")
        logs.info(
            f"[Worker] training complete in {format_duration(ctx.train_elapsed_ms)} "
            f"(fit={ctx.train_elapsed_ms:.0f}ms, all steps={self.inst.total_ms():.0f}ms)"
        )
        return 0


def worker_process_entry(conn, payload: Dict[str, Any]) -> None:
    """
    Process entrypoint (must be top-level for multiprocessing pickling).
    - rebuilds WorkerSpec from plain payload
    - a bad payload is reported as Failed, not as a silent crash
    - exit code mirrors the message: 0 Done / 1 Failed
    """
    channel = PipeChannel(conn)
    try:
        try:
            spec = WorkerSpec.from_payload(payload)
        except Exception as e:
            channel.send(Failed(error=f"invalid worker payload: {_describe(e)}"))
            code = 1
        else:
            if spec.log:
                logs.configure(LogConfig(**spec.log), role="worker")
            code = TrainingWorker(spec).run(channel)
    finally:
        channel.close()
        logs.complete()

    sys.exit(code)
