#!filepath: pbc_stage/pipeline/step.py
from __future__ import annotations

from typing import Any

from pbc_stage.observability.instrumentation import (
    Instrumentation,
    NoOpInstrumentation,
)


class PipelineStep:
    """
    Pipeline step base class.

    Responsibilities:
      1. consume / produce fields of a context object
      2. expose a step-level timing scope

    Rules:
      - Instrumentation is optional; a step behaves the same without it
      - errors propagate, the caller decides how to report them
    """

    stage: str = ''

    def __init__(self, inst: Instrumentation | None = None):
        self.inst: Instrumentation | NoOpInstrumentation = (
            inst if inst is not None else NoOpInstrumentation()
        )

    @property
    def step_name(self) -> str:
        return self.__class__.__name__

    def timed(self):
        """
        Leaf timer recorded into the run timeline under the step name.
        """
        return self.inst.timer(self.step_name, record=True)

    def run(self, ctx: Any) -> Any:
        raise NotImplementedError
