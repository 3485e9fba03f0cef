# pbc_stage/utils/errors.py
class PbcStageError(RuntimeError):
    """
    Root of every error raised on purpose by this project.
    """


class UserInputError(PbcStageError):
    """
    Raised for invalid user-provided config (env vars, paths, counts).
    Should NOT print traceback.
    """


# ------------------------------------------------------------------
# Dataset
# ------------------------------------------------------------------
class DatasetError(PbcStageError):
    pass


class SourceUnavailable(DatasetError):
    """
    Dataset source cannot be opened or read. Fatal, no retry.
    """


class MissingColumns(DatasetError):
    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"missing required columns: {', '.join(self.missing)}")


class EmptyDataset(DatasetError):
    """
    Zero valid rows survived validation.
    """


# ------------------------------------------------------------------
# Training orchestration
# ------------------------------------------------------------------
class CalibrationFailure(PbcStageError):
    """
    Bench training threw. Aborts the run before any worker is spawned.
    """


class PersistFailure(PbcStageError):
    """
    Artifact write failed inside the worker (reported as a Failed message).
    """


class MalformedMessage(PbcStageError):
    """
    Worker sent something that is not a valid WorkerMessage.
    """


class WorkerFailure(PbcStageError):
    """
    Worker reported a structured failure.
    """


class WorkerCrash(PbcStageError):
    """
    Worker exited without sending any message.
    """

    def __init__(self, exit_code: int | None):
        self.exit_code = exit_code
        super().__init__(f"worker exited with code {exit_code} without a message")


class WorkerTimeout(PbcStageError):
    """
    Worker exceeded the configured watchdog and was terminated.
    """


# ------------------------------------------------------------------
# Serving
# ------------------------------------------------------------------
class ModelUnavailable(PbcStageError):
    """
    Prediction requested but no readable artifact is on disk.
    """
