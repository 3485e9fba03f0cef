# pbc_stage/api/app.py
from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from flask import Blueprint, Flask, current_app, jsonify, request

from pbc_stage import logs
from pbc_stage.api.decorators import handle_model_unavailable
from pbc_stage.config.app_config import AppConfig
from pbc_stage.dataloader.encoding import encode_value, request_key
from pbc_stage.training.engines.forest_engine import ForestModel
from pbc_stage.utils.errors import ModelUnavailable
from pbc_stage.utils.path import PathManager

STAGE_MEANING = {
    1: "Early Stage",
    2: "Intermediate Stage",
}


def stage_meaning(stage: int) -> str:
    return STAGE_MEANING.get(stage, "Advanced Stage")


class ModelStore:
    """
    Read-only view of the artifact on disk.

    - loaded lazily on first use
    - reloaded when the file's mtime changes (the worker overwrites it)
    """

    def __init__(self, artifact_path: Path):
        self.artifact_path = Path(artifact_path)
        self._model: ForestModel | None = None
        self._mtime: float | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def get(self) -> ForestModel:
        with self._lock:
            try:
                mtime = self.artifact_path.stat().st_mtime
            except FileNotFoundError:
                raise ModelUnavailable(f"artifact not found: {self.artifact_path}") from None

            if self._model is None or mtime != self._mtime:
                try:
                    self._model = ForestModel.deserialize(self.artifact_path.read_bytes())
                except Exception as e:
                    self._model = None
                    raise ModelUnavailable(
                        f"cannot load artifact {self.artifact_path}: {e}"
                    ) from e
                self._mtime = mtime
                logs.info(
                    f"[API] loaded artifact {self.artifact_path} "
                    f"features={self._model.feature_order}"
                )
            return self._model


def build_row(feature_order: List[str], payload: Dict[str, Any]) -> Tuple[List[float], List[str]]:
    """
    Request JSON -> one feature row in artifact column order.
    Returns (row, invalid_keys); row is only meaningful when invalid_keys is empty.
    """
    row: List[float] = []
    invalid: List[str] = []

    for column in feature_order:
        key = request_key(column)
        value = encode_value(column, payload.get(key))
        if value is None:
            invalid.append(key)
        else:
            row.append(value)

    return row, invalid


bp = Blueprint("predict", __name__)


def _store() -> ModelStore:
    return current_app.extensions["pbc_model_store"]


@bp.post("/predict")
@handle_model_unavailable
def predict():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "expected a JSON object"}), 400

    model = _store().get()

    row, invalid = build_row(model.feature_order, payload)
    if invalid:
        return jsonify({
            "error": "missing or invalid fields",
            "fields": invalid,
        }), 400

    stage = int(model.predict([row])[0])

    return jsonify({
        "predicted_stage": stage,
        "meaning": stage_meaning(stage),
    })


@bp.get("/health")
def health():
    return jsonify({"ok": True, "model_loaded": _store().loaded})


def create_app(cfg=None, *, artifact_path: Optional[Path | str] = None) -> Flask:
    """
    artifact_path wins over cfg.model.artifact_path; relative paths are
    resolved against the project root.
    """
    if artifact_path is None:
        if cfg is None:
            cfg = AppConfig.load()
        artifact_path = cfg.model.artifact_path

    app = Flask(__name__)
    app.extensions["pbc_model_store"] = ModelStore(PathManager.resolve(artifact_path))
    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    _cfg = AppConfig.load()
    create_app(_cfg).run(host=_cfg.server.host, port=_cfg.server.port)
