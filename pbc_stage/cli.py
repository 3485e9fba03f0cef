#!filepath: pbc_stage/cli.py
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.markup import escape

from pbc_stage import __version__, logs
from pbc_stage.config.app_config import AppConfig
from pbc_stage.utils.errors import UserInputError

app = typer.Typer(help="PBC stage classifier: training orchestration + prediction server")


def _load_config(
    config: Optional[str],
    *,
    data: Optional[str] = None,
    artifact: Optional[str] = None,
) -> AppConfig:
    cfg = AppConfig.load(config)

    if data:
        cfg = cfg.model_copy(update={"data": cfg.data.model_copy(update={"path": data})})
    if artifact:
        cfg = cfg.model_copy(
            update={"model": cfg.model.model_copy(update={"artifact_path": artifact})}
        )

    logs.configure(cfg.log)
    return cfg


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def train(
    config: Optional[str] = typer.Option(None, help="YAML config (default: pbc_stage/config/base.yml)"),
    data: Optional[str] = typer.Option(None, help="CSV dataset path"),
    artifact: Optional[str] = typer.Option(None, help="model artifact path"),
    estimators: Optional[int] = typer.Option(None, min=1, help="target estimator count (overrides N_ESTIMATORS)"),
    timeout: Optional[float] = typer.Option(None, min=0.001, help="worker watchdog in seconds"),
):
    """
    Controller by default; worker when WORKER=1 is set in the environment.
    """
    from pbc_stage.training.controller import TrainingController, run_standalone_worker

    try:
        cfg = _load_config(config, data=data, artifact=artifact)
        updates = {}
        if estimators is not None:
            updates["n_estimators"] = estimators
        if timeout is not None:
            updates["worker_timeout_sec"] = timeout
        if updates:
            cfg = cfg.model_copy(update={"runtime": cfg.runtime.model_copy(update=updates)})
    except (UserInputError, ValidationError, FileNotFoundError) as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)

    if cfg.runtime.worker:
        code = run_standalone_worker(cfg)
    else:
        code = TrainingController(cfg).run()

    raise typer.Exit(code=code)


@app.command()
def serve(
    config: Optional[str] = typer.Option(None, help="YAML config"),
    artifact: Optional[str] = typer.Option(None, help="model artifact path"),
    host: Optional[str] = typer.Option(None),
    port: Optional[int] = typer.Option(None),
):
    """
    Run the prediction server over the persisted artifact.
    """
    from pbc_stage.api.app import create_app

    try:
        cfg = _load_config(config, artifact=artifact)
    except (UserInputError, ValidationError, FileNotFoundError) as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)

    flask_app = create_app(cfg)
    print(f"[green]🚀 Server running at http://{host or cfg.server.host}:{port or cfg.server.port}[/green]")
    flask_app.run(host=host or cfg.server.host, port=port or cfg.server.port, debug=cfg.server.debug)


if __name__ == "__main__":
    app()

# python -m pbc_stage.cli train
# WORKER=1 N_ESTIMATORS=50 python -m pbc_stage.cli train
