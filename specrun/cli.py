#!filepath: specrun/cli.py
import runpy
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from rich import print
from rich.table import Table

from specrun import __version__, dsl
from specrun.config.app_config import AppConfig
from specrun.core.runner import Runner
from specrun.core.world import World
from specrun.utils.logger import Logging

app = typer.Typer(help="specrun CLI")


def _parse_tag(raw: str) -> Tuple[str, Any]:
    """
    key=value → (key, "value")；key → (key, True)
    """
    key, sep, value = raw.partition("=")
    if not sep:
        return key, True
    return key, value


def _parse_target(raw: str) -> Tuple[Path, Optional[int]]:
    """path/to/foo_spec.py:12 → (path, 12)"""
    path, sep, line = raw.rpartition(":")
    if sep and line.isdigit():
        return Path(path), int(line)
    return Path(raw), None


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def status(config: Optional[str] = typer.Option(None, "--config", help="YAML config path")):
    """
    显示上一次运行的 example 状态与失败文件
    """
    cfg = AppConfig.load(config)
    world = World(cfg)

    statuses = world.last_run_statuses()
    if not statuses:
        print("[yellow]No persisted example statuses.[/yellow]")
        return

    table = Table("example_id", "status")
    for example_id, st in statuses.items():
        table.add_row(example_id, st)
    print(table)

    failures = world.spec_files_with_failures()
    if failures:
        print("[red]Files with failures:[/red]")
        for path in failures:
            print(f"  {path}")


@app.command()
def run(
    targets: List[str] = typer.Argument(..., help="spec files, optionally with :LINE"),
    config: Optional[str] = typer.Option(None, "--config", help="YAML config path"),
    tag: List[str] = typer.Option([], "--tag", "-t", help="include key[=value]"),
    exclude: List[str] = typer.Option([], "--exclude", "-e", help="exclude key[=value]"),
    fail_fast: bool = typer.Option(False, "--fail-fast"),
    only_failures: bool = typer.Option(False, "--only-failures"),
):
    """
    加载 spec 文件并执行
    """
    cfg = AppConfig.load(config)
    Logging.from_config(cfg.log)

    lines: Dict[str, List[int]] = dict(cfg.run.line_numbers)
    files: List[Path] = []
    for raw in targets:
        path, line = _parse_target(raw)
        files.append(path)
        if line is not None:
            lines.setdefault(str(path), []).append(line)

    inclusion = dict(cfg.run.inclusion_filters)
    inclusion.update(_parse_tag(t) for t in tag)
    exclusion = dict(cfg.run.exclusion_filters)
    exclusion.update(_parse_tag(t) for t in exclude)

    cfg = cfg.model_copy(
        update={
            "run": cfg.run.model_copy(
                update={
                    "fail_fast": fail_fast or cfg.run.fail_fast,
                    "only_failures": only_failures or cfg.run.only_failures,
                    "inclusion_filters": inclusion,
                    "exclusion_filters": exclusion,
                    "line_numbers": lines,
                }
            )
        }
    )
    dsl.configure(cfg)

    for path in files:
        runpy.run_path(str(path), run_name="__specrun__")

    summary = Runner(dsl.world()).run()
    raise typer.Exit(code=0 if summary.success else 1)


if __name__ == "__main__":
    app()

# python -m specrun.cli run spec/stack_spec.py
