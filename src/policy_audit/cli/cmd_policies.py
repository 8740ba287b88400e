"""List and validate commands: inspect the policy catalog without evaluating it."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape

from policy_audit.cli._app import app
from policy_audit.cli._common import load_agent, resolve_config, setup_logging
from policy_audit.cli._console import console, output_json, output_table, print_err, print_ok, print_warn
from policy_audit.policy import CompileError, compile_modules, read_policy_dirs


@app.command("list", help="List compiled policies and metadata problems.")
def list_cmd(
    ctx: typer.Context,
    policies: Optional[List[Path]] = typer.Option(
        None, "--policies", "-p", help="Policy directory; repeatable"
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
):
    """Show every evaluable policy with its group and title."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    try:
        agent = load_agent(resolve_config(config_file, policies))
    except (CompileError, ValueError, FileNotFoundError) as e:
        print_err(str(e))
        raise SystemExit(1)

    rows = [
        {"policy": p.name, "group": p.group, "title": p.title, "file": p.file}
        for p in sorted(agent.compiled.values(), key=lambda p: (p.group, p.name))
    ]
    errors = [str(e) for e in agent.metadata_errors]

    if output_json({"policies": rows, "metadata_errors": errors}, ctx=ctx):
        return

    table_rows = [{key: escape(value) for key, value in row.items()} for row in rows]
    output_table(table_rows, title="Policies", columns=["policy", "group", "title", "file"])
    for error in errors:
        print_warn(error)


@app.command("validate", help="Compile policy files and report syntax errors.")
def validate_cmd(
    ctx: typer.Context,
    policies: Optional[List[Path]] = typer.Option(
        None, "--policies", "-p", help="Policy directory; repeatable"
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
):
    """Compile only; exit 1 when any rule file is invalid."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    try:
        config = resolve_config(config_file, policies)
        module_set = compile_modules(read_policy_dirs(config.policy_dirs))
    except CompileError as e:
        if not output_json({"valid": False, "errors": e.problems}, ctx=ctx):
            print_err(f"Compilation failed ({len(e.problems)} problems)")
            for problem in e.problems:
                console.print(f"    - {escape(problem)}")
        raise SystemExit(1)
    except (ValueError, FileNotFoundError) as e:
        print_err(str(e))
        raise SystemExit(1)

    if not output_json({"valid": True, "modules": len(module_set)}, ctx=ctx):
        print_ok(f"Compiled {len(module_set)} rule modules")
