"""Check command: evaluate policies against configuration snapshots."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape

from policy_audit.cli._app import app
from policy_audit.cli._common import load_agent, resolve_config, setup_logging
from policy_audit.cli._console import console, output_json, output_table, print_err, print_ok, print_warn
from policy_audit.inputs import load_input
from policy_audit.policy import CompileError, PolicyAgentError, PolicyEvaluationResult

EXIT_VIOLATIONS = 2


def _policy_rows(result: PolicyEvaluationResult, group: str) -> list[dict]:
    rows = []
    for policy in result.violated_policies(group):
        rows.append({
            "status": "[red]VIOLATED[/red]",
            "policy": escape(policy.name),
            "title": escape(policy.title),
            "violations": escape("\n".join(policy.violations)),
        })
    for policy in result.valid_policies(group):
        rows.append({
            "status": "[green]VALID[/green]",
            "policy": escape(policy.name),
            "title": escape(policy.title),
            "violations": "",
        })
    return rows


def render_result(result: PolicyEvaluationResult, *, source: str, group: Optional[str] = None) -> None:
    """Print per-group tables, the errored list and a summary line."""
    console.rule(f"POLICY EVALUATION: {escape(source)}")
    for g in result.groups():
        if group is not None and g != group:
            continue
        output_table(_policy_rows(result, g), title=escape(g) if g else "(no group)",
                     columns=["status", "policy", "title", "violations"])

    if result.errored:
        print_warn(f"{result.errored_count} policies could not be evaluated:")
        for policy in result.errored:
            label = policy.name or "<unidentified result>"
            for error in policy.processing_errors:
                console.print(f"    - {escape(label)}: {escape(str(error))}")

    console.print(
        f"  [green]Valid:[/green] {result.valid_count}"
        f"  [red]Violated:[/red] {result.violated_count}"
        f"  [yellow]Errored:[/yellow] {result.errored_count}"
    )


@app.command("check", help="Evaluate policies against configuration snapshots.")
def check_cmd(
    ctx: typer.Context,
    inputs: Optional[List[Path]] = typer.Option(
        None, "--input", "-i", help="Configuration snapshot (.json/.yaml); repeatable"
    ),
    policies: Optional[List[Path]] = typer.Option(
        None, "--policies", "-p", help="Policy directory; repeatable"
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Only show this group"),
    fail_on_violation: bool = typer.Option(
        False, "--fail-on-violation", help="Exit with code 2 if any policy is violated or errored"
    ),
):
    """Run every loaded policy against each input document."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    try:
        config = resolve_config(config_file, policies)
        input_files = list(inputs) if inputs else list(config.input_files)
        if not input_files:
            print_err("No input given: use --input or set input_files in the config")
            raise SystemExit(1)
        agent = load_agent(config)
        results = []
        for input_file in input_files:
            results.append((input_file, agent.evaluate(load_input(input_file))))
    except (CompileError, PolicyAgentError, ValueError, FileNotFoundError) as e:
        print_err(str(e))
        raise SystemExit(1)

    quiet = ctx.obj["quiet"] or config.silent
    json_data = {str(path): result.to_dict() for path, result in results}
    if not output_json(json_data, ctx=ctx) and not quiet:
        for path, result in results:
            render_result(result, source=str(path), group=group)
        print_ok(f"Checked {len(results)} input(s) against {len(agent.compiled)} policies")

    failed = any(r.violated_count or r.errored_count for _, r in results)
    if fail_on_violation and failed:
        raise SystemExit(EXIT_VIOLATIONS)
