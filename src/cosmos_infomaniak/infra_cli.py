#!/usr/bin/env python3
"""Cosmos Infomaniak infrastructure automation CLI"""

from __future__ import annotations

import functools
import json
import sys
from pathlib import Path
from typing import Any, Callable

import click
from rich.prompt import Confirm, Prompt

from cosmos_infomaniak.console import (
    CONSOLE,
    print_error,
    print_header,
    print_info,
    print_raw,
    print_success,
    print_warning,
    set_debug,
)
from cosmos_infomaniak.errors import CosmosError
from cosmos_infomaniak.terraform_manager import PLAN_FILE, TerraformManager
from cosmos_infomaniak.user_data import (
    DEFAULT_BRANCH,
    DEFAULT_REPO_URL,
    DEFAULT_SERVICE_NAME,
    render_user_data,
    write_user_data,
)


def _manager(ctx: click.Context) -> TerraformManager:
    return ctx.find_object(TerraformManager)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Report handled failures and exit with their status"""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except CosmosError as e:
            print_error(str(e))
            sys.exit(e.exit_code)

    return wrapper


def _echo(text: str) -> None:
    if text.strip():
        print_raw(text.rstrip())


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--terraform-dir",
    envvar="TERRAFORM_DIR",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the Terraform definitions",
)
@click.option(
    "--var-file",
    envvar="TF_VARS",
    default="terraform.tfvars",
    show_default=True,
    help="Variables file passed to plan, apply and destroy (empty to disable)",
)
@click.option(
    "--environment",
    "-e",
    envvar="ENVIRONMENT",
    default="dev",
    show_default=True,
    help="Deployment environment",
)
@click.option("--debug", is_flag=True, envvar="DEBUG", help="Show debug output")
@click.pass_context
def main(ctx: click.Context, terraform_dir: Path, var_file: str, environment: str, debug: bool):
    """Cosmos Infomaniak - Infrastructure Automation"""
    set_debug(debug)
    ctx.obj = TerraformManager(terraform_dir, var_file=var_file, environment=environment)


@main.command()
@click.option("--upgrade", is_flag=True, help="Upgrade providers while initializing")
@click.pass_context
@handle_errors
def init(ctx: click.Context, upgrade: bool):
    """Initialize Terraform working directory"""
    print_info("Upgrading Terraform providers..." if upgrade else "Initializing Terraform...")
    _echo(_manager(ctx).init(upgrade=upgrade))
    print_success("Providers upgraded" if upgrade else "Terraform initialized")


@main.command()
@click.pass_context
@handle_errors
def upgrade(ctx: click.Context):
    """Upgrade Terraform providers"""
    ctx.invoke(init, upgrade=True)


@main.command()
@click.pass_context
@handle_errors
def reinit(ctx: click.Context):
    """Reinitialize Terraform (clean + init)"""
    ctx.invoke(clean)
    ctx.invoke(init)
    print_success("Terraform reinitialized")


@main.command()
@click.pass_context
@handle_errors
def validate(ctx: click.Context):
    """Validate Terraform configuration"""
    print_info("Validating Terraform configuration...")
    _echo(_manager(ctx).validate())
    print_success("Terraform configuration is valid")


@main.command()
@click.option("--check", is_flag=True, help="Only check formatting, change nothing")
@click.pass_context
@handle_errors
def fmt(ctx: click.Context, check: bool):
    """Format Terraform files"""
    print_info("Checking Terraform file formatting..." if check else "Formatting Terraform files...")
    _echo(_manager(ctx).fmt(check=check))
    print_success("Terraform formatting check passed" if check else "Terraform files formatted")


@main.command("fmt-check")
@click.pass_context
@handle_errors
def fmt_check(ctx: click.Context):
    """Check Terraform file formatting without making changes"""
    ctx.invoke(fmt, check=True)


@main.command()
@click.pass_context
@handle_errors
def lint(ctx: click.Context):
    """Run linting checks (validate + fmt-check)"""
    ctx.invoke(validate)
    ctx.invoke(fmt, check=True)
    print_success("All linting checks passed")


@main.command()
@click.pass_context
@handle_errors
def plan(ctx: click.Context):
    """Plan infrastructure changes"""
    manager = _manager(ctx)
    print_info(f"Planning Terraform changes for environment: {manager.environment}...")
    _echo(manager.plan())
    print_success(f"Plan saved to {manager.plan_path}")


@main.command("plan-json")
@click.pass_context
@handle_errors
def plan_json(ctx: click.Context):
    """Generate plan in JSON format"""
    print_info("Generating Terraform plan in JSON format...")
    target = _manager(ctx).plan_json()
    print_success(f"Plan exported to {target}")


@main.command()
@click.pass_context
@handle_errors
def show(ctx: click.Context):
    """Show current Terraform state"""
    print_info("Showing Terraform state...")
    _echo(_manager(ctx).show())


@main.command()
@click.option("--json", "json_format", is_flag=True, help="Print outputs as JSON")
@click.pass_context
@handle_errors
def output(ctx: click.Context, json_format: bool):
    """Show Terraform outputs"""
    print_info("Showing Terraform outputs...")
    result = _manager(ctx).output(json_format=json_format)
    if json_format:
        CONSOLE.print_json(json.dumps(result))
    else:
        _echo(str(result))


@main.command()
@click.option("--auto-approve", is_flag=True, help="Apply without confirmation (use with caution!)")
@click.pass_context
@handle_errors
def apply(ctx: click.Context, auto_approve: bool):
    """Apply infrastructure changes"""
    manager = _manager(ctx)
    if auto_approve:
        print_warning("APPLYING CHANGES WITHOUT CONFIRMATION!")
    else:
        print_warning("You are about to apply changes to your infrastructure!")
    print_info(f"Environment: {manager.environment}")

    if not auto_approve and not Confirm.ask("Are you sure?", default=False):
        print_warning("Apply cancelled")
        return False

    print_info("Applying Terraform changes...")
    if manager.apply(auto_approve=auto_approve):
        print_info(f"Applied saved plan {PLAN_FILE}")
    print_success("Infrastructure changes applied")
    return True


@main.command()
@click.option("--auto-approve", is_flag=True, help="Destroy without confirmation (use with extreme caution!)")
@click.pass_context
@handle_errors
def destroy(ctx: click.Context, auto_approve: bool):
    """Destroy infrastructure (requires typed confirmation)"""
    manager = _manager(ctx)
    if auto_approve:
        print_warning("DANGER: DESTROYING INFRASTRUCTURE WITHOUT CONFIRMATION!")
    else:
        print_warning("DANGER: You are about to DESTROY your infrastructure!")
    print_info(f"Environment: {manager.environment}")

    if not auto_approve and Prompt.ask("Type 'destroy' to confirm") != "destroy":
        print_warning("Destroy cancelled")
        return

    print_info("Destroying infrastructure...")
    manager.destroy(auto_approve=auto_approve)
    print_success("Infrastructure destroyed")


@main.command("ci-plan")
@click.pass_context
@handle_errors
def ci_plan(ctx: click.Context):
    """Run all checks for CI/CD pipeline (init + validate + lint + plan-json)"""
    ctx.invoke(init)
    ctx.invoke(validate)
    ctx.invoke(lint)
    ctx.invoke(plan_json)
    print_success("CI/CD checks passed")


@main.command("ci-apply")
@click.option("--auto-approve", is_flag=True, help="Apply without confirmation")
@click.pass_context
@handle_errors
def ci_apply(ctx: click.Context, auto_approve: bool):
    """Run init, validate, and apply for CI/CD"""
    ctx.invoke(init)
    ctx.invoke(validate)
    if ctx.invoke(apply, auto_approve=auto_approve):
        print_success("CI/CD apply completed")


@main.command("state-list")
@click.pass_context
@handle_errors
def state_list(ctx: click.Context):
    """List resources in Terraform state"""
    print_info("Listing Terraform state...")
    for resource in _manager(ctx).state_list():
        print_raw(resource)


@main.command("state-show")
@click.argument("resource")
@click.pass_context
@handle_errors
def state_show(ctx: click.Context, resource: str):
    """Show details of a specific resource (e.g. openstack_compute_instance_v2.cosmos)"""
    print_info(f"Showing resource: {resource}")
    _echo(_manager(ctx).state_show(resource))


@main.command("state-backup")
@click.pass_context
@handle_errors
def state_backup(ctx: click.Context):
    """Create a backup of the current state"""
    print_info("Creating state backup...")
    backup = _manager(ctx).state_backup()
    print_success(f"State backup created: {backup}")


@main.command("test")
@click.pass_context
@handle_errors
def test_command(ctx: click.Context):
    """Run Terraform tests"""
    print_info("Running Terraform tests...")
    _echo(_manager(ctx).test())


@main.command()
@click.pass_context
@handle_errors
def status(ctx: click.Context):
    """Display infrastructure status (state + outputs)"""
    print_header("INFRASTRUCTURE STATUS")
    ctx.invoke(state_list)
    ctx.invoke(output)
    print_success("Infrastructure status displayed")


@main.group()
def workspace():
    """Terraform workspace management"""


@workspace.command("list")
@click.pass_context
@handle_errors
def workspace_list(ctx: click.Context):
    """List Terraform workspaces"""
    print_info("Available workspaces:")
    _echo(_manager(ctx).workspace_list())


@workspace.command("select")
@click.argument("name")
@click.pass_context
@handle_errors
def workspace_select(ctx: click.Context, name: str):
    """Select a workspace"""
    print_info(f"Selecting workspace: {name}")
    _echo(_manager(ctx).workspace_select(name))


@workspace.command("new")
@click.argument("name")
@click.pass_context
@handle_errors
def workspace_new(ctx: click.Context, name: str):
    """Create a new workspace"""
    print_info(f"Creating workspace: {name}")
    _echo(_manager(ctx).workspace_new(name))


@main.command()
@click.option("--all", "include_state", is_flag=True, help="Also remove local state files and backups")
@click.pass_context
@handle_errors
def clean(ctx: click.Context, include_state: bool = False):
    """Remove Terraform files and caches"""
    print_info("Cleaning Terraform files...")
    if include_state:
        print_warning("Removing all backups and local state files...")
    for path in _manager(ctx).clean(include_state=include_state):
        print_info(f"Removed {path}")
    print_success("Complete cleanup done" if include_state else "Cleanup complete")


@main.command("user-data")
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Target file (default: <terraform-dir>/user_data.sh)",
)
@click.option(
    "--repo-url",
    default=DEFAULT_REPO_URL,
    show_default=True,
    help="Application repository cloned on the instance",
)
@click.option("--branch", default=DEFAULT_BRANCH, show_default=True, help="Branch to deploy")
@click.option(
    "--service-name",
    default=DEFAULT_SERVICE_NAME,
    show_default=True,
    help="systemd unit and directory name",
)
@click.pass_context
@handle_errors
def user_data(
    ctx: click.Context,
    output_path: Path | None,
    repo_url: str,
    branch: str,
    service_name: str,
):
    """Generate the cloud-init bootstrap script for the instance"""
    target = output_path or _manager(ctx).work_dir / "user_data.sh"
    print_info("Rendering cloud-init user data...")
    content = render_user_data(repo_url=repo_url, branch=branch, service_name=service_name)
    backup = write_user_data(target, content)
    if backup is not None:
        print_info(f"Backed up existing user data to {backup}")
    print_success(f"Created user data: {target}")


if __name__ == "__main__":
    main()
