"""Terraform manager for the Cosmos infrastructure definitions"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any

from cosmos_infomaniak.console import print_debug
from cosmos_infomaniak.errors import TerraformError
from cosmos_infomaniak.process import CommandRunner, run_command

PLAN_FILE = ".tfplan"
PLAN_JSON_FILE = "tfplan.json"
STATE_FILE = "terraform.tfstate"

# Local caches and artifacts removed by clean()
CLEAN_DIRS: tuple[str, ...] = (".terraform",)
CLEAN_FILES: tuple[str, ...] = (PLAN_FILE, ".terraform.lock.hcl", PLAN_JSON_FILE, "tfgraph.svg")

SUBCOMMAND_GROUPS: tuple[str, ...] = ("state", "workspace")


class TerraformManager:
    """Manage Terraform operations"""

    def __init__(
        self,
        work_dir: os.PathLike | str,
        var_file: str | None = "terraform.tfvars",
        environment: str = "dev",
        runner: CommandRunner | None = None,
    ) -> None:
        self.work_dir: Path = Path(os.path.normpath(work_dir))
        self.var_file: str | None = var_file or None
        self.environment: str = environment
        self._runner: CommandRunner = runner or run_command

    @property
    def plan_path(self) -> Path:
        return self.work_dir / PLAN_FILE

    def var_args(self) -> list[str]:
        """Variable arguments shared by plan, apply and destroy"""
        args: list[str] = []
        if self.var_file:
            args.append(f"-var-file={self.var_file}")
        args.append(f"-var=environment={self.environment}")
        return args

    def _run(self, *args: str, capture: bool = True, check: bool = True) -> subprocess.CompletedProcess[str]:
        cmd = ["terraform", *args]
        try:
            result = self._runner(cmd, capture_output=capture, cwd=self.work_dir)
        except FileNotFoundError as e:
            raise TerraformError(args[0], 127, f"terraform executable not found: {e}") from e

        if check and result.returncode != 0:
            command = " ".join(args[:2]) if args[0] in SUBCOMMAND_GROUPS else args[0]
            raise TerraformError(command, result.returncode, result.stderr or "")
        return result

    def init(self, upgrade: bool = False) -> str:
        """Initialize Terraform"""
        cmd = ["init"]
        if upgrade:
            cmd.append("-upgrade")
        return self._run(*cmd).stdout

    def validate(self) -> str:
        return self._run("validate").stdout

    def fmt(self, check: bool = False) -> str:
        """Format files recursively, or only report unformatted ones"""
        cmd = ["fmt", "-recursive"]
        if check:
            cmd.append("-check")
        return self._run(*cmd).stdout

    def plan(self) -> str:
        """Run terraform plan and save it as the plan artifact"""
        return self._run("plan", f"-out={PLAN_FILE}", *self.var_args()).stdout

    def plan_json(self) -> Path:
        """Export the saved plan as JSON next to the plan artifact"""
        result = self._run("show", "-json", PLAN_FILE)
        target = self.work_dir / PLAN_JSON_FILE
        target.write_text(result.stdout)
        return target

    def show(self) -> str:
        return self._run("show").stdout

    def output(self, json_format: bool = False) -> dict[str, Any] | str:
        """Get Terraform outputs"""
        cmd = ["output"]
        if json_format:
            cmd.append("-json")

        result = self._run(*cmd)
        if json_format:
            return json.loads(result.stdout or "{}")
        return result.stdout

    def apply(self, auto_approve: bool = False) -> bool:
        """Apply the saved plan, falling back to a fresh apply.

        Returns True when the saved plan was used. The fresh apply runs
        attached to the terminal so Terraform can ask for approval itself.
        Auto-approved applies skip the saved plan entirely.
        """
        if auto_approve:
            self._run("apply", "-auto-approve", *self.var_args(), capture=False)
            return False

        if self.plan_path.exists():
            result = self._run("apply", PLAN_FILE, capture=False, check=False)
            if result.returncode == 0:
                return True
            print_debug(f"Saved plan could not be applied (exit code {result.returncode})")
        else:
            print_debug(f"No saved plan at {self.plan_path}")

        self._run("apply", *self.var_args(), capture=False)
        return False

    def destroy(self, auto_approve: bool = False) -> None:
        """Run terraform destroy"""
        cmd = ["destroy"]
        if auto_approve:
            cmd.append("-auto-approve")
        self._run(*cmd, *self.var_args(), capture=False)

    def test(self) -> str:
        return self._run("test").stdout

    def state_list(self) -> list[str]:
        result = self._run("state", "list")
        return [line for line in result.stdout.splitlines() if line.strip()]

    def state_show(self, resource: str) -> str:
        return self._run("state", "show", resource).stdout

    def state_backup(self, now: datetime | None = None) -> Path:
        """Copy the local state file aside with a timestamp suffix"""
        state = self.work_dir / STATE_FILE
        if not state.is_file():
            raise TerraformError("state backup", 1, f"State file not found: {state}")

        stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        backup = self.work_dir / f"{STATE_FILE}.backup.{stamp}"
        shutil.copy2(state, backup)
        return backup

    def workspace_list(self) -> str:
        return self._run("workspace", "list").stdout

    def workspace_select(self, name: str) -> str:
        return self._run("workspace", "select", name).stdout

    def workspace_new(self, name: str) -> str:
        return self._run("workspace", "new", name).stdout

    def clean(self, include_state: bool = False) -> list[Path]:
        """Remove local working-directory caches and plan artifacts"""
        removed: list[Path] = []
        for name in CLEAN_DIRS:
            path = self.work_dir / name
            if path.is_dir():
                shutil.rmtree(path)
                removed.append(path)

        for name in CLEAN_FILES:
            path = self.work_dir / name
            if path.is_file():
                path.unlink()
                removed.append(path)

        if include_state:
            for path in sorted(self.work_dir.glob(f"{STATE_FILE}*")):
                if path.is_file():
                    path.unlink()
                    removed.append(path)

        return removed
