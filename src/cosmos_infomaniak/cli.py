#!/usr/bin/env python3
"""Upload Image CLI"""

from __future__ import annotations

import os
import sys

import click
from rich.markup import escape
from rich.panel import Panel

from cosmos_infomaniak.config import Settings
from cosmos_infomaniak.console import (
    CONSOLE,
    display_results,
    print_error,
    print_info,
    print_raw,
    print_success,
    set_debug,
)
from cosmos_infomaniak.errors import CosmosError, UsageError, VerificationError
from cosmos_infomaniak.models import (
    DEFAULT_MIN_DISK_GB,
    DEFAULT_MIN_RAM_MB,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_VISIBILITY,
    VISIBILITIES,
    DiskFormat,
    build_upload_request,
)
from cosmos_infomaniak.workflow import SEPARATOR, ImageUploadWorkflow

EPILOG = """\b
ENVIRONMENT VARIABLES:
  OS_USERNAME               OpenStack username
  OS_PASSWORD               OpenStack password
  OS_PROJECT_NAME           OpenStack project name
  OS_AUTH_URL               OpenStack auth URL
  OS_REGION_NAME            OpenStack region name
  OS_INTERFACE              OpenStack interface (public/internal/admin)

\b
EXAMPLES:
  # Upload with default settings
  upload-image image.qcow2

\b
  # Upload with custom name and description
  upload-image image.qcow2 -n "My Custom Image" -d "Ubuntu 22.04 LTS"

\b
  # Upload as public image with disk format
  upload-image image.iso -f iso -v public
"""


class UploadCommand(click.Command):
    """Command whose usage errors exit with the generic failure status"""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            raise UsageError(e.format_message(), e.ctx or ctx) from e


def _show_help(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(ctx.get_help())
    ctx.exit(UsageError.exit_code)


@click.command(
    cls=UploadCommand,
    epilog=EPILOG,
    context_settings={"help_option_names": [], "max_content_width": 100},
)
@click.argument("image_path", type=click.Path(path_type=str))
@click.option("--name", "-n", default=None, metavar="NAME", help="Image name (default: filename)")
@click.option("--description", "-d", default=None, metavar="DESC", help="Image description")
@click.option(
    "--format",
    "-f",
    "--disk-format",
    "-t",
    "disk_format",
    type=click.Choice([fmt.value for fmt in DiskFormat], case_sensitive=False),
    default=None,
    metavar="FORMAT",
    help="Image format (qcow2, raw, iso, vmdk, vdi); detected from the extension when omitted",
)
@click.option(
    "--visibility",
    "-v",
    type=click.Choice(VISIBILITIES),
    default=DEFAULT_VISIBILITY,
    envvar="IMAGE_VISIBILITY",
    show_default=True,
    help="Image visibility",
)
@click.option(
    "--min-disk",
    type=click.IntRange(min=0),
    default=DEFAULT_MIN_DISK_GB,
    envvar="IMAGE_MIN_DISK",
    show_default=True,
    metavar="SIZE",
    help="Minimum disk size in GB",
)
@click.option(
    "--min-ram",
    type=click.IntRange(min=0),
    default=DEFAULT_MIN_RAM_MB,
    envvar="IMAGE_MIN_RAM",
    show_default=True,
    metavar="SIZE",
    help="Minimum RAM in MB",
)
@click.option("--protected", is_flag=True, help="Mark image as protected")
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=DEFAULT_TIMEOUT_SECONDS,
    envvar="TIMEOUT",
    show_default=True,
    metavar="SECONDS",
    help="Upload timeout in seconds",
)
@click.option("--debug", is_flag=True, help="Show debug output")
@click.option(
    "--help",
    "-h",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_show_help,
    help="Display this help message",
)
def main(
    image_path: str,
    name: str | None,
    description: str | None,
    disk_format: str | None,
    visibility: str,
    min_disk: int,
    min_ram: int,
    protected: bool,
    timeout: int,
    debug: bool,
):
    """Upload a custom image to Infomaniak OpenStack.

    IMAGE_PATH is the path to the image file to upload.
    """
    settings = Settings.from_environ(os.environ, debug=debug)
    set_debug(settings.debug)

    CONSOLE.print(
        Panel.fit(
            "[bold blue]Cosmos Infomaniak[/bold blue]\n"
            "Upload a custom image to Infomaniak OpenStack",
            border_style="blue",
        )
    )

    request = build_upload_request(
        image_path,
        name=name,
        disk_format=disk_format,
        visibility=visibility,
        min_disk=min_disk,
        min_ram=min_ram,
        protected=protected,
        description=description,
        timeout=timeout,
    )
    if request.format_inferred:
        print_info(f"Detected disk format: {request.disk_format.value}")

    workflow = ImageUploadWorkflow(request, settings)
    try:
        result = workflow.run()

    except CosmosError as e:
        print_error(str(e))
        if isinstance(e, VerificationError) and e.details:
            print_raw(e.details)
        display_results(workflow.results, title="Upload Results")
        sys.exit(e.exit_code)

    except Exception as e:
        CONSOLE.print(f"\n[bold red]❌ Error: {e.__class__.__name__}: {escape(str(e))}[/bold red]")
        raise click.Abort()

    display_results(workflow.results, title="Upload Results")
    print_info(SEPARATOR)
    print_success(f"Upload process completed successfully! ({result.name}: {result.status.value})")
    print_info(SEPARATOR)


if __name__ == "__main__":
    main()
