"""Cloud-init user-data generation for Cosmos Cloud instances"""

from __future__ import annotations

import os
import re
import shlex
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment

from cosmos_infomaniak.errors import ValidationError

DEFAULT_REPO_URL = "https://github.com/groblochon/cosmos-cloud.git"
DEFAULT_BRANCH = "main"
DEFAULT_SERVICE_NAME = "cosmos-cloud"
DEFAULT_USER = "ubuntu"
DEFAULT_PACKAGES: tuple[str, ...] = (
    "curl",
    "wget",
    "git",
    "unzip",
    "jq",
    "awscli",
    "docker.io",
    "docker-compose",
    "python3",
    "python3-pip",
    "nodejs",
    "npm",
)

# Values that also end up in unit names, paths and double-quoted echo lines
SERVICE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.@-]*$")
USER_PATTERN = re.compile(r"^[a-z_][a-z0-9_-]*$")
DIRECTORY_PATTERN = re.compile(r"^/[A-Za-z0-9_./@-]*$")

USER_DATA_TEMPLATE = """#!/bin/bash
set -euo pipefail

# Cosmos Cloud Instance User Data Script
# This script initializes the instance and installs {{ title }}
# Generated: {{ timestamp }}

# Update system packages
apt-get update
apt-get upgrade -y

# Install required dependencies
apt-get install -y \\
{%- for package in packages %}
    {{ package | shquote }}{% if not loop.last %} \\{% endif %}
{%- endfor %}

# Enable and start Docker service
systemctl enable docker
systemctl start docker

# Add {{ user }} user to docker group
usermod -aG docker {{ user }}

# Install Docker Compose if not included
if ! command -v docker-compose &> /dev/null; then
    curl -L "https://github.com/docker/compose/releases/latest/download/docker-compose-$(uname -s)-$(uname -m)" -o /usr/local/bin/docker-compose
    chmod +x /usr/local/bin/docker-compose
fi

# Create application directories
mkdir -p {{ app_dir }}
mkdir -p {{ log_dir }}
mkdir -p {{ config_dir }}

# Set proper permissions
chown -R {{ user }}:{{ user }} {{ app_dir }}
chown -R {{ user }}:{{ user }} {{ log_dir }}
chown -R {{ user }}:{{ user }} {{ config_dir }}

# Clone or pull the application repository
cd {{ app_dir }}
if [ -d .git ]; then
    git pull origin {{ branch | shquote }}
else
    git clone --branch {{ branch | shquote }} {{ repo_url | shquote }} .
fi

# Install Python dependencies if requirements.txt exists
if [ -f requirements.txt ]; then
    pip3 install -r requirements.txt
fi

# Install Node.js dependencies if package.json exists
if [ -f package.json ]; then
    npm install
fi

# Create systemd service file for {{ title }}
cat > /etc/systemd/system/{{ service_name }}.service <<'EOF'
[Unit]
Description={{ title }} Service
After=docker.service network-online.target
Wants=network-online.target

[Service]
Type=simple
User={{ user }}
WorkingDirectory={{ app_dir }}
ExecStart=/usr/bin/docker-compose up
Restart=on-failure
RestartSec=10s
StandardOutput=journal
StandardError=journal

[Install]
WantedBy=multi-user.target
EOF

# Reload systemd daemon
systemctl daemon-reload

# Enable and start the service
systemctl enable {{ service_name }}.service
systemctl start {{ service_name }}.service

# Log installation completion
echo "{{ title }} instance initialization completed at $(date -u +'%Y-%m-%d %H:%M:%S UTC')" >> {{ log_dir }}/setup.log

# Output status
echo "================================"
echo "{{ title }} Setup Complete"
echo "================================"
echo "Timestamp: $(date -u +'%Y-%m-%d %H:%M:%S UTC')"
echo "Service Status: $(systemctl is-active {{ service_name }}.service)"
echo "Log Location: {{ log_dir }}/setup.log"
"""


_ENVIRONMENT = Environment(keep_trailing_newline=True)
_ENVIRONMENT.filters["shquote"] = shlex.quote


def _check(label: str, value: str, pattern: re.Pattern[str]) -> None:
    if not pattern.match(value):
        raise ValidationError(f"Invalid {label} for user data: {value!r}")


def render_user_data(
    repo_url: str = DEFAULT_REPO_URL,
    branch: str = DEFAULT_BRANCH,
    service_name: str = DEFAULT_SERVICE_NAME,
    packages: Sequence[str] = DEFAULT_PACKAGES,
    app_dir: str | None = None,
    log_dir: str | None = None,
    config_dir: str | None = None,
    user: str = DEFAULT_USER,
    generated_at: datetime | None = None,
) -> str:
    """Render the bootstrap script consumed by the instance definition"""
    app_dir = app_dir or f"/opt/{service_name}"
    log_dir = log_dir or f"/var/log/{service_name}"
    config_dir = config_dir or f"/etc/{service_name}"
    _check("service name", service_name, SERVICE_NAME_PATTERN)
    _check("user", user, USER_PATTERN)
    for directory in (app_dir, log_dir, config_dir):
        _check("directory", directory, DIRECTORY_PATTERN)

    template = _ENVIRONMENT.from_string(USER_DATA_TEMPLATE)
    return template.render(
        title=service_name.replace("-", " ").title(),
        timestamp=(generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S UTC"),
        packages=list(packages),
        repo_url=repo_url,
        branch=branch,
        service_name=service_name,
        app_dir=app_dir,
        log_dir=log_dir,
        config_dir=config_dir,
        user=user,
    )


def write_user_data(target: os.PathLike | str, content: str, now: datetime | None = None) -> Path | None:
    """Write the script, moving any previous version aside first.

    Returns the backup path, if one was made.
    """
    path = Path(target)
    backup: Path | None = None
    if path.exists():
        stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        backup = path.with_name(f"{path.name}.bak.{stamp}")
        path.replace(backup)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.chmod(path, 0o755)
    return backup
