"""Boot-time provisioning script for workspace servers."""

CLOUD_INIT_SCRIPT = """#!/bin/bash
set -e

# devpod user with passwordless sudo
useradd -m -s /bin/bash devpod || true
usermod -aG docker devpod 2>/dev/null || true
usermod -aG sudo devpod
echo "devpod ALL=(ALL) NOPASSWD:ALL" > /etc/sudoers.d/devpod

mkdir -p /home/devpod/.ssh
chmod 700 /home/devpod/.ssh
chown -R devpod:devpod /home/devpod

if ! command -v docker &> /dev/null; then
    curl -fsSL https://get.docker.com | sh
    systemctl enable docker
    systemctl start docker
fi

mkdir -p /opt/devpod
chown -R devpod:devpod /opt/devpod
"""
"""Shell script passed as ``user_data`` when creating a workspace server.

Creates the ``devpod`` user, installs Docker when the template lacks it and
prepares ``/opt/devpod`` for the DevPod agent.
"""
