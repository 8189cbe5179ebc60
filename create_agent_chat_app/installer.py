"""Dependency installation for a generated project.

Runs ``<package-manager> install`` inside the project root with the parent's
standard streams.  Failures never propagate: the caller only learns whether
the install succeeded and tells the user to install by hand otherwise.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from .scaffolder.models import PackageManager
from .utils import console, print_error, print_success, run_command


def install_command(package_manager: PackageManager) -> list[str]:
    return [package_manager.value, "install"]


async def install_dependencies(
    package_manager: PackageManager,
    project_root: str | Path,
    timeout: int = 1800,
) -> bool:
    """Install the project's dependencies; return ``True`` on success."""
    cmd = install_command(package_manager)
    console.print("\n[yellow]Installing dependencies...[/yellow]")
    try:
        returncode, _, stderr = await run_command(
            cmd, cwd=project_root, timeout=timeout, capture=False
        )
    except OSError as exc:
        print_error(f"\nFailed to install dependencies: {escape(str(exc))}")
        return False

    if returncode != 0:
        detail = stderr or f"'{' '.join(cmd)}' exited with status {returncode}"
        print_error(f"\nFailed to install dependencies: {escape(detail)}")
        return False

    print_success("\nDependencies installed successfully!")
    return True
