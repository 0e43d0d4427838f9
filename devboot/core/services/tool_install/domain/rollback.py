"""
L1 Domain — Rollback plan generation (pure).

Derives the uninstall order from the packages an attempt installed.
No I/O, no subprocess.
"""

from __future__ import annotations


def generate_rollback(installed: list[str]) -> list[str]:
    """Return the packages to uninstall, in reverse install order.

    Duplicates are dropped, keeping the latest install position.

    Args:
        installed: Packages newly installed by this attempt, in order.

    Returns:
        Packages to uninstall, last-installed first.
    """
    rollback: list[str] = []
    for package in reversed(installed):
        if package and package not in rollback:
            rollback.append(package)
    return rollback
