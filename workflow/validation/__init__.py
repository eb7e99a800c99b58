# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Checks run by the Snakefile before any yield rule is scheduled.

Each check receives the loaded config and the repository root and raises
``KeyError``, ``ValueError`` or ``FileNotFoundError``. ``validate`` runs
them all and reports every failure at once, so a bad year range and a
broken alias table show up in the same run.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Callable

from .config_schema import validate_config_schema
from .country_aliases import validate_country_aliases

Validator = Callable[[dict, Path], None]

CHECKS: dict[str, Validator] = {
    "config_schema": validate_config_schema,
    "country_aliases": validate_country_aliases,
}


def validate(
    config: dict,
    project_root: Path | None = None,
    *,
    enabled_checks: Iterable[str] | None = None,
) -> None:
    """Validate the yield atlas config and its reference tables.

    ``project_root`` anchors relative paths such as ``country_aliases``
    (defaults to the working directory). ``enabled_checks`` limits the run
    to the named entries of ``CHECKS``.

    Raises ``RuntimeError`` listing each failed check and its message.
    """
    root = Path(project_root) if project_root else Path.cwd()
    names = tuple(enabled_checks) if enabled_checks else tuple(CHECKS)
    unknown = [name for name in names if name not in CHECKS]
    if unknown:
        raise KeyError(f"Unknown validation check(s): {', '.join(unknown)}")

    failures = []
    for name in names:
        try:
            CHECKS[name](config, root)
        except (KeyError, ValueError, FileNotFoundError) as exc:
            failures.append(f"{name}: {exc}")

    if failures:
        listed = "\n".join(f" - {failure}" for failure in failures)
        raise RuntimeError(f"Yield atlas configuration is invalid:\n{listed}")


__all__ = ["CHECKS", "validate"]
