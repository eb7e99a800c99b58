# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Consistent colours for continents and countries across report figures."""

from collections.abc import Iterable, Mapping

from matplotlib import colormaps
import matplotlib.colors as mcolors

CONTINENT_COLORS = {
    "Africa": "#e07a5f",
    "Asia": "#f2cc8f",
    "Europe": "#3d5a80",
    "North America": "#81b29a",
    "Oceania": "#2a9d8f",
    "South America": "#5fa285",
}


def categorical_colors(
    labels: Iterable[str],
    overrides: Mapping[str, str] | None = None,
    *,
    cmap_name: str = "tab20",
) -> dict[str, str]:
    """Return deterministic hex colours for labels, preferring ``overrides``."""
    fixed = {
        str(key): mcolors.to_hex(value)
        for key, value in (overrides or {}).items()
        if value is not None
    }
    cmap = colormaps[cmap_name]
    colors: dict[str, str] = {}
    for idx, label in enumerate(sorted({str(label) for label in labels})):
        colors[label] = fixed.get(label, mcolors.to_hex(cmap(idx % cmap.N)))
    return colors


def continent_colors(continents: Iterable[str]) -> dict[str, str]:
    return categorical_colors(continents, CONTINENT_COLORS)
