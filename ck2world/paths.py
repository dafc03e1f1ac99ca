"""
Centralised path constants for the CK2 world builder.

All default locations are resolved relative to PROJECT_ROOT so the builder
behaves the same whether it is launched from the repository root or from
an installed entry point.
"""

from __future__ import annotations

from pathlib import Path


def _find_project_root() -> Path:
    """Project root is one level above the package (ck2world/paths.py → ck2world/ → root)."""
    return Path(__file__).parent.parent


# ── Root ──────────────────────────────────────────────────────────────────────

PROJECT_ROOT: Path = _find_project_root()

# ── Input directories ─────────────────────────────────────────────────────────

CONFIG_DIR: Path = PROJECT_ROOT / "config"
CONFIGURATION_FILE: Path = CONFIG_DIR / "configuration.json"
HRE_MAPPING_FILE: Path = CONFIG_DIR / "i_am_hre.json"

# Relative to a CK2 install or a mod folder
DYNASTIES_SUBDIR: Path = Path("common") / "dynasties"
TRAITS_SUBDIR: Path = Path("common") / "traits"

# ── Output directories ────────────────────────────────────────────────────────

# JSON hand-off and realm graph renders
OUTPUT_DIR: Path = PROJECT_ROOT / "output"
