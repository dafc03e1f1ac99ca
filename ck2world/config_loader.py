"""
ck2world/config_loader.py
~~~~~~~~~~~~~~~~~~~~~~~~~
Loads and validates the builder configuration.

``config/configuration.json`` selects the historical-fidelity transforms
(empire shattering and HRE handling) plus input/output locations.
``config/i_am_hre.json`` names the empire used when the HRE mode is
``custom``. Both files are validated with pydantic before anything runs.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from ck2world.paths import CONFIGURATION_FILE, HRE_MAPPING_FILE, OUTPUT_DIR

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a configuration file is missing, malformed or invalid."""


# ---------------------------------------------------------------------------
#  Enums
# ---------------------------------------------------------------------------

class ShatterEmpires(str, Enum):
    NONE = "none"
    ALL = "all"


class ShatterLevel(str, Enum):
    """How deep empire shattering cuts: stop at kingdoms or break them into duchies."""
    KINGDOM = "kingdom"
    DUCHY = "duchy"


class HreMode(str, Enum):
    NONE = "none"
    HRE = "hre"
    BYZANTIUM = "byzantium"
    ROME = "rome"
    CUSTOM = "custom"


# ---------------------------------------------------------------------------
#  Models
# ---------------------------------------------------------------------------

class Configuration(BaseModel):
    """Full shape of config/configuration.json."""

    shatter_empires: ShatterEmpires = ShatterEmpires.NONE
    shatter_level: ShatterLevel = ShatterLevel.DUCHY
    hre: HreMode = HreMode.HRE
    # Parsed save tables as produced by the save reader.
    save_path: Path | None = None
    # CK2 install, for vanilla dynasty definitions.
    ck2_path: Path | None = None
    # Folder holding one subfolder per mod.
    mod_path: Path | None = None
    output_dir: Path = OUTPUT_DIR
    render_graph: bool = False

    model_config = {"extra": "forbid"}


class HreMapping(BaseModel):
    """Full shape of config/i_am_hre.json."""

    hre: str = Field(default="e_hre", min_length=3)

    @field_validator("hre")
    @classmethod
    def must_be_empire(cls, tag: str) -> str:
        if not tag.startswith("e_"):
            raise ValueError(f"Custom HRE '{tag}' is not an empire-tier title.")
        return tag


# ---------------------------------------------------------------------------
#  Loaders
# ---------------------------------------------------------------------------

def _read_json(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file {path} not found.") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Error parsing {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path.name} must contain a JSON object.")
    return data


class HreMapper:
    """Resolves the custom HRE designation from config/i_am_hre.json."""

    def __init__(self, mapping_file: str | Path = HRE_MAPPING_FILE) -> None:
        self.mapping_file = Path(mapping_file)
        self._mapping: HreMapping | None = None

    def get_hre(self) -> str:
        if self._mapping is None:
            if self.mapping_file.exists():
                try:
                    self._mapping = HreMapping(**_read_json(self.mapping_file))
                except ValidationError as exc:
                    raise ConfigurationError(f"Invalid {self.mapping_file.name}: {exc}") from exc
            else:
                logger.warning("HRE mapping %s not found, defaulting to e_hre.", self.mapping_file)
                self._mapping = HreMapping()
        return self._mapping.hre


class ConfigLoader:
    """Reads configuration.json and exposes the validated Configuration."""

    def __init__(self, config_file: str | Path = CONFIGURATION_FILE, hre_mapper: HreMapper | None = None) -> None:
        self.config_file = Path(config_file)
        self.config = self.load()
        self.hre_mapper = hre_mapper or HreMapper(self.config_file.parent / HRE_MAPPING_FILE.name)
        if self.config.hre == HreMode.CUSTOM:
            # Fail at load time rather than halfway through the build.
            self.hre_mapper.get_hre()

    def load(self) -> Configuration:
        data = _read_json(self.config_file)
        try:
            config = Configuration(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid {self.config_file.name}: {exc}") from exc
        logger.info(
            "Loaded configuration: shatter_empires=%s shatter_level=%s hre=%s",
            config.shatter_empires.value,
            config.shatter_level.value,
            config.hre.value,
        )
        return config
