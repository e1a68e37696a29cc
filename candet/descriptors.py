"""Object descriptor loading.

Descriptor files are YAML (or JSON, which YAML parses) holding either a list
of descriptor mappings or a mapping with a ``descriptors`` key::

    descriptors:
      - name: coke_can
        typical_height: 12.0
        typical_width: 6.5
        main_color: [220, 30, 30]
        secondary_color: [255, 255, 255]
        color_ratio: 0.8
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from candet.errors import ConfigError
from candet.types import ObjectDescriptor

logger = logging.getLogger(__name__)


class DescriptorModel(BaseModel):
    """Validation schema for one descriptor entry."""

    name: str = Field(min_length=1)
    typical_height: float = Field(gt=0, description="cm")
    typical_width: float = Field(gt=0, description="cm")
    main_color: tuple[int, int, int]
    secondary_color: tuple[int, int, int] | None = None
    color_ratio: float = Field(ge=0.0, le=1.0)

    @field_validator("main_color", "secondary_color")
    @classmethod
    def _check_channels(cls, v: tuple[int, int, int] | None) -> tuple[int, int, int] | None:
        if v is not None and not all(0 <= c <= 255 for c in v):
            raise ValueError(f"RGB channels must be in [0, 255], got {v}")
        return v

    def to_descriptor(self) -> ObjectDescriptor:
        return ObjectDescriptor(
            name=self.name,
            typical_height=self.typical_height,
            typical_width=self.typical_width,
            main_color=self.main_color,
            secondary_color=self.secondary_color,
            color_ratio=self.color_ratio,
        )


def default_descriptors() -> list[ObjectDescriptor]:
    """Built-in descriptor set used when no descriptor file is given.

    The white secondary color has zero saturation, so with the default
    secondary floor no region ever passes validation; every box has to be
    drawn by hand.
    """
    logger.warning(
        "Using the built-in coke_can descriptor: its white secondary color never "
        "passes the saturation floor, so no candidates will be proposed. "
        "Pass --descriptors to enable detection."
    )
    return [
        ObjectDescriptor(
            name="coke_can",
            typical_height=12.0,
            typical_width=6.5,
            main_color=(220, 30, 30),
            secondary_color=(255, 255, 255),
            color_ratio=0.8,
        )
    ]


def parse_descriptors(data: object) -> list[ObjectDescriptor]:
    """Validate already-parsed descriptor data.

    Raises:
        ConfigError: If the structure or any entry is invalid.
    """
    if isinstance(data, dict):
        data = data.get("descriptors")
    if not isinstance(data, list) or not data:
        raise ConfigError("Expected a non-empty list of descriptors")

    descriptors: list[ObjectDescriptor] = []
    for i, entry in enumerate(data):
        try:
            descriptors.append(DescriptorModel.model_validate(entry).to_descriptor())
        except ValidationError as exc:
            raise ConfigError(f"Descriptor #{i} is invalid: {exc}") from exc

    names = [d.name for d in descriptors]
    if len(set(names)) != len(names):
        raise ConfigError(f"Duplicate descriptor names: {names}")
    return descriptors


def load_descriptors(path: str | Path) -> list[ObjectDescriptor]:
    """Load descriptors from a YAML/JSON file.

    Args:
        path: Path to the descriptor file.

    Returns:
        Descriptors in file order (this is the registration order used for
        detection output).
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read descriptors from {path}: {exc}") from exc

    descriptors = parse_descriptors(data)
    logger.info("Loaded %d descriptor(s) from %s", len(descriptors), path)
    return descriptors
