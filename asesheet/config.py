# Atlas packing options and their TOML file representation

import enum
from pathlib import Path
from typing import Union

import attr
import cattr
import cattr.preconf.tomlkit
import tomlkit


class SheetType(str, enum.Enum):
    PACKED = "packed"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


def _not_negative(instance, attribute, value):
    if value < 0:
        raise ValueError(f"{attribute.name} must be >= 0 (got {value})")


@attr.frozen
class AtlasOptions:
    sheet_type: SheetType = SheetType.PACKED
    merge_duplicates: bool = True
    only_visible_layers: bool = True
    include_background: bool = False
    include_tilemaps: bool = True
    border_padding: int = attr.ib(default=0, validator=_not_negative)
    spacing: int = attr.ib(default=0, validator=_not_negative)
    inner_padding: int = attr.ib(default=0, validator=_not_negative)


def load_options(filename: Union[str, Path]) -> AtlasOptions:
    """Reads AtlasOptions from the [atlas] table of a TOML file."""

    toml_converter = cattr.preconf.tomlkit.make_converter()
    with open(filename) as file:
        toml_data = tomlkit.load(file)
    table = toml_data.get("atlas", {})
    return toml_converter.structure(dict(table), AtlasOptions)
