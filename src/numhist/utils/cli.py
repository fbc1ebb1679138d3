import json
from pathlib import Path
from typing import Any

import click
import yaml

from numhist.histogram import NumericBase
from numhist.units import Unit

__all__ = ["UnitParamType", "load_numeric", "load_samples", "parse_json"]


def parse_json(ctx, param, value):  # noqa: ARG001
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as err:
        raise click.BadParameter(f"{param.name} must be a valid JSON string.") from err


class UnitParamType(click.ParamType):
    """
    A click parameter type that converts a unit token into the registered Unit.
    """

    name = "unit"

    def convert(self, value, param, ctx):
        if isinstance(value, Unit):
            return value
        try:
            return Unit.from_token(value)
        except ValueError:
            self.fail(
                f"{value!r} is not a known unit. Choose from: "
                f"{', '.join(sorted(Unit.by_name))}",
                param,
                ctx,
            )


def load_samples(path: Path) -> list[Any]:
    """
    Read raw samples from a file.
    ``.json`` files hold a list, ``.yaml``/``.yml`` files hold a list, and any
    other file holds one sample per non-empty line. Values that do not parse
    as numbers are kept as-is and counted as NaN samples.
    """
    text = path.read_text()

    if path.suffix in (".json", ".yaml", ".yml"):
        try:
            data = (
                json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
            )
        except (json.JSONDecodeError, yaml.YAMLError) as err:
            raise click.BadParameter(f"{path} could not be decoded: {err}") from err
    else:
        data = []
        for line in text.splitlines():
            if not line.strip():
                continue
            try:
                data.append(float(line))
            except ValueError:
                data.append(line.strip())

    if not isinstance(data, list):
        raise click.BadParameter(f"{path} must contain a list of samples.")

    return data


def load_numeric(path: Path) -> NumericBase:
    """
    Read a serialized histogram or scalar, reporting undecodable payloads as
    click errors.
    """
    try:
        return NumericBase.from_json(path.read_text())
    except ValueError as err:
        raise click.ClickException(f"Could not load {path}: {err}") from err
