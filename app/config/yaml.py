"""YAML loading with an `!env` tag for environment-driven settings.

    port: !env BRIDGE_PORT             # required variable
    port: !env [BRIDGE_PORT, 3001]     # variable with a default
"""

from __future__ import annotations

import os
from typing import Any

import yaml


class EnvSafeLoader(yaml.SafeLoader):
    """SafeLoader that understands `!env`."""


def _construct_env(loader: EnvSafeLoader, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        name = loader.construct_scalar(node)
        value = os.getenv(str(name))
        if value is None:
            raise ValueError(f"Required environment variable '{name}' is not set")
        return value

    if isinstance(node, yaml.SequenceNode):
        items = loader.construct_sequence(node)
        if len(items) != 2 or not isinstance(items[0], str):
            raise yaml.constructor.ConstructorError(None, None, '!env sequence must be [var_name, default]', node.start_mark)
        name, default = items
        return os.getenv(name, default)

    raise yaml.constructor.ConstructorError(None, None, f'!env expects a scalar or a sequence, got {type(node).__name__}', node.start_mark)


EnvSafeLoader.add_constructor('!env', _construct_env)


def safe_load_with_env(stream) -> Any:
    """`yaml.safe_load` that also resolves `!env` tags."""

    return yaml.load(stream, Loader=EnvSafeLoader)


__all__ = ['EnvSafeLoader', 'safe_load_with_env']
