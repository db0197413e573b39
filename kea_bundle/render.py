"""Kea JSON text.

Kea reads JSON extended with comments and ``<?include "file"?>`` directives.
The include directive cannot be expressed with the json module, so the
documents are formatted here.
"""
import json
from collections.abc import Mapping
from dataclasses import dataclass

INDENT = '    '


@dataclass(frozen=True)
class Include:
    path: str

    def __str__(self):
        return f'<?include "{self.path}"?>'


def _is_scalar(value):
    return not isinstance(value, (Mapping, list, tuple, Include))


def format_config(config, indent=1):
    if isinstance(config, Include):
        return str(config)

    if isinstance(config, Mapping):
        if len(config) == 0:
            return "{}"
        if len(config) == 1 and _is_scalar(list(config.values())[0]):
            key, value = list(config.items())[0]
            return "{ " + json.dumps(str(key)) + ": " + format_config(value, indent + 1) + " }"

        out = "{\n"
        out += ",\n".join(
            INDENT * indent + json.dumps(str(key)) + ": " + format_config(value, indent + 1)
            for key, value in config.items()
        )
        out += "\n" + INDENT * (indent - 1) + "}"
        return out

    if isinstance(config, (list, tuple)):
        if len(config) == 0:
            return "[]"
        # short lists of plain values stay on one line: "interfaces": ["eth0"]
        if all(_is_scalar(value) for value in config):
            return "[" + ", ".join(format_config(value, indent + 1) for value in config) + "]"

        out = "[\n"
        out += ",\n".join(INDENT * indent + format_config(value, indent + 1) for value in config)
        out += "\n" + INDENT * (indent - 1) + "]"
        return out

    if isinstance(config, bool):
        return 'true' if config else 'false'
    if config is None:
        return 'null'
    if isinstance(config, (str, int, float)):
        return json.dumps(config)

    # IP addresses, networks and the like
    return json.dumps(str(config))


def dumps(config):
    return format_config(config) + "\n"
