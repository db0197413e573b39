from .compiler import CompiledConfig, compile_node, compile_protocol, render, validate
from .control import KeaControlClient
from .enums import HAMode, HARole, KeaResultCodes, Protocol
from .exceptions import (
    ConfigError,
    DuplicateSubnetFilenameError,
    InvalidParameterError,
    InvalidRoleForModeError,
    KeaCommandError,
    KeaControlError,
    UnknownServerError,
)
from .models import DdnsConfig, HaConfig, KeaPaths, ProtocolConfig, Subnet
from .output import write_files

__all__ = [
    'CompiledConfig',
    'ConfigError',
    'DdnsConfig',
    'DuplicateSubnetFilenameError',
    'HAMode',
    'HARole',
    'HaConfig',
    'InvalidParameterError',
    'InvalidRoleForModeError',
    'KeaCommandError',
    'KeaControlClient',
    'KeaControlError',
    'KeaPaths',
    'KeaResultCodes',
    'Protocol',
    'ProtocolConfig',
    'Subnet',
    'UnknownServerError',
    'compile_node',
    'compile_protocol',
    'render',
    'validate',
    'write_files',
]
