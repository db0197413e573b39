from bundlewrap.exceptions import BundleError

from .enums import ConfigErrorCodes


class ConfigError(BundleError):
    """Invalid kea metadata. Nothing is rendered once this is raised."""

    code = ConfigErrorCodes.BASE_ERROR


class UnknownServerError(ConfigError):
    code = ConfigErrorCodes.UNKNOWN_SERVER


class InvalidRoleForModeError(ConfigError):
    code = ConfigErrorCodes.INVALID_ROLE_FOR_MODE


class DuplicateSubnetFilenameError(ConfigError):
    code = ConfigErrorCodes.DUPLICATE_SUBNET_FILENAME


class InvalidParameterError(ConfigError):
    code = ConfigErrorCodes.INVALID_PARAMETER


class KeaControlError(Exception):
    """The control socket could not be reached or answered garbage."""


class KeaCommandError(KeaControlError):
    """Kea answered a command with a non-success result code."""

    def __init__(self, command, result, text=None):
        self.command = command
        self.result = result
        self.text = text
        super().__init__(f'{command} failed with result {result}: {text}')
