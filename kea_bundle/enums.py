from enum import IntEnum, StrEnum, unique


class Protocol(StrEnum):
    DHCP4 = 'dhcp4'
    DHCP6 = 'dhcp6'
    DDNS = 'ddns'


class HAMode(StrEnum):
    HOT_STANDBY = 'hot-standby'
    LOAD_BALANCING = 'load-balancing'


class HARole(StrEnum):
    PRIMARY = 'primary'
    SECONDARY = 'secondary'
    STANDBY = 'standby'
    BACKUP = 'backup'


# roles this server may take in each mode
ALLOWED_ROLES = {
    HAMode.HOT_STANDBY: (HARole.PRIMARY, HARole.STANDBY),
    HAMode.LOAD_BALANCING: (HARole.PRIMARY, HARole.SECONDARY),
}


@unique
class ConfigErrorCodes(IntEnum):
    BASE_ERROR = 0
    UNKNOWN_SERVER = 1
    INVALID_ROLE_FOR_MODE = 2
    DUPLICATE_SUBNET_FILENAME = 3
    INVALID_PARAMETER = 4


class KeaResultCodes(IntEnum):
    """Kea control channel result codes.

    0 - SUCCESS: command completed successfully
    1 - ERROR: an error occurred
    2 - UNSUPPORTED: command is not supported (e.g. hook not loaded)
    3 - EMPTY: command completed, but no data was affected or returned
    4 - CONFLICT: requested change conflicts with the server state
    """

    SUCCESS = 0
    ERROR = 1
    UNSUPPORTED = 2
    EMPTY = 3
    CONFLICT = 4
