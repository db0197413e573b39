from os.path import join

from .enums import ALLOWED_ROLES
from .exceptions import InvalidRoleForModeError, UnknownServerError

HA_LIBRARY = 'libdhcp_ha.so'


def resolve_this_server(ha, fqdn):
    """An explicit this_server is taken as-is, otherwise the host's FQDN."""
    if ha.this_server:
        return ha.this_server
    return fqdn


def validate_ha(ha, fqdn):
    this_server = resolve_this_server(ha, fqdn)

    if this_server not in ha.peers:
        raise UnknownServerError(
            "HA this_server '{}' must be one of the defined peers: {}".format(
                this_server, ', '.join(ha.peers) or '(none)',
            )
        )

    allowed = ALLOWED_ROLES[ha.mode]
    role = ha.peers[this_server].role
    if role not in allowed:
        raise InvalidRoleForModeError(
            f"HA mode '{ha.mode}' requires roles '{allowed[0]}' or '{allowed[1]}', "
            f"but this_server '{this_server}' has role '{role}'"
        )

    # kea refuses to load a relationship with any peer outside the mode
    for peer in ha.peers.values():
        if peer.role not in allowed:
            raise InvalidRoleForModeError(
                f"HA mode '{ha.mode}' requires roles '{allowed[0]}' or '{allowed[1]}', "
                f"but peer '{peer.name}' has role '{peer.role}'"
            )

    return this_server


def ha_hook_entry(ha, this_server, paths):
    relationship = {
        'this-server-name': this_server,
        'mode': ha.mode.value,
        'heartbeat-delay': ha.heartbeat_delay,
        'max-response-delay': ha.max_response_delay,
        'max-unacked-clients': ha.max_unacked_clients,
    }
    if ha.max_ack_delay is not None:
        relationship['max-ack-delay'] = ha.max_ack_delay
    relationship['peers'] = [peer.to_kea() for peer in ha.peers.values()]

    return {
        'library': join(paths.hooks_dir, HA_LIBRARY),
        'parameters': {
            'high-availability': [relationship, ],
        },
    }


def hooks_libraries(config, this_server, paths):
    # configured libraries keep their order, the HA library always goes last
    libraries = [hook.to_kea() for hook in config.hooks_libraries]
    if config.ha is not None:
        libraries += [ha_hook_entry(config.ha, this_server, paths), ]
    return libraries
