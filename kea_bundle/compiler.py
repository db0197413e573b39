"""Compile kea metadata into the files the kea daemons read.

Compilation happens in two steps. ``validate`` checks the whole input and
raises a ``ConfigError`` on the first problem; ``render`` turns validated
input into file contents and cannot fail. Nothing is rendered for input that
did not validate.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from os.path import join
from socket import getfqdn

from loguru import logger

from .enums import Protocol
from .exceptions import DuplicateSubnetFilenameError, InvalidParameterError
from .ha import hooks_libraries, validate_ha
from .models import OPTIONAL_GLOBALS, DdnsConfig, KeaPaths, ProtocolConfig
from .naming import (
    ROOT_KEYS,
    SUBNET_KEYS,
    control_socket_path,
    main_config_path,
    shared_networks_dir_path,
    shared_networks_file_path,
    subnet_stem,
    subnets_dir_path,
    subnets_file_path,
)
from .render import Include, dumps

log = logger.bind(name='kea_bundle.compiler')


@dataclass
class CompiledConfig:
    files: dict = field(default_factory=dict)
    directories: list = field(default_factory=list)

    def merge(self, other):
        self.files.update(other.files)
        self.directories += [d for d in other.directories if d not in self.directories]


@dataclass(frozen=True)
class ValidatedConfig:
    protocol: Protocol
    config: object
    this_server: str = None
    subnet_stems: tuple = ()
    shared_networks: tuple = ()


def load_config(protocol, config):
    protocol = _protocol(protocol)
    if isinstance(config, (ProtocolConfig, DdnsConfig)):
        if config.protocol != protocol:
            raise InvalidParameterError(f'got a {config.protocol} config to compile as {protocol}')
        return config

    if protocol == Protocol.DDNS:
        return DdnsConfig.from_metadata(config or {})
    return ProtocolConfig.from_metadata(protocol, config or {})


def _protocol(protocol):
    try:
        return Protocol(protocol)
    except ValueError:
        raise InvalidParameterError(
            "unknown protocol '{}', expected one of: {}".format(protocol, ', '.join(p.value for p in Protocol))
        ) from None


# --------------------------------------
# validation
# --------------------------------------
def _validate_shared_networks(protocol, shared_networks):
    names = []
    for network in shared_networks:
        if not isinstance(network, Mapping):
            raise InvalidParameterError(f'shared networks for {protocol} must be mappings')

        name = network.get('name', None)
        if not isinstance(name, str) or not name or '/' in name or name in ('.', '..'):
            raise InvalidParameterError(f"shared network name '{name}' cannot be used as a filename")
        if name in names:
            raise DuplicateSubnetFilenameError(f"shared network '{name}' is defined twice for {protocol}")

        names += [name, ]

    return tuple(shared_networks)


def validate(protocol, config, fqdn, shared_networks=None):
    protocol = _protocol(protocol)
    config = load_config(protocol, config)

    if protocol == Protocol.DDNS:
        if shared_networks:
            raise InvalidParameterError('shared networks are not supported for ddns')
        return ValidatedConfig(protocol=protocol, config=config)

    this_server = None
    if config.ha is not None:
        this_server = validate_ha(config.ha, fqdn)

    stems = {}
    networks = set()
    for subnet in config.subnets:
        if subnet.cidr in networks:
            raise DuplicateSubnetFilenameError(f"subnet '{subnet.cidr}' is defined twice for {protocol}")
        networks.add(subnet.cidr)

        stem = subnet_stem(protocol, subnet)
        if stem in stems:
            raise DuplicateSubnetFilenameError(
                f"subnets '{stems[stem].cidr}' and '{subnet.cidr}' would both be written to {stem}.json"
            )
        stems[stem] = subnet

    return ValidatedConfig(
        protocol=protocol,
        config=config,
        this_server=this_server,
        subnet_stems=tuple(stems),
        shared_networks=_validate_shared_networks(protocol, shared_networks or ()),
    )


# --------------------------------------
# rendering
# --------------------------------------
def _render_dhcp(validated, paths):
    protocol = validated.protocol
    config = validated.config
    compiled = CompiledConfig()

    # subnets, one file each plus a list of includes
    subnets_dir = subnets_dir_path(paths, protocol)
    subnet_includes = []
    for subnet, stem in zip(config.subnets, validated.subnet_stems):
        path = join(subnets_dir, f'{stem}.json')
        compiled.files[path] = dumps(subnet.to_kea())
        subnet_includes += [Include(path), ]

    # shared networks come as ready-made kea structures
    shared_networks_dir = shared_networks_dir_path(paths, protocol)
    shared_network_includes = []
    for network in validated.shared_networks:
        path = join(shared_networks_dir, '{}.json'.format(network['name']))
        compiled.files[path] = dumps(network)
        shared_network_includes += [Include(path), ]

    subnets_file = subnets_file_path(paths, protocol)
    shared_networks_file = shared_networks_file_path(paths, protocol)
    compiled.files[subnets_file] = dumps(subnet_includes)
    compiled.files[shared_networks_file] = dumps(shared_network_includes)
    compiled.directories += [subnets_dir, shared_networks_dir]

    dhcp = {
        "interfaces-config": {
            "interfaces": list(config.interfaces),
        },
        "control-socket": {
            "socket-type": "unix",
            "socket-name": control_socket_path(paths, protocol),
        },
        "lease-database": config.lease_database,
        "expired-leases-processing": config.expired_leases_processing,
        "sanity-checks": config.sanity_checks,
        "renew-timer": config.renew_timer,
        "rebind-timer": config.rebind_timer,
        "preferred-lifetime": config.preferred_lifetime,
        "valid-lifetime": config.valid_lifetime,
    }

    for attr, key, _ in OPTIONAL_GLOBALS:
        dhcp[key] = getattr(config, attr)

    if config.ddns_send_updates:
        dhcp["dhcp-ddns"] = {
            "enable-updates": True,
        }

    dhcp.update({
        "option-def": list(config.option_def),
        "option-data": list(config.option_data),
        "client-classes": list(config.client_classes),
        "hooks-libraries": hooks_libraries(config, validated.this_server, paths),
        "reservations": list(config.reservations),
        SUBNET_KEYS[protocol]: Include(subnets_file),
        "shared-networks": Include(shared_networks_file),
    })

    dhcp = {k: v for k, v in dhcp.items() if v is not None and v != []}

    compiled.files[main_config_path(paths, protocol)] = dumps({ROOT_KEYS[protocol]: dhcp})
    return compiled


def _render_ddns(validated, paths):
    config = validated.config

    ddns = {
        "ip-address": config.ip_address,
        "port": config.port,
        "dns-server-timeout": config.dns_server_timeout,
        "control-socket": {
            "socket-type": "unix",
            "socket-name": control_socket_path(paths, Protocol.DDNS),
        },
        "tsig-keys": list(config.tsig_keys),
        "forward-ddns": config.forward_ddns,
        "reverse-ddns": config.reverse_ddns,
    }
    ddns = {k: v for k, v in ddns.items() if v is not None}

    compiled = CompiledConfig()
    compiled.files[main_config_path(paths, Protocol.DDNS)] = dumps({ROOT_KEYS[Protocol.DDNS]: ddns})
    return compiled


def render(validated, paths=None):
    paths = paths or KeaPaths()

    if validated.protocol == Protocol.DDNS:
        compiled = _render_ddns(validated, paths)
    else:
        compiled = _render_dhcp(validated, paths)

    for path in compiled.files:
        log.debug('rendered {} for {}', path, validated.protocol)
    return compiled


def compile_protocol(protocol, config, fqdn=None, shared_networks=None, paths=None):
    """Compile the config of one kea daemon.

    ``config`` is either the protocol's metadata mapping or an already loaded
    ``ProtocolConfig``/``DdnsConfig``. ``fqdn`` is used as the HA
    this-server-name when the config does not name one and defaults to the
    local host's FQDN.
    """
    if fqdn is None:
        fqdn = getfqdn()

    validated = validate(protocol, config, fqdn, shared_networks)
    return render(validated, paths)


def compile_node(metadata, fqdn=None):
    """Compile every enabled daemon found in a node's ``kea`` metadata.

    All daemons are validated before anything is rendered, so one broken
    daemon config leaves the node without any output.
    """
    metadata = metadata or {}
    if fqdn is None:
        fqdn = getfqdn()

    paths = KeaPaths.from_metadata(metadata)
    shared_networks = metadata.get('shared_networks', None) or {}

    validated = []
    for protocol in Protocol:
        data = metadata.get(protocol.value, None) or {}
        if not data.get('enabled', False):
            continue

        validated += [validate(protocol, data, fqdn, shared_networks.get(protocol.value, None)), ]

    compiled = CompiledConfig()
    for item in validated:
        compiled.merge(render(item, paths))

    log.debug(
        'compiled {} files for {}',
        len(compiled.files),
        ', '.join(item.protocol.value for item in validated) or 'no daemons',
    )
    return compiled
