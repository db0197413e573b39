"""Typed view of the ``kea`` node metadata.

Everything here is built fresh from metadata on every run and never changed
afterwards. Nested kea structures that are only passed through (option-data,
client classes, reservations, pools) are kept as mappings that already use
kea's hyphenated keys.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from ipaddress import ip_network

from .enums import HAMode, Protocol
from .exceptions import InvalidParameterError
from .keys import DDNS_KEYS, DHCP_KEYS, translate


def _require(data, key, where):
    value = data.get(key, None)
    if value is None or value == '':
        raise InvalidParameterError(f"'{key}' is required in {where}")
    return value


def _check_keys(data, known, where):
    if not isinstance(data, Mapping):
        raise InvalidParameterError(f'{where} must be a mapping, got {type(data).__name__}')

    unknown = sorted(set(data) - set(known))
    if unknown:
        raise InvalidParameterError('unknown keys in {}: {}'.format(where, ', '.join(unknown)))


def _entries(data, key, where):
    return tuple(translate(entry, DHCP_KEYS, f'{where}/{key}') for entry in data.get(key, None) or [])


@dataclass(frozen=True)
class KeaPaths:
    config_dir: str = '/etc/kea'
    run_dir: str = '/var/run/kea'
    hooks_dir: str = '/usr/lib/x86_64-linux-gnu/kea/hooks'

    @classmethod
    def from_metadata(cls, data):
        return cls(**{key: data[key] for key in ('config_dir', 'run_dir', 'hooks_dir') if data.get(key, None)})


@dataclass(frozen=True)
class HookEntry:
    library: str
    parameters: dict = None

    @classmethod
    def from_metadata(cls, data):
        _check_keys(data, ('library', 'parameters'), 'hooks_libraries')
        return cls(
            library=_require(data, 'library', 'hooks_libraries'),
            parameters=data.get('parameters', None),
        )

    def to_kea(self):
        entry = {'library': self.library}
        # hook parameters are the library's own business, keep them as given
        if self.parameters:
            entry['parameters'] = dict(self.parameters)
        return entry


@dataclass(frozen=True)
class PeerEntry:
    name: str
    url: str
    role: str
    auto_failover: bool = None

    def to_kea(self):
        peer = {
            'name': self.name,
            'url': self.url,
            'role': self.role,
        }
        if self.auto_failover is not None:
            peer['auto-failover'] = self.auto_failover
        return peer


HA_KEYS = (
    'mode', 'this_server', 'heartbeat_delay', 'max_response_delay', 'max_ack_delay',
    'max_unacked_clients', 'peers',
    # only read by the find_ha_peers metadata reactor
    'peer_group', 'url', 'role',
)


@dataclass(frozen=True)
class HaConfig:
    mode: HAMode
    peers: dict
    this_server: str = None
    heartbeat_delay: int = 10000
    max_response_delay: int = 60000
    max_unacked_clients: int = 5
    max_ack_delay: int = None

    @classmethod
    def from_metadata(cls, data):
        _check_keys(data, HA_KEYS, 'ha')

        mode = _require(data, 'mode', 'ha')
        try:
            mode = HAMode(mode)
        except ValueError:
            raise InvalidParameterError(
                "HA mode '{}' is not one of: {}".format(mode, ', '.join(m.value for m in HAMode))
            ) from None

        peers_config = data.get('peers', None) or {}
        if not isinstance(peers_config, Mapping):
            raise InvalidParameterError(
                f'ha/peers must be a mapping of peer name to url and role, got {type(peers_config).__name__}'
            )

        peers = {}
        for name, peer_config in peers_config.items():
            _check_keys(peer_config, ('url', 'role', 'auto_failover'), f'ha/peers/{name}')
            peers[name] = PeerEntry(
                name=name,
                url=_require(peer_config, 'url', f'ha/peers/{name}'),
                role=_require(peer_config, 'role', f'ha/peers/{name}'),
                auto_failover=peer_config.get('auto_failover', None),
            )

        kwargs = {
            key: data[key]
            for key in ('heartbeat_delay', 'max_response_delay', 'max_unacked_clients', 'max_ack_delay')
            if data.get(key, None) is not None
        }
        return cls(mode=mode, peers=peers, this_server=data.get('this_server', None), **kwargs)


SUBNET_KEYS = (
    'name', 'subnet', 'id', 'interface', 'pools', 'pd_pools', 'option_data', 'reservations',
    'client_class', 'valid_lifetime', 'renew_timer', 'rebind_timer', 'preferred_lifetime',
)


@dataclass(frozen=True)
class Subnet:
    cidr: str
    name: str = None
    id: int = None
    interface: str = None
    pools: tuple = ()
    pd_pools: tuple = ()
    option_data: tuple = ()
    reservations: tuple = ()
    client_class: str = None
    lifetimes: dict = field(default_factory=dict)

    @classmethod
    def from_metadata(cls, protocol, data):
        _check_keys(data, SUBNET_KEYS, 'subnets')
        cidr = _require(data, 'subnet', 'subnets')
        where = f'subnet {cidr}'

        try:
            network = ip_network(cidr)
        except ValueError as e:
            raise InvalidParameterError(f"invalid subnet '{cidr}': {e}") from None
        if network.version != (6 if protocol == Protocol.DHCP6 else 4):
            raise InvalidParameterError(f"subnet '{cidr}' is not an IPv{protocol[-1]} network")
        # one spelling per network, so equal networks get equal file names
        cidr = network.compressed

        name = data.get('name', None)
        if name is not None and (not isinstance(name, str) or not name or '/' in name or name in ('.', '..')):
            raise InvalidParameterError(f"subnet name '{name}' cannot be used as a filename")

        if protocol != Protocol.DHCP6:
            for key in ('pd_pools', 'preferred_lifetime'):
                if data.get(key, None):
                    raise InvalidParameterError(f"'{key}' is only supported for dhcp6 ({where})")

        pools = _entries(data, 'pools', where)
        for pool in pools:
            _require(pool, 'pool', f'{where}/pools')

        return cls(
            cidr=cidr,
            name=name,
            id=data.get('id', None),
            interface=data.get('interface', None),
            pools=pools,
            pd_pools=_entries(data, 'pd_pools', where),
            option_data=_entries(data, 'option_data', where),
            reservations=_entries(data, 'reservations', where),
            client_class=data.get('client_class', None),
            lifetimes={
                key.replace('_', '-'): data[key]
                for key in ('valid_lifetime', 'renew_timer', 'rebind_timer', 'preferred_lifetime')
                if data.get(key, None) is not None
            },
        )

    def to_kea(self):
        subnet = {
            'id': self.id,
            'subnet': self.cidr,
            'interface': self.interface,
            'pools': list(self.pools),
            'pd-pools': list(self.pd_pools),
            'option-data': list(self.option_data),
            'reservations': list(self.reservations),
            'client-class': self.client_class,
        }
        subnet.update(self.lifetimes)
        return {k: v for k, v in subnet.items() if v is not None and v != []}


# (attribute, kea key, protocols) of optional scalar globals, rendered in this
# order when set
OPTIONAL_GLOBALS = (
    ('authoritative', 'authoritative', (Protocol.DHCP4, )),
    ('max_valid_lifetime', 'max-valid-lifetime', (Protocol.DHCP4, Protocol.DHCP6)),
    ('calculate_tee_times', 'calculate-tee-times', (Protocol.DHCP4, Protocol.DHCP6)),
    ('t1_percent', 't1-percent', (Protocol.DHCP4, Protocol.DHCP6)),
    ('t2_percent', 't2-percent', (Protocol.DHCP4, Protocol.DHCP6)),
    ('allocator', 'allocator', (Protocol.DHCP4, Protocol.DHCP6)),
    ('pd_allocator', 'pd-allocator', (Protocol.DHCP6, )),
    ('store_extended_info', 'store-extended-info', (Protocol.DHCP4, Protocol.DHCP6)),
    ('ddns_send_updates', 'ddns-send-updates', (Protocol.DHCP4, Protocol.DHCP6)),
    ('ddns_qualifying_suffix', 'ddns-qualifying-suffix', (Protocol.DHCP4, Protocol.DHCP6)),
    ('ddns_replace_client_name', 'ddns-replace-client-name', (Protocol.DHCP4, Protocol.DHCP6)),
)

PROTOCOL_KEYS = (
    'enabled', 'interfaces', 'valid_lifetime', 'renew_timer', 'rebind_timer', 'preferred_lifetime',
    'lease_database', 'expired_leases_processing', 'sanity_checks', 'option_data', 'option_def',
    'client_classes', 'hooks_libraries', 'reservations', 'ha', 'subnets',
) + tuple(attr for attr, _, _ in OPTIONAL_GLOBALS)

DEFAULT_LEASE_DATABASE = {
    'type': 'memfile',
    'lfc-interval': 3600,
}


@dataclass(frozen=True)
class ProtocolConfig:
    protocol: Protocol
    enabled: bool = False
    interfaces: tuple = ()
    valid_lifetime: int = 4000
    renew_timer: int = 1000
    rebind_timer: int = 2000
    preferred_lifetime: int = None
    lease_database: dict = field(default_factory=lambda: dict(DEFAULT_LEASE_DATABASE))
    expired_leases_processing: dict = None
    sanity_checks: dict = None
    option_data: tuple = ()
    option_def: tuple = ()
    client_classes: tuple = ()
    hooks_libraries: tuple = ()
    reservations: tuple = ()
    ha: HaConfig = None
    subnets: tuple = ()

    authoritative: bool = None
    max_valid_lifetime: int = None
    calculate_tee_times: bool = None
    t1_percent: float = None
    t2_percent: float = None
    allocator: str = None
    pd_allocator: str = None
    store_extended_info: bool = None
    ddns_send_updates: bool = None
    ddns_qualifying_suffix: str = None
    ddns_replace_client_name: str = None

    @classmethod
    def from_metadata(cls, protocol, data):
        protocol = Protocol(protocol)
        _check_keys(data, PROTOCOL_KEYS, protocol)

        kwargs = {}
        for attr, _, protocols in OPTIONAL_GLOBALS:
            if data.get(attr, None) is None:
                continue
            if protocol not in protocols:
                raise InvalidParameterError(f"'{attr}' is not supported for {protocol}")
            kwargs[attr] = data[attr]

        for attr in ('valid_lifetime', 'renew_timer', 'rebind_timer'):
            if data.get(attr, None) is not None:
                kwargs[attr] = data[attr]

        if protocol == Protocol.DHCP6:
            kwargs['preferred_lifetime'] = data.get('preferred_lifetime', None) or 3000
        elif data.get('preferred_lifetime', None) is not None:
            raise InvalidParameterError(f"'preferred_lifetime' is not supported for {protocol}")

        if data.get('lease_database', None):
            kwargs['lease_database'] = translate(data['lease_database'], DHCP_KEYS, 'lease_database')
            _require(kwargs['lease_database'], 'type', 'lease_database')

        for attr in ('expired_leases_processing', 'sanity_checks'):
            if data.get(attr, None):
                kwargs[attr] = translate(data[attr], DHCP_KEYS, attr)

        ha = data.get('ha', None)

        return cls(
            protocol=protocol,
            enabled=bool(data.get('enabled', False)),
            interfaces=tuple(data.get('interfaces', None) or ()),
            option_data=_entries(data, 'option_data', protocol),
            option_def=_entries(data, 'option_def', protocol),
            client_classes=_entries(data, 'client_classes', protocol),
            hooks_libraries=tuple(HookEntry.from_metadata(h) for h in data.get('hooks_libraries', None) or []),
            reservations=_entries(data, 'reservations', protocol),
            ha=HaConfig.from_metadata(ha) if ha else None,
            subnets=tuple(Subnet.from_metadata(protocol, s) for s in data.get('subnets', None) or []),
            **kwargs,
        )


DDNS_CONFIG_KEYS = (
    'enabled', 'ip_address', 'port', 'dns_server_timeout', 'tsig_keys', 'forward_ddns', 'reverse_ddns',
)


@dataclass(frozen=True)
class DdnsConfig:
    enabled: bool = False
    ip_address: str = '127.0.0.1'
    port: int = 53001
    dns_server_timeout: int = None
    tsig_keys: tuple = ()
    forward_ddns: dict = field(default_factory=dict)
    reverse_ddns: dict = field(default_factory=dict)

    protocol = Protocol.DDNS

    @classmethod
    def from_metadata(cls, data):
        _check_keys(data, DDNS_CONFIG_KEYS, 'ddns')

        tsig_keys = tuple(translate(key, DDNS_KEYS, 'ddns/tsig_keys') for key in data.get('tsig_keys', None) or [])
        for key in tsig_keys:
            _require(key, 'name', 'ddns/tsig_keys')

        kwargs = {
            attr: data[attr]
            for attr in ('ip_address', 'port', 'dns_server_timeout')
            if data.get(attr, None) is not None
        }
        return cls(
            enabled=bool(data.get('enabled', False)),
            tsig_keys=tsig_keys,
            forward_ddns=translate(data.get('forward_ddns', None) or {}, DDNS_KEYS, 'ddns/forward_ddns'),
            reverse_ddns=translate(data.get('reverse_ddns', None) or {}, DDNS_KEYS, 'ddns/reverse_ddns'),
            **kwargs,
        )
