from collections.abc import Mapping

from .exceptions import InvalidParameterError

# metadata keys are underscore separated, kea wants hyphens. Every key we
# accept is listed here, anything else is rejected.
DDNS_KEYS = {
    'algorithm': 'algorithm',
    'ddns_domains': 'ddns-domains',
    'digest_bits': 'digest-bits',
    'dns_servers': 'dns-servers',
    'hostname': 'hostname',
    'ip_address': 'ip-address',
    'key_name': 'key-name',
    'name': 'name',
    'port': 'port',
    'secret': 'secret',
    'secret_file': 'secret-file',
}

DHCP_KEYS = {
    # option-data / option-def
    'always_send': 'always-send',
    'array': 'array',
    'code': 'code',
    'csv_format': 'csv-format',
    'data': 'data',
    'encapsulate': 'encapsulate',
    'never_send': 'never-send',
    'record_types': 'record-types',
    'space': 'space',
    'type': 'type',

    # client-classes
    'boot_file_name': 'boot-file-name',
    'next_server': 'next-server',
    'only_in_additional_list': 'only-in-additional-list',
    'server_hostname': 'server-hostname',
    'template_test': 'template-test',
    'test': 'test',
    'valid_lifetime': 'valid-lifetime',

    # reservations
    'circuit_id': 'circuit-id',
    'client_classes': 'client-classes',
    'client_id': 'client-id',
    'duid': 'duid',
    'flex_id': 'flex-id',
    'hostname': 'hostname',
    'hw_address': 'hw-address',
    'ip_address': 'ip-address',
    'ip_addresses': 'ip-addresses',
    'prefixes': 'prefixes',

    # pools and pd-pools
    'client_class': 'client-class',
    'delegated_len': 'delegated-len',
    'excluded_prefix': 'excluded-prefix',
    'excluded_prefix_len': 'excluded-prefix-len',
    'pool': 'pool',
    'prefix': 'prefix',
    'prefix_len': 'prefix-len',

    # lease-database
    'connect_timeout': 'connect-timeout',
    'host': 'host',
    'lfc_interval': 'lfc-interval',
    'max_reconnect_tries': 'max-reconnect-tries',
    'on_fail': 'on-fail',
    'password': 'password',
    'persist': 'persist',
    'port': 'port',
    'reconnect_wait_time': 'reconnect-wait-time',
    'user': 'user',

    # expired-leases-processing
    'flush_reclaimed_timer_wait_time': 'flush-reclaimed-timer-wait-time',
    'hold_reclaimed_time': 'hold-reclaimed-time',
    'max_reclaim_leases': 'max-reclaim-leases',
    'max_reclaim_time': 'max-reclaim-time',
    'reclaim_timer_wait_time': 'reclaim-timer-wait-time',
    'unwarned_reclaim_cycles': 'unwarned-reclaim-cycles',

    # sanity-checks
    'extended_info_checks': 'extended-info-checks',
    'lease_checks': 'lease-checks',

    'name': 'name',
    'option_data': 'option-data',
    'option_def': 'option-def',
}


def translate(value, table, where):
    """Rename all mapping keys in ``value`` (recursively) using ``table``."""
    if isinstance(value, Mapping):
        out = {}
        for key, item in value.items():
            if key not in table:
                raise InvalidParameterError(f"unknown key '{key}' in {where}")
            out[table[key]] = translate(item, table, where)
        return out
    if isinstance(value, (list, tuple)):
        return [translate(item, table, where) for item in value]
    return value
