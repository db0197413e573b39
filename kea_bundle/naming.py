"""Where kea files live and how subnet files are named."""
import re
from os.path import join

from .enums import Protocol

ROOT_KEYS = {
    Protocol.DHCP4: 'Dhcp4',
    Protocol.DHCP6: 'Dhcp6',
    Protocol.DDNS: 'DhcpDdns',
}

SUBNET_KEYS = {
    Protocol.DHCP4: 'subnet4',
    Protocol.DHCP6: 'subnet6',
}

CONTROL_SOCKETS = {
    Protocol.DHCP4: 'kea-dhcp4-ctrl.sock',
    Protocol.DHCP6: 'kea-dhcp6-ctrl.sock',
    Protocol.DDNS: 'kea-dhcp-ddns-ctrl.sock',
}


def main_config_path(paths, protocol):
    if protocol == Protocol.DDNS:
        return join(paths.config_dir, 'kea-dhcp-ddns.conf')
    return join(paths.config_dir, f'kea-{protocol}.conf')


def subnets_file_path(paths, protocol):
    return join(paths.config_dir, f'kea-{protocol}-subnets.json')


def subnets_dir_path(paths, protocol):
    return join(paths.config_dir, f'subnets{protocol[-1]}.d')


def shared_networks_file_path(paths, protocol):
    return join(paths.config_dir, f'kea-{protocol}-shared-networks.json')


def shared_networks_dir_path(paths, protocol):
    return join(paths.config_dir, f'shared-networks{protocol[-1]}.d')


def control_socket_path(paths, protocol):
    return join(paths.run_dir, CONTROL_SOCKETS[protocol])


def subnet_stem(protocol, subnet):
    """Filename (without .json) for a subnet.

    The subnet's name wins. Otherwise the CIDR is used: for dhcp4 the slash
    becomes a dash (192.168.1.0/24 -> 192.168.1.0-24), for dhcp6 every run of
    colons and slashes becomes a single dash (2001:db8:1::/64 -> 2001-db8-1-64).
    """
    if subnet.name:
        return subnet.name

    if protocol == Protocol.DHCP6:
        return re.sub(r'[:/]+', '-', subnet.cidr).strip('-')
    return subnet.cidr.replace('/', '-')
