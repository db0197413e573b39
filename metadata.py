from bundlewrap.metadata import DoNotRunAgain

defaults = {
    'kea': {
        'config_dir': '/etc/kea',
        'run_dir': '/var/run/kea',
        'hooks_dir': '/usr/lib/x86_64-linux-gnu/kea/hooks',

        'dhcp4': {
            'enabled': False,
            # 'interfaces': ['eth0', ],
            # 'valid_lifetime': 4000,
            # 'renew_timer': 1000,
            # 'rebind_timer': 2000,
            # 'option_data': [
            #     {'name': 'domain-name-servers', 'data': '192.168.1.1'},
            # ],
            # 'client_classes': [
            #     {
            #         'name': 'voip-phones',
            #         'test': "substring(option[60].hex,0,6) == 'Polycom'",
            #     },
            # ],
            # 'hooks_libraries': [
            #     {'library': '/usr/lib/x86_64-linux-gnu/kea/hooks/libdhcp_lease_cmds.so'},
            # ],
            # 'subnets': [
            #     {
            #         'name': 'office-lan',  # file name, defaults to the subnet (192.168.1.0-24)
            #         'subnet': '192.168.1.0/24',
            #         'pools': [{'pool': '192.168.1.100 - 192.168.1.200'}, ],
            #         'option_data': [{'name': 'routers', 'data': '192.168.1.1'}, ],
            #         'reservations': [
            #             {'hw_address': '00:23:32:xx:xx:xx', 'ip_address': '192.168.1.2'},
            #         ],
            #     },
            # ],
            # 'ha': {
            #     'mode': 'hot-standby',  # or load-balancing
            #     'this_server': None,  # defaults to the node's hostname
            #     'heartbeat_delay': 10000,
            #     'max_response_delay': 60000,
            #     'max_unacked_clients': 5,
            #     'peers': {
            #         'server1.example.com': {'url': 'http://192.168.1.10:8000/', 'role': 'primary'},
            #         'server2.example.com': {'url': 'http://192.168.1.11:8000/', 'role': 'standby'},
            #     },
            #
            #     # instead of listing peers, collect them from all nodes of the same group
            #     'peer_group': None,
            #     'url': 'http://192.168.1.10:8000/',  # our own url, used by the other nodes
            #     'role': 'primary',  # our own role, used by the other nodes
            # },
        },

        'dhcp6': {
            'enabled': False,
            # same as dhcp4, subnets may also carry pd_pools:
            # 'subnets': [
            #     {
            #         'subnet': '2001:db8:1::/64',  # file name 2001-db8-1-64
            #         'pools': [{'pool': '2001:db8:1::100 - 2001:db8:1::200'}, ],
            #         'pd_pools': [{'prefix': '2001:db8:8::', 'prefix_len': 56, 'delegated_len': 64}, ],
            #     },
            # ],
        },

        'ddns': {
            'enabled': False,
            'ip_address': '127.0.0.1',
            'port': 53001,
            # 'tsig_keys': [
            #     {'name': 'ddns-key', 'algorithm': 'HMAC-SHA256', 'secret': 'base64encodedkey=='},
            # ],
            # 'forward_ddns': {
            #     'ddns_domains': [
            #         {
            #             'name': 'example.com.',
            #             'key_name': 'ddns-key',
            #             'dns_servers': [{'ip_address': '192.168.1.1', 'port': 53}, ],
            #         },
            #     ],
            # },
        },

        # ready-made kea shared-network structures, each needs a name
        'shared_networks': {
            'dhcp4': [],
            'dhcp6': [],
        },
    },
}


@metadata_reactor.provides(
    'kea/dhcp4/ha/peers',
    'kea/dhcp6/ha/peers',
)
def find_ha_peers(metadata):
    result = {}

    for protocol in ['dhcp4', 'dhcp6']:
        peer_group = metadata.get(f'kea/{protocol}/ha/peer_group', None)
        if peer_group is None:
            continue

        peers = {}
        for peer in sorted(repo.nodes, key=lambda x: x.name):
            if not peer.has_bundle('kea'):
                continue

            if peer.metadata.get(f'kea/{protocol}/ha/peer_group', None) != peer_group:
                continue

            peer_name = peer.metadata.get(f'kea/{protocol}/ha/this_server', None)
            if peer_name is None:
                peer_name = peer.hostname

            peers[peer_name] = {
                'url': peer.metadata.get(f'kea/{protocol}/ha/url'),
                'role': peer.metadata.get(f'kea/{protocol}/ha/role'),
            }

        result[protocol] = {
            'ha': {
                'peers': peers,
            },
        }

    if not result:
        raise DoNotRunAgain

    return {
        'kea': result,
    }
