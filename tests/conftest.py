import json
import re

import pytest

INCLUDE = re.compile(r'<\?include "([^"]+)"\?>')


def load_kea(text):
    """Parse kea JSON, include directives become the included path."""
    return json.loads(INCLUDE.sub(lambda m: json.dumps(m.group(1)), text))


@pytest.fixture
def peers():
    return {
        'server1.example.com': {
            'url': 'http://192.168.1.10:8000/',
            'role': 'primary',
        },
        'server2.example.com': {
            'url': 'http://192.168.1.11:8000/',
            'role': 'standby',
        },
    }


@pytest.fixture
def hot_standby(peers):
    return {
        'mode': 'hot-standby',
        'this_server': 'server1.example.com',
        'peers': peers,
    }


@pytest.fixture
def dhcp4():
    return {
        'enabled': True,
        'interfaces': ['eth0'],
        'subnets': [
            {
                'name': 'office-lan',
                'subnet': '192.168.1.0/24',
                'pools': [{'pool': '192.168.1.100 - 192.168.1.200'}],
                'option_data': [{'name': 'routers', 'data': '192.168.1.1'}],
            },
            {
                'subnet': '192.168.2.0/24',
                'pools': [{'pool': '192.168.2.100 - 192.168.2.200'}],
            },
        ],
    }


@pytest.fixture
def dhcp6():
    return {
        'enabled': True,
        'interfaces': ['eth0'],
        'subnets': [
            {
                'subnet': '2001:db8:1::/64',
                'pools': [{'pool': '2001:db8:1::100 - 2001:db8:1::200'}],
                'pd_pools': [{'prefix': '2001:db8:8::', 'prefix_len': 56, 'delegated_len': 64}],
            },
        ],
    }


@pytest.fixture
def ddns():
    return {
        'enabled': True,
        'tsig_keys': [
            {
                'name': 'ddns-key',
                'algorithm': 'HMAC-SHA256',
                'secret': 'base64encodedkey==',
            },
        ],
        'forward_ddns': {
            'ddns_domains': [
                {
                    'name': 'example.com.',
                    'key_name': 'ddns-key',
                    'dns_servers': [
                        {'ip_address': '192.168.1.1', 'port': 53},
                    ],
                },
            ],
        },
    }


@pytest.fixture
def kea_json():
    return load_kea
