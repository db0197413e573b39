import pytest

from kea_bundle import (
    ConfigError,
    DuplicateSubnetFilenameError,
    InvalidParameterError,
    UnknownServerError,
    compile_node,
    compile_protocol,
)
from kea_bundle.models import KeaPaths, ProtocolConfig
from kea_bundle.render import Include, dumps

MAIN4 = '/etc/kea/kea-dhcp4.conf'
MAIN6 = '/etc/kea/kea-dhcp6.conf'
SUBNETS4 = '/etc/kea/kea-dhcp4-subnets.json'
SUBNETS6 = '/etc/kea/kea-dhcp6-subnets.json'


def test_minimal_dhcp4(kea_json):
    compiled = compile_protocol('dhcp4', {'enabled': True, 'interfaces': ['eth0']}, fqdn='x')

    assert sorted(compiled.files) == [
        '/etc/kea/kea-dhcp4-shared-networks.json',
        SUBNETS4,
        MAIN4,
    ]
    assert compiled.directories == ['/etc/kea/subnets4.d', '/etc/kea/shared-networks4.d']

    text = compiled.files[MAIN4]
    assert '"interfaces": ["eth0"]' in text
    assert '"valid-lifetime": 4000' in text

    dhcp4 = kea_json(text)['Dhcp4']
    assert dhcp4['lease-database'] == {'type': 'memfile', 'lfc-interval': 3600}
    assert dhcp4['control-socket'] == {
        'socket-type': 'unix',
        'socket-name': '/var/run/kea/kea-dhcp4-ctrl.sock',
    }
    assert dhcp4['renew-timer'] == 1000
    assert dhcp4['rebind-timer'] == 2000
    assert dhcp4['subnet4'] == SUBNETS4
    assert dhcp4['shared-networks'] == '/etc/kea/kea-dhcp4-shared-networks.json'
    assert 'preferred-lifetime' not in dhcp4
    assert 'hooks-libraries' not in dhcp4


def test_main_file_includes_subnet_list():
    text = compile_protocol('dhcp4', {}, fqdn='x').files[MAIN4]
    assert f'"subnet4": <?include "{SUBNETS4}"?>' in text
    assert '"shared-networks": <?include "/etc/kea/kea-dhcp4-shared-networks.json"?>' in text


def test_empty_subnets_give_empty_array():
    compiled = compile_protocol('dhcp4', {'subnets': []}, fqdn='x')
    assert compiled.files[SUBNETS4].strip() == '[]'
    assert compiled.files['/etc/kea/kea-dhcp4-shared-networks.json'].strip() == '[]'


def test_subnet_files(dhcp4, kea_json):
    compiled = compile_protocol('dhcp4', dhcp4, fqdn='x')

    assert compiled.files[SUBNETS4] == dumps([
        Include('/etc/kea/subnets4.d/office-lan.json'),
        Include('/etc/kea/subnets4.d/192.168.2.0-24.json'),
    ])
    assert kea_json(compiled.files['/etc/kea/subnets4.d/office-lan.json']) == {
        'subnet': '192.168.1.0/24',
        'pools': [{'pool': '192.168.1.100 - 192.168.1.200'}],
        'option-data': [{'name': 'routers', 'data': '192.168.1.1'}],
    }
    assert kea_json(compiled.files['/etc/kea/subnets4.d/192.168.2.0-24.json']) == {
        'subnet': '192.168.2.0/24',
        'pools': [{'pool': '192.168.2.100 - 192.168.2.200'}],
    }


def test_subnet_order_follows_input(dhcp4):
    dhcp4['subnets'].reverse()
    text = compile_protocol('dhcp4', dhcp4, fqdn='x').files[SUBNETS4]
    assert text.index('192.168.2.0-24.json') < text.index('office-lan.json')


def test_subnet_details(kea_json):
    config = {
        'subnets': [
            {
                'id': 42,
                'subnet': '10.0.0.0/24',
                'interface': 'eth1',
                'pools': [{'pool': '10.0.0.10 - 10.0.0.20', 'client_class': 'voip-phones'}],
                'reservations': [
                    {'hw_address': '00:23:32:aa:bb:cc', 'ip_address': '10.0.0.5', 'hostname': 'printer'},
                ],
                'valid_lifetime': 600,
            },
        ],
    }
    compiled = compile_protocol('dhcp4', config, fqdn='x')
    assert kea_json(compiled.files['/etc/kea/subnets4.d/10.0.0.0-24.json']) == {
        'id': 42,
        'subnet': '10.0.0.0/24',
        'interface': 'eth1',
        'pools': [{'pool': '10.0.0.10 - 10.0.0.20', 'client-class': 'voip-phones'}],
        'reservations': [
            {'hw-address': '00:23:32:aa:bb:cc', 'ip-address': '10.0.0.5', 'hostname': 'printer'},
        ],
        'valid-lifetime': 600,
    }


def test_duplicate_subnet_filenames(dhcp4):
    dhcp4['subnets'][1]['name'] = 'office-lan'
    with pytest.raises(DuplicateSubnetFilenameError, match='office-lan.json'):
        compile_protocol('dhcp4', dhcp4, fqdn='x')


def test_name_colliding_with_derived_stem(dhcp4):
    dhcp4['subnets'][0]['name'] = '192.168.2.0-24'
    with pytest.raises(DuplicateSubnetFilenameError):
        compile_protocol('dhcp4', dhcp4, fqdn='x')


@pytest.mark.parametrize('subnet', [
    {'subnet': 'not-a-network'},
    {'subnet': '192.168.1.1/24'},
    {'subnet': '2001:db8::/64'},
    {'name': '../escape', 'subnet': '192.168.1.0/24'},
    {'name': 42, 'subnet': '192.168.1.0/24'},
    {'pools': []},
])
def test_invalid_dhcp4_subnets(subnet):
    with pytest.raises(InvalidParameterError):
        compile_protocol('dhcp4', {'subnets': [subnet]}, fqdn='x')


@pytest.mark.parametrize('protocol, first, second', [
    ('dhcp6', '2001:db8::/64', '2001:0db8::/64'),
    ('dhcp6', '2001:db8::/64', '2001:DB8::/64'),
    ('dhcp4', '10.0.0.0/24', '10.0.0.0/24'),
])
def test_same_network_spelled_twice(protocol, first, second):
    config = {'subnets': [{'subnet': first}, {'subnet': second}]}
    with pytest.raises(DuplicateSubnetFilenameError, match='defined twice'):
        compile_protocol(protocol, config, fqdn='x')


def test_same_network_under_two_names():
    config = {'subnets': [{'name': 'a', 'subnet': '10.0.0.0/24'}, {'name': 'b', 'subnet': '10.0.0.0/24'}]}
    with pytest.raises(DuplicateSubnetFilenameError, match="'10.0.0.0/24' is defined twice"):
        compile_protocol('dhcp4', config, fqdn='x')


def test_subnet_is_written_in_compressed_form(kea_json):
    compiled = compile_protocol('dhcp6', {'subnets': [{'subnet': '2001:0DB8:0001::/64'}]}, fqdn='x')
    subnet = kea_json(compiled.files['/etc/kea/subnets6.d/2001-db8-1-64.json'])
    assert subnet['subnet'] == '2001:db8:1::/64'


def test_shared_network_name_must_be_a_string():
    with pytest.raises(InvalidParameterError, match='cannot be used as a filename'):
        compile_protocol('dhcp4', {}, fqdn='x', shared_networks=[{'name': 7}])


def test_pd_pools_are_dhcp6_only():
    subnet = {'subnet': '10.0.0.0/24', 'pd_pools': [{'prefix': '2001:db8::', 'prefix_len': 48}]}
    with pytest.raises(InvalidParameterError, match='only supported for dhcp6'):
        compile_protocol('dhcp4', {'subnets': [subnet]}, fqdn='x')


def test_unknown_keys_are_rejected():
    with pytest.raises(InvalidParameterError, match='valid_lifetme'):
        compile_protocol('dhcp4', {'valid_lifetme': 7200}, fqdn='x')


def test_dhcp6(dhcp6, kea_json):
    compiled = compile_protocol('dhcp6', dhcp6, fqdn='x')

    dhcp = kea_json(compiled.files[MAIN6])['Dhcp6']
    assert dhcp['preferred-lifetime'] == 3000
    assert dhcp['valid-lifetime'] == 4000
    assert dhcp['subnet6'] == SUBNETS6
    assert dhcp['control-socket']['socket-name'] == '/var/run/kea/kea-dhcp6-ctrl.sock'

    assert '<?include "/etc/kea/subnets6.d/2001-db8-1-64.json"?>' in compiled.files[SUBNETS6]
    assert kea_json(compiled.files['/etc/kea/subnets6.d/2001-db8-1-64.json']) == {
        'subnet': '2001:db8:1::/64',
        'pools': [{'pool': '2001:db8:1::100 - 2001:db8:1::200'}],
        'pd-pools': [{'prefix': '2001:db8:8::', 'prefix-len': 56, 'delegated-len': 64}],
    }
    assert compiled.directories == ['/etc/kea/subnets6.d', '/etc/kea/shared-networks6.d']


def test_dhcp6_rejects_ipv4_subnets():
    with pytest.raises(InvalidParameterError, match='not an IPv6 network'):
        compile_protocol('dhcp6', {'subnets': [{'subnet': '10.0.0.0/24'}]}, fqdn='x')


def test_globals(kea_json):
    config = {
        'valid_lifetime': 7200,
        'renew_timer': 1800,
        'rebind_timer': 3600,
        'authoritative': True,
        'calculate_tee_times': True,
        't1_percent': 0.5,
        't2_percent': 0.8,
        'allocator': 'random',
        'ddns_send_updates': True,
        'ddns_qualifying_suffix': 'example.com',
        'ddns_replace_client_name': 'when-not-present',
        'sanity_checks': {'lease_checks': 'fix-del'},
        'expired_leases_processing': {
            'reclaim_timer_wait_time': 10,
            'hold_reclaimed_time': 3600,
        },
        'option_data': [
            {'name': 'domain-name-servers', 'data': '8.8.8.8, 8.8.4.4'},
            {'name': 'domain-name', 'data': 'example.com', 'always_send': True},
        ],
        'client_classes': [
            {'name': 'voip-phones', 'test': "substring(option[60].hex,0,6) == 'Polycom'"},
        ],
    }
    text = compile_protocol('dhcp4', config, fqdn='x').files[MAIN4]
    assert '"t1-percent": 0.5' in text
    assert '"reclaim-timer-wait-time": 10' in text

    dhcp4 = kea_json(text)['Dhcp4']
    assert dhcp4['valid-lifetime'] == 7200
    assert dhcp4['renew-timer'] == 1800
    assert dhcp4['rebind-timer'] == 3600
    assert dhcp4['authoritative'] is True
    assert dhcp4['calculate-tee-times'] is True
    assert dhcp4['t2-percent'] == 0.8
    assert dhcp4['allocator'] == 'random'
    assert dhcp4['ddns-send-updates'] is True
    assert dhcp4['ddns-qualifying-suffix'] == 'example.com'
    assert dhcp4['ddns-replace-client-name'] == 'when-not-present'
    assert dhcp4['dhcp-ddns'] == {'enable-updates': True}
    assert dhcp4['sanity-checks'] == {'lease-checks': 'fix-del'}
    assert dhcp4['expired-leases-processing'] == {
        'reclaim-timer-wait-time': 10,
        'hold-reclaimed-time': 3600,
    }
    assert dhcp4['option-data'][1] == {'name': 'domain-name', 'data': 'example.com', 'always-send': True}
    assert dhcp4['client-classes'][0]['name'] == 'voip-phones'


def test_dhcp6_only_globals():
    with pytest.raises(InvalidParameterError, match='pd_allocator'):
        compile_protocol('dhcp4', {'pd_allocator': 'iterative'}, fqdn='x')
    with pytest.raises(InvalidParameterError, match='authoritative'):
        compile_protocol('dhcp6', {'authoritative': True}, fqdn='x')


def test_pd_allocator(kea_json):
    text = compile_protocol('dhcp6', {'pd_allocator': 'iterative', 'store_extended_info': True}, fqdn='x').files[MAIN6]
    dhcp6 = kea_json(text)['Dhcp6']
    assert dhcp6['pd-allocator'] == 'iterative'
    assert dhcp6['store-extended-info'] is True


def test_lease_database(kea_json):
    config = {
        'lease_database': {
            'type': 'mysql',
            'name': 'kea_leases',
            'host': 'db.example.com',
            'port': 3306,
            'user': 'kea_user',
            'password': 'secret123',
        },
    }
    dhcp4 = kea_json(compile_protocol('dhcp4', config, fqdn='x').files[MAIN4])['Dhcp4']
    assert dhcp4['lease-database'] == {
        'type': 'mysql',
        'name': 'kea_leases',
        'host': 'db.example.com',
        'port': 3306,
        'user': 'kea_user',
        'password': 'secret123',
    }


def test_shared_networks(kea_json):
    networks = [
        {
            'name': 'floor-1',
            'subnet4': [{'id': 10, 'subnet': '10.1.0.0/24', 'pools': [{'pool': '10.1.0.10 - 10.1.0.99'}]}],
        },
        {
            'name': 'floor-2',
            'subnet4': [{'id': 11, 'subnet': '10.2.0.0/24'}],
        },
    ]
    compiled = compile_protocol('dhcp4', {}, fqdn='x', shared_networks=networks)

    listing = compiled.files['/etc/kea/kea-dhcp4-shared-networks.json']
    assert kea_json(listing) == [
        '/etc/kea/shared-networks4.d/floor-1.json',
        '/etc/kea/shared-networks4.d/floor-2.json',
    ]
    assert kea_json(compiled.files['/etc/kea/shared-networks4.d/floor-1.json']) == networks[0]


def test_shared_networks_need_unique_names():
    networks = [{'name': 'floor-1'}, {'name': 'floor-1'}]
    with pytest.raises(DuplicateSubnetFilenameError):
        compile_protocol('dhcp4', {}, fqdn='x', shared_networks=networks)


def test_custom_paths(kea_json):
    paths = KeaPaths(config_dir='/opt/kea/etc', run_dir='/opt/kea/run', hooks_dir='/opt/kea/lib/hooks')
    compiled = compile_protocol('dhcp4', {'subnets': [{'subnet': '10.0.0.0/24'}]}, fqdn='x', paths=paths)

    assert '/opt/kea/etc/subnets4.d/10.0.0.0-24.json' in compiled.files
    dhcp4 = kea_json(compiled.files['/opt/kea/etc/kea-dhcp4.conf'])['Dhcp4']
    assert dhcp4['subnet4'] == '/opt/kea/etc/kea-dhcp4-subnets.json'
    assert dhcp4['control-socket']['socket-name'] == '/opt/kea/run/kea-dhcp4-ctrl.sock'


def test_loaded_config_is_accepted(dhcp4):
    config = ProtocolConfig.from_metadata('dhcp4', dhcp4)
    assert compile_protocol('dhcp4', config, fqdn='x').files == compile_protocol('dhcp4', dhcp4, fqdn='x').files


def test_protocol_mismatch(dhcp4):
    config = ProtocolConfig.from_metadata('dhcp4', dhcp4)
    with pytest.raises(InvalidParameterError):
        compile_protocol('dhcp6', config, fqdn='x')


def test_unknown_protocol():
    with pytest.raises(InvalidParameterError, match="unknown protocol 'dhcp5'"):
        compile_protocol('dhcp5', {}, fqdn='x')


def test_output_is_deterministic(dhcp4, hot_standby):
    dhcp4['ha'] = hot_standby
    dhcp4['hooks_libraries'] = [{'library': 'libdhcp_lease_cmds.so'}]

    first = compile_protocol('dhcp4', dhcp4, fqdn='server1.example.com')
    second = compile_protocol('dhcp4', dhcp4, fqdn='server1.example.com')
    assert first.files == second.files
    assert list(first.files) == list(second.files)


def test_config_errors_are_bundle_errors(hot_standby):
    from bundlewrap.exceptions import BundleError

    hot_standby['this_server'] = 'nope'
    with pytest.raises(BundleError):
        compile_protocol('dhcp4', {'ha': hot_standby}, fqdn='x')


# --------------------------------------
# whole node
# --------------------------------------
def test_compile_node(dhcp4, dhcp6, ddns):
    metadata = {
        'config_dir': '/etc/kea',
        'dhcp4': dhcp4,
        'dhcp6': dhcp6,
        'ddns': ddns,
        'shared_networks': {'dhcp4': [], 'dhcp6': []},
    }
    compiled = compile_node(metadata, fqdn='x')

    for path in [MAIN4, MAIN6, '/etc/kea/kea-dhcp-ddns.conf', SUBNETS4, SUBNETS6]:
        assert path in compiled.files
    assert compiled.directories == [
        '/etc/kea/subnets4.d',
        '/etc/kea/shared-networks4.d',
        '/etc/kea/subnets6.d',
        '/etc/kea/shared-networks6.d',
    ]


def test_compile_node_skips_disabled_daemons(dhcp4, dhcp6):
    dhcp6['enabled'] = False
    compiled = compile_node({'dhcp4': dhcp4, 'dhcp6': dhcp6, 'ddns': {'enabled': False}}, fqdn='x')
    assert MAIN4 in compiled.files
    assert MAIN6 not in compiled.files
    assert '/etc/kea/kea-dhcp-ddns.conf' not in compiled.files


def test_compile_node_without_metadata():
    compiled = compile_node(None, fqdn='x')
    assert compiled.files == {}
    assert compiled.directories == []


def test_compile_node_is_all_or_nothing(dhcp4, dhcp6, hot_standby):
    # dhcp4 is fine, dhcp6 is broken: nothing at all is rendered
    hot_standby['this_server'] = 'unknown.example.com'
    dhcp6['ha'] = hot_standby

    with pytest.raises(UnknownServerError):
        compile_node({'dhcp4': dhcp4, 'dhcp6': dhcp6}, fqdn='x')


def test_compile_node_uses_shared_networks(dhcp4):
    metadata = {
        'dhcp4': dhcp4,
        'shared_networks': {'dhcp4': [{'name': 'floor-1', 'subnet4': []}]},
    }
    compiled = compile_node(metadata, fqdn='x')
    assert '/etc/kea/shared-networks4.d/floor-1.json' in compiled.files


def test_config_error_base(dhcp4):
    dhcp4['subnets'][1]['name'] = 'office-lan'
    with pytest.raises(ConfigError):
        compile_node({'dhcp4': dhcp4}, fqdn='x')
