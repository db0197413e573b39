from kea_bundle import compile_node

kea_config = node.metadata.get('kea')

# raises a ConfigError (a BundleError) before any item exists if the
# metadata is inconsistent, e.g. this_server is not one of the HA peers
compiled = compile_node(kea_config, fqdn=node.hostname)

directories = {
    kea_config.get('config_dir'): {
        'owner': 'root',
        'group': 'root',
        'mode': '0755',
    },
}

# subnets4.d and friends only hold what we render
for directory in compiled.directories:
    directories[directory] = {
        'owner': 'root',
        'group': 'root',
        'mode': '0755',
        'purge': True,
    }

files = {}
for path, content in compiled.files.items():
    files[path] = {
        'owner': 'root',
        'group': 'root',
        'mode': '0644',
        'content': content,
    }
