"""Write a compiled file set to disk without bundlewrap.

Writes are idempotent: files are only touched when their content changed,
so running twice with the same input reports no changes the second time.
Managed include directories are purged of files that are no longer part of
the compiled set.
"""
import os
from os.path import dirname, exists, isdir, islink, join
from shutil import rmtree

from loguru import logger

log = logger.bind(name='kea_bundle.output')


def _target(root, path):
    return join(root, path.lstrip('/'))


def _read(path):
    if not exists(path):
        return None
    with open(path, encoding='utf-8') as f:
        return f.read()


def write_files(compiled, root='/'):
    """Bring ``root`` in line with ``compiled``, return the changed paths."""
    changed = []

    for directory in compiled.directories:
        os.makedirs(_target(root, directory), mode=0o755, exist_ok=True)

    for path, content in compiled.files.items():
        target = _target(root, path)
        if _read(target) == content:
            continue

        os.makedirs(dirname(target), mode=0o755, exist_ok=True)
        tmp = f'{target}.tmp'
        with open(tmp, 'w', encoding='utf-8') as f:
            f.write(content)
        os.chmod(tmp, 0o644)
        os.replace(tmp, target)

        log.info('wrote {}', path)
        changed += [path, ]

    for directory in compiled.directories:
        target_dir = _target(root, directory)
        for entry in sorted(os.listdir(target_dir)):
            path = join(directory, entry)
            if path in compiled.files:
                continue

            target = join(target_dir, entry)
            if isdir(target) and not islink(target):
                rmtree(target)
            else:
                os.remove(target)

            log.info('purged {}', path)
            changed += [path, ]

    return changed
