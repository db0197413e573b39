"""Client for the kea control socket.

Kea daemons accept JSON commands on a UNIX stream socket and answer with a
single JSON document before closing the connection::

    {"command": "status-get"}
    {"result": 0, "arguments": {"high-availability": [...], ...}}
"""
import json
import socket
import time

from loguru import logger

from .enums import KeaResultCodes
from .exceptions import KeaCommandError, KeaControlError
from .models import KeaPaths
from .naming import control_socket_path

log = logger.bind(name='kea_bundle.control')


class KeaControlClient:
    def __init__(self, socket_path, timeout=10):
        self._socket_path = socket_path
        self._timeout = timeout

    @classmethod
    def for_protocol(cls, protocol, paths=None, **kwargs):
        return cls(control_socket_path(paths or KeaPaths(), protocol), **kwargs)

    @property
    def socket_path(self):
        return self._socket_path

    def _send_request(self, request):
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(self._timeout)
                sock.connect(self._socket_path)
                sock.sendall(json.dumps(request).encode())
                return self._read_response(sock)
        except OSError as e:
            raise KeaControlError(f'cannot talk to kea on {self._socket_path}: {e}') from e

    def _read_response(self, sock):
        response_chunks = []
        while chunk := sock.recv(4096):
            response_chunks.append(chunk)

        try:
            response = json.loads(b''.join(response_chunks).decode())
        except ValueError as e:
            raise KeaControlError(f'invalid response from {self._socket_path}: {e}') from e

        # the control agent wraps answers in a list, one per service
        if isinstance(response, list) and len(response) == 1:
            response = response[0]
        if not isinstance(response, dict):
            raise KeaControlError(f'unexpected response from {self._socket_path}: {response!r}')
        return response

    def send_command(self, command, arguments=None, service=None, accept=(KeaResultCodes.SUCCESS, )):
        request = {'command': command}
        if service:
            request['service'] = list(service)
        if arguments is not None:
            request['arguments'] = arguments

        response = self._send_request(request)
        result = response.get('result')
        if result not in accept:
            log.warning('{} on {} returned {}: {}', command, self._socket_path, result, response.get('text'))
            raise KeaCommandError(command, result, response.get('text'))
        return response

    def status_get(self):
        return self.send_command('status-get').get('arguments', {})

    def ha_heartbeat(self):
        # {'result': 0, 'text': 'HA peer status returned.',
        #  'arguments': {'state': 'hot-standby', 'date-time': '...', 'unsent-update-count': 0}}
        return self.send_command('ha-heartbeat').get('arguments', {})

    def list_commands(self):
        return self.send_command('list-commands').get('arguments', [])

    def config_get(self):
        return self.send_command('config-get').get('arguments', {})

    def version_get(self):
        return self.send_command('version-get')

    def lease4_get_all(self):
        response = self.send_command(
            'lease4-get-all',
            accept=(KeaResultCodes.SUCCESS, KeaResultCodes.EMPTY),
        )
        return response.get('arguments', {}).get('leases', [])

    def get_ha_status(self):
        """First HA relationship reported by status-get, None without HA."""
        relationships = self.status_get().get('high-availability', None) or []
        if not relationships:
            return None
        return relationships[0]

    def ha_state(self):
        status = self.get_ha_status()
        if status is None:
            return None
        return status.get('ha-servers', {}).get('local', {}).get('state', None)

    def wait_for_ha_state(self, state, timeout=30, interval=1):
        """Poll status-get until the local HA state is ``state``.

        Returns False if the state was not reached within ``timeout`` seconds.
        The daemon may be restarting meanwhile, so control errors only end
        the wait once the time is up.
        """
        deadline = time.monotonic() + timeout
        while True:
            try:
                current = self.ha_state()
            except KeaControlError as e:
                log.debug('waiting for {} on {}: {}', state, self._socket_path, e)
                current = None

            if current == state:
                return True
            if time.monotonic() >= deadline:
                log.debug('{} still in state {}, wanted {}', self._socket_path, current, state)
                return False
            time.sleep(interval)
