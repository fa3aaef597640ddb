# Mock Winston wave server for testing
import socket
import struct
import threading
import time
import logging
import zlib

logger = logging.getLogger(__name__)


# ---- response builders ----

def version_response(version=4):
    return f"PROTOCOL_VERSION: {version}\n".encode("ascii")


def binary_response(body, compress=False, header="OK"):
    """Header line ending in the body length, then the (optionally compressed) body."""
    if compress:
        body = zlib.compress(body)
    return f"{header} {len(body)}\n".encode("ascii") + body


def empty_response(header="OK"):
    return f"{header} 0\n".encode("ascii")


def wave_body(start_j2k, sample_rate, samples):
    return struct.pack(">ddi", start_j2k, sample_rate, len(samples)) + \
        struct.pack(f">{len(samples)}i", *samples)


def rows_body(rows):
    body = struct.pack(">i", len(rows))
    for row in rows:
        body += struct.pack(f">{len(row)}d", *row)
    return body


def channels_response(lines):
    text = f"GC {len(lines)}\n" + "".join(line + "\n" for line in lines)
    return text.encode("ascii")


class MockWWSServer:
    """
    Mock Winston wave server for testing.

    Listens on an ephemeral port and answers each connection's first command
    according to the mode:

        normal       send the scripted response, keep the socket open
        silent       read the command, never answer
        partial      send the first half of the response, then go silent
        close_early  read the command and close without answering
        close_after  send the scripted response, then close

    Responses are looked up by command keyword ("VERSION", "GETWAVERAW", ...).
    """

    def __init__(self, mode='normal', responses=None, host='127.0.0.1'):
        self.host = host
        self.port = None
        self.mode = mode
        self.responses = dict(responses or {})
        self.running = False
        self.commands = []
        self.connection_count = 0
        self.closed_by_client = threading.Event()
        self._server = None
        self._clients = []
        self._lock = threading.Lock()

    def start(self):
        """Bind to an ephemeral port and start accepting."""
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._server.bind((self.host, 0))
        self._server.listen(5)
        self._server.settimeout(0.2)
        self.port = self._server.getsockname()[1]
        self.running = True

        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()
        logger.info(f"Mock wave server started on {self.host}:{self.port} ({self.mode})")
        return self

    def _accept_loop(self):
        while self.running:
            try:
                client, addr = self._server.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            with self._lock:
                self.connection_count += 1
                self._clients.append(client)
            logger.debug(f"Connection from {addr}")
            threading.Thread(target=self._handle, args=(client,), daemon=True).start()

    def _handle(self, client):
        try:
            command = self._read_line(client)
            if command is None:
                self.closed_by_client.set()
                return
            with self._lock:
                self.commands.append(command)

            keyword = command.split(":")[0].split()[0] if command.strip() else ""
            response = self.responses.get(keyword, b"")

            if self.mode == 'close_early':
                return
            if self.mode == 'normal' or self.mode == 'close_after':
                client.sendall(response)
            elif self.mode == 'partial':
                client.sendall(response[:max(1, len(response) // 2)])

            if self.mode == 'close_after':
                return

            # Hold the connection until the client closes it
            while self.running:
                data = client.recv(4096)
                if not data:
                    self.closed_by_client.set()
                    break
        except OSError as e:
            if self.running:
                logger.debug(f"Mock server connection error: {e}")
        finally:
            try:
                client.close()
            except OSError:
                pass

    @staticmethod
    def _read_line(client):
        buffer = b""
        while b"\n" not in buffer:
            data = client.recv(1024)
            if not data:
                return None
            buffer += data
        return buffer.split(b"\n", 1)[0].decode("ascii")

    def wait_for_commands(self, count, timeout=2.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if len(self.commands) >= count:
                    return True
            time.sleep(0.01)
        return False

    def wait_for_connections(self, count, timeout=2.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if self.connection_count >= count:
                    return True
            time.sleep(0.01)
        return False

    def stop(self):
        """Stop the mock server."""
        self.running = False
        if self._server:
            self._server.close()
        with self._lock:
            clients, self._clients = self._clients, []
        for client in clients:
            try:
                client.close()
            except OSError:
                pass
        logger.info("Mock server stopped")


def unused_port():
    """A local port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
