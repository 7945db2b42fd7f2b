"""Shared fixtures: tiny loopback TCP servers for network tests."""

import socket
import threading

import pytest


class BannerServer:
    """Accepts connections on 127.0.0.1 and replies with a fixed payload."""

    def __init__(self, reply: bytes = b"", read_first: bool = True) -> None:
        self.reply = reply
        self.read_first = read_first
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(16)
        self.sock.settimeout(0.2)
        self.port = self.sock.getsockname()[1]
        self.received: list[bytes] = []
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self.sock.accept()
            except OSError:
                continue
            with conn:
                conn.settimeout(1.0)
                try:
                    if self.read_first:
                        self.received.append(conn.recv(1024))
                    if self.reply:
                        conn.sendall(self.reply)
                except OSError:
                    pass

    def close(self) -> None:
        self._stop.set()
        self._thread.join(timeout=2)
        self.sock.close()


@pytest.fixture
def banner_server():
    servers: list[BannerServer] = []

    def start(reply: bytes = b"", read_first: bool = True) -> BannerServer:
        server = BannerServer(reply, read_first)
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.close()


@pytest.fixture
def closed_port():
    """A loopback port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
