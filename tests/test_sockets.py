import errno
import select
import socket

import pytest

from minnow.address import Address
from minnow.errors import UnixError
from minnow.sockets import TCPSocket, UDPSocket

LOOPBACK = "127.0.0.1"


def _loopback():
    return Address.from_ip_port(LOOPBACK, 0)


def _listening_server():
    server = TCPSocket()
    server.set_reuseaddr()
    server.bind(_loopback())
    server.listen()
    return server


def _free_port():
    with TCPSocket() as probe:
        probe.bind(_loopback())
        return probe.local_address().port()


@pytest.fixture
def server():
    with _listening_server() as sock:
        yield sock


@pytest.fixture
def connected(server):
    with TCPSocket() as client:
        client.connect(server.local_address())
        yield server, client


@pytest.fixture
def tcp_pair(connected):
    server, client = connected
    with server.accept() as conn:
        yield server, client, conn


@pytest.fixture
def udp_receiver():
    with UDPSocket() as receiver:
        receiver.bind(_loopback())
        yield receiver


@pytest.fixture
def udp_sender():
    with UDPSocket() as sender:
        yield sender


def test_tcp_round_trip(tcp_pair):
    _, client, conn = tcp_pair
    client.write(b"hello")
    assert conn.read() == b"hello"
    conn.write(b"world")
    assert client.read() == b"world"


def test_tcp_addresses_match_between_peers(tcp_pair):
    server, client, conn = tcp_pair
    assert client.peer_address() == server.local_address()
    assert conn.peer_address() == client.local_address()
    assert conn.local_address() == server.local_address()


def test_bound_port_is_reported(server):
    address = server.local_address()
    assert address.ip() == LOOPBACK
    assert 0 < address.port() <= 65535


def test_accept_counts_as_read(connected):
    server, _ = connected
    before = server.read_count()
    with server.accept():
        assert server.read_count() == before + 1


@pytest.mark.parametrize(
    "how, read_delta, write_delta",
    [(socket.SHUT_RD, 1, 0), (socket.SHUT_WR, 0, 1), (socket.SHUT_RDWR, 1, 1)],
)
def test_shutdown_counts(tcp_pair, how, read_delta, write_delta):
    _, client, _ = tcp_pair
    reads, writes = client.read_count(), client.write_count()
    client.shutdown(how)
    assert (client.read_count(), client.write_count()) == (reads + read_delta, writes + write_delta)


def test_shutdown_write_gives_peer_eof(tcp_pair):
    _, client, conn = tcp_pair
    client.shutdown(socket.SHUT_WR)
    assert conn.read() == b""
    assert conn.eof()


def test_shutdown_with_invalid_how_raises(tcp_pair):
    _, client, _ = tcp_pair
    with pytest.raises(UnixError):
        client.shutdown(99)


def test_connect_refused():
    port = _free_port()
    with TCPSocket() as client:
        with pytest.raises(UnixError) as info:
            client.connect(Address.from_ip_port(LOOPBACK, port))
    assert info.value.error_code == errno.ECONNREFUSED
    assert str(info.value).startswith("connect: ")


def test_nonblocking_connect_error_is_reported():
    port = _free_port()
    with TCPSocket() as client:
        client.set_blocking(False)
        with pytest.raises(UnixError) as info:
            client.connect(Address.from_ip_port(LOOPBACK, port))
            select.select([], [client.fd_num()], [], 5)
            client.throw_if_error()
    assert info.value.error_code == errno.ECONNREFUSED


def test_bind_in_use_raises(server):
    with TCPSocket() as other:
        with pytest.raises(UnixError) as info:
            other.bind(server.local_address())
    assert info.value.error_code == errno.EADDRINUSE


def test_accept_without_listen_raises():
    with TCPSocket() as sock:
        sock.bind(_loopback())
        with pytest.raises(UnixError) as info:
            sock.accept()
    assert info.value.error_code == errno.EINVAL


def test_closed_socket_raises():
    sock = TCPSocket()
    sock.close()
    assert sock.closed()
    with pytest.raises(UnixError) as info:
        sock.local_address()
    assert info.value.error_code == errno.EBADF


def test_udp_sendto_and_recv(udp_receiver, udp_sender):
    udp_sender.bind(_loopback())
    udp_sender.sendto(udp_receiver.local_address(), b"datagram")
    source, payload = udp_receiver.recv()
    assert payload == b"datagram"
    assert source == udp_sender.local_address()
    assert (udp_sender.write_count(), udp_receiver.read_count()) == (1, 1)


def test_udp_connected_send(udp_receiver, udp_sender):
    udp_sender.connect(udp_receiver.local_address())
    messages = [b"one", b"two"]
    for message in messages:
        udp_sender.send(message)
    assert [udp_receiver.recv()[1] for _ in messages] == messages


def test_udp_oversized_datagram_raises(udp_receiver, udp_sender):
    udp_sender.sendto(udp_receiver.local_address(), b"x" * (UDPSocket.READ_BUFFER_SIZE + 1))
    with pytest.raises(RuntimeError, match="oversized"):
        udp_receiver.recv()


def test_udp_nonblocking_recv_without_data(udp_receiver):
    udp_receiver.set_blocking(False)
    assert udp_receiver.recv() is None
    assert udp_receiver.read_count() == 0