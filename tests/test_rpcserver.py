import os
import socket
import tempfile
import threading

import pytest

from albertcore.rpcserver import InstanceRunningError, RPCServer, send_message


@pytest.fixture
def socket_path():
    with tempfile.TemporaryDirectory() as d:
        yield os.path.join(d, "ipc_socket")


def echo_commands():
    return {"show": lambda text: f"shown {text}", "hide": lambda _text: "hidden"}


def test_handle_message_dispatches_with_params(socket_path):
    with RPCServer(socket_path) as server:
        server.set_commands(echo_commands())
        assert server.handle_message("  show hello world") == "shown hello world"
        assert server.handle_message("hide") == "hidden"


def test_commands_command_lists_all(socket_path):
    with RPCServer(socket_path) as server:
        server.set_commands(echo_commands())
        assert server.handle_message("commands") == "\n".join(sorted(["commands", "hide", "show"]))


def test_invalid_command_lists_alternatives(socket_path):
    with RPCServer(socket_path) as server:
        server.set_commands(echo_commands())
        lines = server.handle_message("nope x").split("\n")
        assert lines[0] == "Invalid RPC command: 'nope x'. Use these"
        assert lines[1:] == sorted(["commands", "hide", "show"])


def test_round_trip_over_socket(socket_path):
    server = RPCServer(socket_path, read_timeout=1.0)
    server.set_commands(echo_commands())
    thread = threading.Thread(target=server.serve_forever)
    thread.start()
    try:
        assert send_message("show abc", socket_path) == "shown abc"
        assert send_message("hide", socket_path) == "hidden"
    finally:
        server.close()
        thread.join(timeout=5)
    assert not thread.is_alive()


def test_second_instance_is_refused(socket_path):
    with RPCServer(socket_path):
        with pytest.raises(InstanceRunningError):
            RPCServer(socket_path)


def test_stale_socket_is_replaced(socket_path):
    stale = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    stale.bind(socket_path)
    stale.close()
    assert os.path.exists(socket_path)
    with RPCServer(socket_path) as server:
        server.set_commands(echo_commands())
        assert server.handle_message("hide") == "hidden"


def test_close_removes_socket_file(socket_path):
    with RPCServer(socket_path) as server:
        server.set_commands(echo_commands())
        assert server.handle_message("hide") == "hidden"
        assert os.path.exists(socket_path)
    assert not os.path.exists(socket_path)
    with pytest.raises(ConnectionError):
        send_message("hide", socket_path)


def test_send_without_server_raises(socket_path):
    with pytest.raises(ConnectionError):
        send_message("show", socket_path)


def test_send_to_unresponsive_server_times_out(socket_path):
    with RPCServer(socket_path):
        with pytest.raises(TimeoutError):
            send_message("show", socket_path)