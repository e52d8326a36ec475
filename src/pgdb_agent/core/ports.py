"""Free host port reservation."""

import socket

from pgdb_agent.core.errors import RuntimeAdapterError


def reserve_port(host: str = "0.0.0.0") -> int:
    """Reserve an ephemeral port by binding to port 0 and releasing it.

    The port is free at the time of the probe only. Another process may
    bind it before the container does; that surfaces as a port conflict
    from the runtime and is retried by the deployer.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind((host, 0))
            return sock.getsockname()[1]
    except OSError as exc:
        raise RuntimeAdapterError(f"reserve free port: {exc}") from exc
