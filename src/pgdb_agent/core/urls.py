"""Connection URL and advertised host derivation."""

from urllib.parse import quote, quote_plus

from pgdb_agent.core.models import DBInstance

LOOPBACK_HOST = "127.0.0.1"


def database_url(instance: DBInstance) -> str:
    """Build the libpq connection URL for an instance.

    User and password are query-escaped, the database name path-escaped.
    """
    user = quote_plus(instance.user)
    password = quote_plus(instance.password)
    db = quote(instance.db, safe="")
    return (
        f"postgres://{user}:{password}@{instance.host}:{instance.host_port}/{db}"
        "?sslmode=disable"
    )


def derive_host(public_host: str, request_host: str) -> str:
    """Resolve the host advertised to callers.

    An explicit public host wins. Otherwise the inbound request's Host
    header is used with its port and IPv6 brackets stripped, falling back
    to the loopback address.
    """
    if public_host.strip():
        return public_host

    host_only = request_host
    if ":" in request_host:
        host_only = _split_host(request_host)

    host_only = host_only.strip("[]")
    return host_only or LOOPBACK_HOST


def _split_host(request_host: str) -> str:
    # A bare IPv6 literal without brackets has no port to strip
    if request_host.count(":") > 1 and not request_host.startswith("["):
        return request_host
    if request_host.startswith("["):
        return request_host[1:].partition("]")[0]
    return request_host.rpartition(":")[0]
