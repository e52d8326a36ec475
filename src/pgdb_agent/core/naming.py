"""Resource naming for runtime resources."""


class ResourceNaming:
    """Deterministic container and volume names derived from instance names."""

    def __init__(self, prefix: str = "pgdb-") -> None:
        self._prefix = prefix

    def container_name(self, instance_name: str) -> str:
        return f"{self._prefix}{instance_name}"

    def volume_name(self, instance_name: str) -> str:
        return f"{self._prefix}{instance_name}"
