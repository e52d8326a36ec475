"""Domain models for database instances and the registry document."""

from pydantic import AliasChoices, BaseModel, Field


class DBInstance(BaseModel):
    """One provisioned database.

    Credentials and runtime handles are fixed at creation; instances are
    never mutated in place, only appended to or removed from the registry.
    """

    name: str
    container_id: str
    volume_name: str
    host: str
    host_port: int
    db: str
    user: str
    password: str
    created_at: str
    postgres_version: str
    size_gb: int | None = None

    model_config = {"frozen": True}


class Registry(BaseModel):
    """Registry document: ``{"items": [...]}`` in insertion order."""

    items: list[DBInstance] = Field(default_factory=list)


class DeployRequest(BaseModel):
    """Deploy request. All fields optional."""

    name: str | None = None
    size_gb: int | None = Field(
        default=None,
        validation_alias=AliasChoices("size_gb", "size_hint"),
    )
    version: int | None = None


class DeployResult(BaseModel):
    """Connection parameters returned to the caller after a deploy."""

    name: str
    host: str
    port: int
    db: str
    user: str
    password: str
    database_url: str
    created_at: str
    postgres_version: str


class InstanceView(BaseModel):
    """Status snapshot of one registry entry with its derived URL."""

    name: str
    container_id: str
    volume_name: str
    host: str
    host_port: int
    db: str
    user: str
    password: str
    created_at: str
    postgres_version: str
    size_gb: int | None = None
    database_url: str
