"""Human and JSON rendering of agent responses."""

import json

from pgdb_agent.core.models import DeployResult, InstanceView


def print_deploy(result: DeployResult, as_json: bool) -> None:
    out = {
        "name": result.name,
        "host": result.host,
        "port": result.port,
        "db": result.db,
        "user": result.user,
        "password": result.password,
        "DATABASE_URL": result.database_url,
    }
    if as_json:
        print(json.dumps(out, indent=2))
        return
    for key, value in out.items():
        print(f"{key}: {value}")


def print_status(items: list[InstanceView], as_json: bool) -> None:
    if as_json:
        payload = {"items": [item.model_dump(exclude_none=True) for item in items]}
        print(json.dumps(payload, indent=2))
        return

    if not items:
        print("No databases found.")
        return

    for item in items:
        print(f"{item.name} ({item.postgres_version})")
        print(f"  host: {item.host}")
        print(f"  port: {item.host_port}")
        print(f"  db: {item.db}")
        print(f"  user: {item.user}")
        print(f"  created_at: {item.created_at}")
        print(f"  DATABASE_URL: {item.database_url}")


def print_destroy(name: str, as_json: bool) -> None:
    if as_json:
        print(json.dumps({"name": name, "ok": True}, indent=2))
        return
    print(f"Destroyed {name}")
