#!/usr/bin/env python3
"""
influxctl - developer CLI for the InfluxDB provider.

Applies a declarative manifest of InfluxDB resources, keeping the last
synchronized state of each resource in a local JSON state file.
"""

import asyncio
import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

import click
import yaml
from tabulate import tabulate

from influxdb_provider.config import CLIConfig
from influxdb_provider.context import ProviderData
from influxdb_provider.provider import InfluxDBProvider
from influxdb_provider.resources.base import Diagnostics, Resource

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# ${influxdb_bucket.metrics.id}
REFERENCE_PATTERN = re.compile(r"\$\{([a-z0-9_]+)\.([A-Za-z0-9_\-]+)\.([a-z0-9_]+)\}")


class StateStore:
    """Last synchronized state of every managed resource, kept in a JSON file."""

    def __init__(self, path: str):
        self.path = path
        self.provider: Dict[str, Any] = {}
        self.resources: List[Dict[str, Any]] = []

    def load(self) -> "StateStore":
        if os.path.exists(self.path):
            with open(self.path, "r") as f:
                data = json.load(f)
            self.provider = data.get("provider") or {}
            self.resources = data.get("resources") or []
        return self

    def save(self) -> None:
        with open(self.path, "w") as f:
            json.dump(
                {"provider": self.provider, "resources": self.resources},
                f,
                indent=2,
                sort_keys=True,
            )
            f.write("\n")

    def find(self, type_name: str, name: str) -> Optional[Dict[str, Any]]:
        for entry in self.resources:
            if entry["type"] == type_name and entry["name"] == name:
                return entry
        return None

    def put(self, type_name: str, name: str, state: Dict[str, Any]) -> None:
        entry = self.find(type_name, name)
        if entry is None:
            self.resources.append({"type": type_name, "name": name, "state": state})
        else:
            entry["state"] = state

    def remove(self, type_name: str, name: str) -> None:
        self.resources = [
            entry
            for entry in self.resources
            if not (entry["type"] == type_name and entry["name"] == name)
        ]


def load_manifest(filename: str) -> Dict[str, Any]:
    """Read a YAML or JSON manifest."""
    with open(filename, "r") as f:
        if filename.endswith(".yaml") or filename.endswith(".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise click.ClickException(f"{filename}: manifest must be a mapping")
    for item in data.get("resources") or []:
        if not isinstance(item, dict) or "type" not in item or "name" not in item:
            raise click.ClickException(
                f"{filename}: every resource needs a 'type' and a 'name'"
            )
    return data


def resolve_references(value: Any, store: StateStore) -> Any:
    """
    Substitute ``${type.name.attr}`` references with values from stored state.

    A string that is exactly one reference takes the referenced value as-is;
    references embedded in longer strings are interpolated as text.
    """
    if isinstance(value, dict):
        return {key: resolve_references(item, store) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_references(item, store) for item in value]
    if not isinstance(value, str):
        return value

    def lookup(match: "re.Match") -> Any:
        type_name, name, attr = match.groups()
        entry = store.find(type_name, name)
        if entry is None or entry["state"].get(attr) is None:
            logger.warning(f"Unresolved reference {match.group(0)}")
            raise click.ClickException(f"Unresolved reference {match.group(0)}")
        return entry["state"][attr]

    whole = REFERENCE_PATTERN.fullmatch(value)
    if whole:
        return lookup(whole)
    return REFERENCE_PATTERN.sub(lambda m: str(lookup(m)), value)


def public_provider_config(provider: InfluxDBProvider, declared: Dict[str, Any]):
    """Provider configuration with sensitive attributes removed, for the state file."""
    sensitive = provider.schema().sensitive_attributes()
    return {key: value for key, value in declared.items() if key not in sensitive}


def configure_provider(
    provider: InfluxDBProvider, declared: Dict[str, Any]
) -> ProviderData:
    response = provider.configure(declared)
    echo_diagnostics(response.diagnostics)
    if response.provider_data is None:
        raise click.ClickException("Provider configuration failed")
    return response.provider_data


def echo_diagnostics(diagnostics: Diagnostics, label: str = "") -> None:
    prefix = f"{label}: " if label else ""
    for diagnostic in diagnostics:
        click.echo(f"{prefix}{diagnostic}", err=True)


def check_attributes(resource: Resource, config: Dict[str, Any], label: str) -> None:
    """Reject unknown attributes and warn about ones that cannot be set."""
    attributes = resource.schema().attributes
    unknown = sorted(key for key in config if key not in attributes)
    if unknown:
        raise click.ClickException(
            f"{label}: unknown attributes: {', '.join(unknown)}"
        )
    for key in config:
        if not attributes[key].configurable:
            logger.warning(f"{label}: attribute '{key}' is computed and was ignored")


def state_summary(state: Optional[Dict[str, Any]]) -> str:
    return (state or {}).get("id") or ""


async def run_apply(
    manifest: Dict[str, Any], store: StateStore
) -> List[Tuple[str, str, str, str]]:
    provider = InfluxDBProvider()
    declared_provider = manifest.get("provider") or {}
    provider_data = configure_provider(provider, declared_provider)
    store.provider = public_provider_config(provider, declared_provider)

    rows = []
    declared = set()
    for item in manifest.get("resources") or []:
        type_name, name = item["type"], item["name"]
        label = f"{type_name}.{name}"
        declared.add((type_name, name))

        try:
            resource = provider.new_resource(type_name, provider_data)
        except ValueError as e:
            raise click.ClickException(f"{label}: {e}")

        config = resolve_references(item.get("spec") or {}, store)
        check_attributes(resource, config, label)

        entry = store.find(type_name, name)
        prior = entry["state"] if entry else None
        planned = resource.plan(config, prior)

        if prior is None:
            action = "created"
            response = await resource.create(planned)
        elif resource.has_changes(planned, prior):
            action = "updated"
            response = await resource.update(planned, prior)
        else:
            rows.append((type_name, name, "unchanged", state_summary(prior)))
            continue

        echo_diagnostics(response.diagnostics, label)
        if not response.success:
            rows.append((type_name, name, "failed", state_summary(prior)))
            continue
        store.put(type_name, name, response.state)
        rows.append((type_name, name, action, state_summary(response.state)))

    # Resources dropped from the manifest are deleted, newest first
    for entry in reversed(list(store.resources)):
        type_name, name = entry["type"], entry["name"]
        if (type_name, name) in declared:
            continue
        resource = provider.new_resource(type_name, provider_data)
        response = await resource.delete(entry["state"])
        echo_diagnostics(response.diagnostics, f"{type_name}.{name}")
        if response.success:
            store.remove(type_name, name)
            rows.append((type_name, name, "deleted", state_summary(entry["state"])))
        else:
            rows.append((type_name, name, "failed", state_summary(entry["state"])))

    return rows


async def run_refresh(store: StateStore) -> List[Tuple[str, str, str, str]]:
    provider = InfluxDBProvider()
    provider_data = configure_provider(provider, store.provider)

    rows = []
    for entry in list(store.resources):
        type_name, name = entry["type"], entry["name"]
        resource = provider.new_resource(type_name, provider_data)
        response = await resource.read(entry["state"])
        echo_diagnostics(response.diagnostics, f"{type_name}.{name}")
        if response.removed:
            store.remove(type_name, name)
            rows.append((type_name, name, "removed", state_summary(entry["state"])))
        elif response.success:
            store.put(type_name, name, response.state)
            rows.append((type_name, name, "refreshed", state_summary(response.state)))
        else:
            rows.append((type_name, name, "failed", state_summary(entry["state"])))
    return rows


async def run_import(
    store: StateStore, type_name: str, name: str, resource_id: str
) -> Dict[str, Any]:
    provider = InfluxDBProvider()
    provider_data = configure_provider(provider, store.provider)
    try:
        resource = provider.new_resource(type_name, provider_data)
    except ValueError as e:
        raise click.ClickException(str(e))

    imported = await resource.import_state(resource_id)
    echo_diagnostics(imported.diagnostics, f"{type_name}.{name}")
    if not imported.success:
        raise click.ClickException(f"Import of {type_name}.{name} failed")

    response = await resource.read(imported.state)
    echo_diagnostics(response.diagnostics, f"{type_name}.{name}")
    if response.removed or not response.success:
        raise click.ClickException(f"{type_name} {resource_id} could not be read")

    store.put(type_name, name, response.state)
    return response.state


async def run_destroy(store: StateStore) -> List[Tuple[str, str, str, str]]:
    provider = InfluxDBProvider()
    provider_data = configure_provider(provider, store.provider)

    rows = []
    for entry in reversed(list(store.resources)):
        type_name, name = entry["type"], entry["name"]
        resource = provider.new_resource(type_name, provider_data)
        response = await resource.delete(entry["state"])
        echo_diagnostics(response.diagnostics, f"{type_name}.{name}")
        if response.success:
            store.remove(type_name, name)
            rows.append((type_name, name, "deleted", state_summary(entry["state"])))
        else:
            rows.append((type_name, name, "failed", state_summary(entry["state"])))
    return rows


def echo_rows(rows: List[Tuple[str, str, str, str]]) -> None:
    if not rows:
        click.echo("No resources")
        return
    click.echo(tabulate(rows, headers=["Type", "Name", "Action", "ID"], tablefmt="grid"))


def exit_on_failure(rows: List[Tuple[str, str, str, str]]) -> None:
    if any(row[2] == "failed" for row in rows):
        raise click.ClickException("One or more resources failed")


@click.group()
@click.option("--state", "state_file", default=None, help="Path to the state file")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level",
)
@click.pass_context
def cli(ctx, state_file, log_level):
    """InfluxDB provider CLI - apply declarative InfluxDB resources"""
    config = CLIConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, (log_level or config.log_level).upper(), logging.WARNING),
        format=LOG_FORMAT,
    )
    ctx.obj = StateStore(state_file or config.state_file).load()


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.pass_obj
def apply(store, filename):
    """Create, update or delete resources to match a YAML/JSON manifest"""
    manifest = load_manifest(filename)
    try:
        rows = asyncio.run(run_apply(manifest, store))
    finally:
        store.save()
    echo_rows(rows)
    exit_on_failure(rows)


@cli.command()
@click.pass_obj
def refresh(store):
    """Read every stored resource back from InfluxDB"""
    try:
        rows = asyncio.run(run_refresh(store))
    finally:
        store.save()
    echo_rows(rows)
    exit_on_failure(rows)


@cli.command(name="import")
@click.argument("type_name")
@click.argument("name")
@click.argument("resource_id")
@click.pass_obj
def import_resource(store, type_name, name, resource_id):
    """Adopt an existing InfluxDB object into the state file"""
    if store.find(type_name, name) is not None:
        raise click.ClickException(f"{type_name}.{name} is already managed")
    state = asyncio.run(run_import(store, type_name, name, resource_id))
    store.save()
    click.echo(f"Imported {type_name}.{name} ({state.get('id')})")


@cli.command()
@click.confirmation_option(prompt="Are you sure you want to destroy all resources?")
@click.pass_obj
def destroy(store):
    """Delete every managed resource"""
    try:
        rows = asyncio.run(run_destroy(store))
    finally:
        store.save()
    echo_rows(rows)
    exit_on_failure(rows)


@cli.command()
@click.option(
    "--output", "-o", type=click.Choice(["table", "json", "yaml"]), default="table"
)
@click.pass_obj
def show(store, output):
    """Show stored state"""
    if output == "json":
        click.echo(json.dumps(store.resources, indent=2))
        return
    if output == "yaml":
        click.echo(yaml.dump(store.resources, default_flow_style=False))
        return

    rows = [
        (entry["type"], entry["name"], state_summary(entry["state"]))
        for entry in store.resources
    ]
    if not rows:
        click.echo("No resources")
        return
    click.echo(tabulate(rows, headers=["Type", "Name", "ID"], tablefmt="grid"))


@cli.command()
@click.argument("type_name")
@click.option("--output", "-o", type=click.Choice(["table", "json"]), default="table")
def schema(type_name, output):
    """Show the attributes of a resource type"""
    provider = InfluxDBProvider()
    try:
        resource = provider.new_resource(type_name)
    except ValueError as e:
        raise click.ClickException(str(e))
    resource_schema = resource.schema()

    if output == "json":
        click.echo(json.dumps(resource_schema.to_json_schema(), indent=2))
        return

    rows = []
    for name, attribute in resource_schema.attributes.items():
        if attribute.required:
            mode = "required"
        elif attribute.optional:
            mode = "optional, computed" if attribute.computed else "optional"
        else:
            mode = "computed"
        rows.append((name, attribute.type, mode, attribute.description))
    click.echo(resource_schema.description)
    click.echo(
        tabulate(rows, headers=["Attribute", "Type", "Mode", "Description"], tablefmt="grid")
    )


if __name__ == "__main__":
    cli()
