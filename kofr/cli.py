"""
kofr CLI - main entry point.

Manage Kafka Connect clusters from the command line: connectors, tasks,
topics, plugins, host health and the local multi-cluster config file.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

import httpx
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from kofr.core.config import Settings, get_settings
from kofr.core.exceptions import KofrError
from kofr.domain.models.cluster import ClusterStatus
from kofr.domain.services.cluster_service import ClusterService
from kofr.domain.services.config_service import ConfigService
from kofr.domain.services.connector_service import (
    ConnectorService,
    parse_config,
    parse_create_payload,
)
from kofr.infra.connect.client import ConnectClient
from kofr.infra.editor import edit_text

logger = logging.getLogger("kofr")

console = Console(highlight=False)


# --------------------------------------------------------------------------- #
# Rendering helpers                                                           #
# --------------------------------------------------------------------------- #
def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _dump(model) -> Any:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def render_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> Table:
    """Borderless table, one left-aligned column per header."""
    table = Table(box=None, show_edge=False, pad_edge=False, header_style="bold")
    for header in headers:
        table.add_column(header, no_wrap=True)
    for row in rows:
        table.add_row(*(Text(str(c)) for c in row))
    return table


def render_cluster_status(status: ClusterStatus) -> Group:
    table = render_table(
        ["HOST", "STATE"], [(h.host, h.state) for h in status.hosts]
    )
    return Group(table, Text(""), Text(f"CLUSTER ID: {status.cluster_id}"))


def _read_input(path: str) -> str:
    """Read ``path``; ``-`` means standard input."""
    if path == "-":
        return sys.stdin.read()
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise KofrError(f"could not read {path}: {exc.strerror or exc}") from exc


def _parse_assignments(items: List[str]) -> Dict[str, str]:
    changes: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise KofrError(f"invalid KEY=VALUE pair: {item!r}")
        changes[key] = value
    return changes


# --------------------------------------------------------------------------- #
# Config commands (no cluster connectivity)                                   #
# --------------------------------------------------------------------------- #
def cmd_use_cluster(args, store: ConfigService) -> int:
    store.use_cluster(args.cluster)
    print(f'Switched to cluster "{args.cluster}"')
    return 0


def cmd_current_context(args, store: ConfigService) -> int:
    print(store.current_context().name)
    return 0


def cmd_get_clusters(args, store: ConfigService) -> int:
    for name in store.get_clusters():
        print(name)
    return 0


def cmd_add_cluster(args, store: ConfigService) -> int:
    store.add_cluster(args.cluster, args.hosts.split(","))
    print(f'Added cluster "{args.cluster}"')
    return 0


def cmd_remove_cluster(args, store: ConfigService) -> int:
    store.remove_cluster(args.cluster)
    print(f'Removed cluster "{args.cluster}"')
    return 0


# --------------------------------------------------------------------------- #
# Connect commands                                                            #
# --------------------------------------------------------------------------- #
def cmd_list(args, client: ConnectClient, settings: Settings) -> int:
    rows = [
        (c.name, c.state, c.tasks, c.type, c.worker_id)
        for c in client.list_connectors_verbose()
    ]
    console.print(render_table(["NAME", "STATE", "TASKS", "TYPE", "WORKER_ID"], rows))
    return 0


def cmd_create(args, client: ConnectClient, settings: Settings) -> int:
    payload = parse_create_payload(_read_input(args.file))
    connector = ConnectorService(client).create(payload)
    print(f"successfully created connector: {payload.name}")
    _print_json(_dump(connector))
    return 0


def cmd_describe(args, client: ConnectClient, settings: Settings) -> int:
    _print_json(_dump(ConnectorService(client).describe(args.name)))
    return 0


def cmd_edit(args, client: ConnectClient, settings: Settings) -> int:
    def _edit(text: str) -> str:
        return edit_text(text, settings.editor, prefix=f"{args.name}-edit-")

    if ConnectorService(client).edit(args.name, _edit) is None:
        print("Edit cancelled, no changes were made")
    else:
        print(f"connector: {args.name} edited.")
    return 0


def cmd_patch(args, client: ConnectClient, settings: Settings) -> int:
    changes: Dict[str, str] = {}
    if args.file:
        changes.update(parse_config(_read_input(args.file)))
    changes.update(_parse_assignments(args.data or []))
    if not changes:
        raise KofrError("nothing to patch: pass -d KEY=VALUE or -f FILE")
    if ConnectorService(client).patch(args.name, changes) is None:
        print(f"connector: {args.name} unchanged.")
    else:
        print(f"connector: {args.name} patched.")
    return 0


def cmd_status(args, client: ConnectClient, settings: Settings) -> int:
    _print_json(_dump(client.get_connector_status(args.name)))
    return 0


def cmd_config(args, client: ConnectClient, settings: Settings) -> int:
    _print_json(client.get_connector_config(args.name))
    return 0


def cmd_pause(args, client: ConnectClient, settings: Settings) -> int:
    client.pause(args.name)
    print(f"connector: {args.name} paused.")
    return 0


def cmd_resume(args, client: ConnectClient, settings: Settings) -> int:
    client.resume(args.name)
    print(f"connector: {args.name} resumed.")
    return 0


def cmd_restart(args, client: ConnectClient, settings: Settings) -> int:
    outcome = client.restart(args.name, args.include_tasks, args.only_failed)
    if outcome.kind == "restarted":
        print(f"connector: {args.name} restarted.")
    elif outcome.kind == "accepted":
        _print_json(_dump(outcome.status))
    else:
        print(outcome.message)
    return 0


def cmd_delete(args, client: ConnectClient, settings: Settings) -> int:
    client.delete(args.name)
    print(f"connector: {args.name} deleted.")
    return 0


def cmd_task_list(args, client: ConnectClient, settings: Settings) -> int:
    _print_json([_dump(t) for t in client.list_tasks(args.connector)])
    return 0


def cmd_task_status(args, client: ConnectClient, settings: Settings) -> int:
    _print_json(_dump(client.task_status(args.connector, args.task_id)))
    return 0


def cmd_task_restart(args, client: ConnectClient, settings: Settings) -> int:
    client.restart_task(args.connector, args.task_id)
    print(f"task: {args.connector}/{args.task_id} restarted.")
    return 0


def cmd_topic_list(args, client: ConnectClient, settings: Settings) -> int:
    for topic in client.list_topics(args.connector).topics_for(args.connector):
        print(topic)
    return 0


def cmd_topic_reset(args, client: ConnectClient, settings: Settings) -> int:
    client.reset_topics(args.connector)
    print(f"topics of connector: {args.connector} reset.")
    return 0


def cmd_plugin_list(args, client: ConnectClient, settings: Settings) -> int:
    rows = [(p.class_name, p.type or "", p.version or "") for p in client.list_plugins()]
    console.print(render_table(["CLASS", "TYPE", "VERSION"], rows))
    return 0


def cmd_plugin_validate(args, client: ConnectClient, settings: Settings) -> int:
    config = parse_config(_read_input(args.file))
    result = ConnectorService(client).validate(config, args.class_name)
    print(f"{result.name}: {result.error_count} error(s)")
    for key, messages in result.errors():
        for message in messages:
            print(f"  {key}: {message}")
    return 1 if result.error_count else 0


# --------------------------------------------------------------------------- #
# Parser                                                                      #
# --------------------------------------------------------------------------- #
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kofr",
        description="Kafka Connect CLI for connect cluster management",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Register a cluster and make it current
  kofr config add-cluster dev --hosts http://localhost:8083

  # List connectors with their state
  kofr ls

  # Create a connector from a JSON file ({"name": ..., "config": {...}})
  kofr connector create -f sink.json

  # Restart a connector and its failed tasks
  kofr connector restart my-sink --include-tasks --only-failed
""",
    )
    parser.add_argument(
        "--config-file",
        default=None,
        help="Path to the kofr config file (default: ~/.kofr/config)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", help="Available commands")

    # list / ls
    ls = sub.add_parser("list", aliases=["ls"], help="List connectors in the current cluster")
    ls.set_defaults(connect_handler=cmd_list)

    # connector
    connector = sub.add_parser("connector", aliases=["cn"], help="Operate on connectors")
    cn = connector.add_subparsers(dest="connector_command")

    create = cn.add_parser("create", help="Create a connector")
    create.add_argument("-f", "--file", required=True, help="JSON file, or - for stdin")
    create.set_defaults(connect_handler=cmd_create)

    for name, handler, text in (
        ("describe", cmd_describe, "Show a connector's config and status"),
        ("edit", cmd_edit, "Edit a connector's config in $EDITOR"),
        ("status", cmd_status, "Show a connector's status"),
        ("config", cmd_config, "Show a connector's config"),
        ("pause", cmd_pause, "Pause a connector"),
        ("resume", cmd_resume, "Resume a paused connector"),
        ("delete", cmd_delete, "Delete a connector"),
    ):
        p = cn.add_parser(name, help=text)
        p.add_argument("name", help="Connector name")
        p.set_defaults(connect_handler=handler)

    patch = cn.add_parser("patch", help="Merge settings into a connector's config")
    patch.add_argument("name", help="Connector name")
    patch.add_argument("-d", "--data", action="append", metavar="KEY=VALUE")
    patch.add_argument("-f", "--file", help="JSON config fragment, or - for stdin")
    patch.set_defaults(connect_handler=cmd_patch)

    restart = cn.add_parser("restart", help="Restart a connector")
    restart.add_argument("name", help="Connector name")
    restart.add_argument("--include-tasks", action="store_true")
    restart.add_argument("--only-failed", action="store_true")
    restart.set_defaults(connect_handler=cmd_restart)

    # task
    task = sub.add_parser("task", help="Operate on connector tasks")
    tk = task.add_subparsers(dest="task_command")
    tl = tk.add_parser("list", help="List a connector's tasks")
    tl.add_argument("connector")
    tl.set_defaults(connect_handler=cmd_task_list)
    for name, handler, text in (
        ("status", cmd_task_status, "Show a task's status"),
        ("restart", cmd_task_restart, "Restart a task"),
    ):
        p = tk.add_parser(name, help=text)
        p.add_argument("connector")
        p.add_argument("task_id", type=int)
        p.set_defaults(connect_handler=handler)

    # topic
    topic = sub.add_parser("topic", help="Operate on a connector's active topics")
    tp = topic.add_subparsers(dest="topic_command")
    for name, handler, text in (
        ("list", cmd_topic_list, "List topics a connector uses"),
        ("reset", cmd_topic_reset, "Reset a connector's active topics"),
    ):
        p = tp.add_parser(name, help=text)
        p.add_argument("connector")
        p.set_defaults(connect_handler=handler)

    # plugin
    plugin = sub.add_parser("plugin", help="Connector plugins")
    pl = plugin.add_subparsers(dest="plugin_command")
    pl.add_parser("list", help="List installed plugins").set_defaults(
        connect_handler=cmd_plugin_list
    )
    validate = pl.add_parser("validate", help="Validate a connector config")
    validate.add_argument("-f", "--file", required=True, help="JSON config, or - for stdin")
    validate.add_argument("--class", dest="class_name", help="Plugin class name")
    validate.set_defaults(connect_handler=cmd_plugin_validate)

    # cluster
    cluster = sub.add_parser("cluster", help="Cluster health")
    cl = cluster.add_subparsers(dest="cluster_command")
    cl.add_parser("status", help="Probe every host of the current cluster").set_defaults(
        cluster_status=True
    )

    # config
    config = sub.add_parser("config", help="Handle kofr configuration")
    cf = config.add_subparsers(dest="config_command")
    use = cf.add_parser("use-cluster", help="Switch the current cluster")
    use.add_argument("cluster")
    use.set_defaults(config_handler=cmd_use_cluster)
    cf.add_parser("current-context", help="Print the current cluster").set_defaults(
        config_handler=cmd_current_context
    )
    cf.add_parser("get-clusters", help="List configured clusters").set_defaults(
        config_handler=cmd_get_clusters
    )
    add = cf.add_parser("add-cluster", help="Add a cluster and make it current")
    add.add_argument("cluster")
    add.add_argument("--hosts", required=True, help="Comma-separated host URIs")
    add.set_defaults(config_handler=cmd_add_cluster)
    remove = cf.add_parser("remove-cluster", help="Remove a cluster")
    remove.add_argument("cluster")
    remove.set_defaults(config_handler=cmd_remove_cluster)

    return parser


# --------------------------------------------------------------------------- #
# Entry point                                                                 #
# --------------------------------------------------------------------------- #
def _configure_logging(settings: Settings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.setLevel(level)


def _print_error(exc: BaseException) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    cause = exc.__cause__
    while cause is not None:
        print(f"Caused by: {cause}", file=sys.stderr)
        cause = cause.__cause__


def _load_store(args, settings: Settings) -> ConfigService:
    if args.config_file:
        return ConfigService.load(args.config_file)
    return ConfigService.load_or_init(settings.config_file)


def run(
    args: argparse.Namespace,
    settings: Settings,
    transport: httpx.BaseTransport | None = None,
) -> int:
    store = _load_store(args, settings)

    config_handler: Callable | None = getattr(args, "config_handler", None)
    if config_handler is not None:
        return config_handler(args, store)

    cluster = store.current_context()
    if getattr(args, "cluster_status", False):
        prober = ClusterService(timeout=settings.probe_timeout_sec, transport=transport)
        console.print(render_cluster_status(prober.status(cluster)))
        return 0

    host = ClusterService(
        timeout=settings.probe_timeout_sec, transport=transport
    ).available_host(cluster)
    logger.debug("using host %s of cluster %s", host, cluster.name)
    with ConnectClient(
        host, timeout=settings.request_timeout_sec, transport=transport
    ) as client:
        return args.connect_handler(args, client, settings)


def main(
    argv: Sequence[str] | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (
        getattr(args, "config_handler", None)
        or getattr(args, "connect_handler", None)
        or getattr(args, "cluster_status", False)
    ):
        parser.print_help()
        return 1

    settings = get_settings()
    _configure_logging(settings, args.verbose)

    try:
        return run(args, settings, transport)
    except KofrError as e:
        _print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
