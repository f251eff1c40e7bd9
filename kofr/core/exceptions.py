"""Error taxonomy shared by the config store, the Connect client and the CLI.

Every failure is raised to the CLI boundary, which prints the message (plus
the chained ``__cause__``) and exits non-zero. Nothing here is retried.
"""
from __future__ import annotations

from pathlib import Path


class KofrError(Exception):
    """Base class for every error the CLI reports to the user."""


# --------------------------------------------------------------------------- #
# Configuration                                                               #
# --------------------------------------------------------------------------- #
class ConfigError(KofrError):
    """Local configuration file or cluster selection problem."""


class ConfigReadError(ConfigError):
    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"error reading config file {self.path}: {reason}")


class ConfigParseError(ConfigError):
    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"invalid config file format in {self.path}: {reason}")


class NoCurrentContextError(ConfigError):
    def __init__(self) -> None:
        super().__init__(
            "No current context was set\n"
            " consider using command: kofr config use-cluster <CLUSTER>"
        )


class ClusterNotFoundError(ConfigError):
    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f'Cluster with name "{name}" could not be found')


class ClusterAlreadyExistsError(ConfigError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Cluster "{name}" already exists.')


# --------------------------------------------------------------------------- #
# Transport                                                                   #
# --------------------------------------------------------------------------- #
class TransportError(KofrError):
    """The host could not be reached at all (DNS, refused, TLS, timeout)."""

    def __init__(self, message: str, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class NoAvailableHostError(TransportError):
    def __init__(self, cluster_name: str) -> None:
        self.cluster_name = cluster_name
        super().__init__(f'No available host found for cluster "{cluster_name}"')


# --------------------------------------------------------------------------- #
# Connect REST API                                                            #
# --------------------------------------------------------------------------- #
class ApiError(KofrError):
    """The Connect REST API answered, but not with what we asked for."""


class NotFoundError(ApiError):
    """Explicit 404 for a named entity."""


class ConnectorNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No connector with name: {name} was found")


class TaskNotFoundError(NotFoundError):
    def __init__(self, connector: str, task_id: int) -> None:
        self.connector = connector
        self.task_id = task_id
        super().__init__(
            f"No task {task_id} was found for connector: {connector}"
        )


class ServerRejectedError(ApiError):
    """Any other non-2xx answer; ``str()`` is the server body verbatim."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(body)


class MalformedResponseError(ApiError):
    """2xx answer whose body does not fit the expected shape."""

    def __init__(self, field: str, body: str, reason: str = "") -> None:
        self.field = field
        self.body = body
        detail = f"unexpected response shape at '{field}'"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(f"{detail}\nresponse body: {body}")


# --------------------------------------------------------------------------- #
# Decoding                                                                    #
# --------------------------------------------------------------------------- #
class DecodeError(KofrError):
    """Expected JSON shape violated at ``path``."""

    def __init__(self, path: str, expected: str, found: str) -> None:
        self.path = path
        self.expected = expected
        self.found = found
        super().__init__(f"{path}: expected {expected}, found {found}")


# --------------------------------------------------------------------------- #
# Usage / collaborators                                                       #
# --------------------------------------------------------------------------- #
class MissingConnectorClassError(KofrError):
    def __init__(self) -> None:
        super().__init__(
            "connector class name was not supplied and 'connector.class' "
            "is missing from the config"
        )


class EditorError(KofrError):
    """The external editor could not be launched or exited with an error."""
