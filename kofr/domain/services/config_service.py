"""Configuration store: load, resolve and persist the cluster config file."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

import yaml
from pydantic import ValidationError

from kofr.core.exceptions import (
    ClusterAlreadyExistsError,
    ClusterNotFoundError,
    ConfigError,
    ConfigParseError,
    ConfigReadError,
)
from kofr.domain.decoder import error_path
from kofr.domain.models.cluster import ClusterContext, Configuration

logger = logging.getLogger(__name__)


class ConfigService:
    """Owns the process's single ``Configuration``.

    Every mutating call validates first, then changes the in-memory document
    and immediately overwrites the file it was loaded from.
    """

    def __init__(self, config: Configuration) -> None:
        self.config = config

    # --------------------------------------------------------------------- #
    # Loading / persistence                                                 #
    # --------------------------------------------------------------------- #
    @classmethod
    def load(cls, path: Path | str) -> "ConfigService":
        """Read and validate the YAML document at ``path``.

        Raises
        ------
        ConfigReadError
            The file is missing or unreadable.
        ConfigParseError
            The YAML is malformed or lacks the expected structure.
        """
        path = Path(path).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigReadError(path, exc.strerror or str(exc)) from exc

        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigParseError(path, str(exc)) from exc
        if not isinstance(document, dict):
            raise ConfigParseError(path, "top level must be a mapping")

        try:
            config = Configuration.model_validate(document)
        except ValidationError as exc:
            raise ConfigParseError(
                path, f"{error_path(exc)}: {exc.errors()[0]['msg']}"
            ) from exc
        config.file_path = path
        logger.debug("loaded %d cluster(s) from %s", len(config.clusters), path)
        return cls(config)

    @classmethod
    def load_or_init(cls, path: Path | str) -> "ConfigService":
        """Like :meth:`load`, but first create an empty config if none exists."""
        path = Path(path).expanduser()
        if not path.exists():
            logger.info("creating empty config file at %s", path)
            service = cls(Configuration(clusters=[], file_path=path))
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ConfigReadError(path, exc.strerror or str(exc)) from exc
            service.save()
            return service
        return cls.load(path)

    def save(self) -> None:
        """Overwrite the whole file with the current document."""
        path = self.config.file_path
        text = yaml.safe_dump(
            self.config.to_document(), sort_keys=False, default_flow_style=False
        )
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise ConfigError(
                f"error writing config file {path}: {exc.strerror or exc}"
            ) from exc
        logger.debug("wrote config file %s", path)

    # --------------------------------------------------------------------- #
    # Queries                                                               #
    # --------------------------------------------------------------------- #
    def current_context(self) -> ClusterContext:
        return self.config.current_context()

    def get_clusters(self) -> List[str]:
        return [c.name for c in self.config.clusters]

    # --------------------------------------------------------------------- #
    # Mutations                                                             #
    # --------------------------------------------------------------------- #
    def use_cluster(self, name: str) -> None:
        if self.config.find(name) is None:
            raise ClusterNotFoundError(name)
        self.config.current_cluster = name
        self.save()

    def add_cluster(self, name: str, hosts: Iterable[str]) -> ClusterContext:
        """Append a new cluster and make it the current one."""
        if not name:
            raise ConfigError("Cluster name must not be empty")
        if self.config.find(name) is not None:
            raise ClusterAlreadyExistsError(name)
        host_list = [h.strip() for h in hosts if h and h.strip()]
        if not host_list:
            raise ConfigError(f'Cluster "{name}" needs at least one host')

        cluster = ClusterContext(name=name, hosts=host_list)
        self.config.clusters.append(cluster)
        self.config.current_cluster = name
        self.save()
        return cluster

    def remove_cluster(self, name: str) -> None:
        """Drop ``name``; ``current-cluster`` is left as is even if it pointed here."""
        cluster = self.config.find(name)
        if cluster is None:
            raise ClusterNotFoundError(
                name,
                f"Could not delete cluster: cluster with name '{name}' does not exists",
            )
        self.config.clusters.remove(cluster)
        self.save()
