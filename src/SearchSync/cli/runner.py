"""Command runner for coordinating CLI execution.

Manages component lifecycle, resource cleanup, logging configuration,
and error handling for command execution.
"""

from __future__ import annotations

from typing import Callable, TypeVar

import click

from SearchSync.cli.commands import (
    ProcessQueueCommand,
    QueryCommand,
    QueueStatusCommand,
    ReindexCommand,
    RequeueCommand,
)
from SearchSync.config import AppConfig
from SearchSync.services import create_batch_processor, create_gateway, create_registry
from SearchSync.storage import create_storage
from SearchSync.utils.log import configure_logging, log

T = TypeVar("T")


class CommandRunner:
    """Orchestrates command execution with proper resource management.

    Handles logging configuration, component creation, database context
    management, and error handling for CLI commands.
    """

    def __init__(self, config: AppConfig) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
        """
        self.config = config

    def run_queue(self, action: str) -> None:
        """Process one queued batch.

        Args:
            action: The CLI command name (e.g., 'queue').

        Raises:
            click.Abort: When processing fails.
        """

        def _execute() -> None:
            gateway = create_gateway(self.config)
            registry = create_registry(self.config)
            db_manager, queue = create_storage(self.config)
            processor = create_batch_processor(self.config, queue, gateway, registry)
            with db_manager:
                ProcessQueueCommand(processor=processor).execute()

        self._run(action, _execute)

    def run_status(self, action: str) -> None:
        """Print queue counts."""

        def _execute() -> None:
            db_manager, queue = create_storage(self.config)
            with db_manager:
                QueueStatusCommand(queue=queue).execute()

        self._run(action, _execute)

    def run_requeue(self, action: str) -> None:
        """Reset running queue entries to waiting."""

        def _execute() -> None:
            db_manager, queue = create_storage(self.config)
            with db_manager:
                RequeueCommand(queue=queue).execute()

        self._run(action, _execute)

    def run_index(self, action: str, entry_type: str) -> None:
        """Upload every record of one entity kind."""
        self._run(action, lambda: self._reindex(entry_type, remove=False))

    def run_flush(self, action: str, entry_type: str) -> None:
        """Remove every record of one entity kind from the index."""
        self._run(action, lambda: self._reindex(entry_type, remove=True))

    def run_query(
        self,
        action: str,
        text: str,
        entry_type: str | None = None,
        field: str | None = None,
        size: int | None = None,
    ) -> None:
        """Run an ad-hoc phrase query and print hit ids."""

        def _execute() -> None:
            command = QueryCommand(
                gateway=create_gateway(self.config),
                text=text,
                entry_type=entry_type,
                field=field,
                size=size or self.config.search.default_size,
            )
            command.execute()

        self._run(action, _execute)

    def _reindex(self, entry_type: str, *, remove: bool) -> None:
        command = ReindexCommand(
            gateway=create_gateway(self.config),
            registry=create_registry(self.config),
            entry_type=entry_type,
            batching_size=self.config.queue.batching_size,
            remove=remove,
        )
        command.execute()

    def _run(self, action: str, execute: Callable[[], T]) -> T:
        log_path = configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        if log_path:
            log.debug("Writing log to %s", log_path)
        try:
            return execute()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e
