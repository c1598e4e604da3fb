"""
Event sync CLI - export Events from one hub and import them into another
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from ..config import ConfigurationError, HubConfig, ImportOptions, load_config, save_config
from ..engine import EventExporter, EventSynchronizer, ExportRecord, ImportFileError, load_events_from_directory, relative_date
from ..integrations import HubApiError, RestHubClient
from ..models import ContentMapping, FileLog, get_default_log_path, get_default_mapping_path

console = Console()
app = typer.Typer(help="hubsync - migrate scheduled Events between content hubs")
event_app = typer.Typer(help="Export and import Events, Editions and Slots")
app.add_typer(event_app, name="event")

# Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=console, show_path=False)]
)
logger = logging.getLogger(__name__)

SNAPSHOT_LIMIT_WARNING = (
    "Importing events creates a content snapshot for every content link or "
    "reference that is not in the mapping yet. Snapshots count towards the "
    "hub's snapshot limits and cannot be deleted."
)


class EventSyncCLI:
    """
    Event sync CLI
    - export: source hub -> directory of event files
    - import: directory of event files -> destination hub
    """

    def __init__(self, config: HubConfig):
        self.config = config
        self.console = console

    def create_client(self) -> RestHubClient:
        return RestHubClient(self.config)

    def confirm_overwrite(self, updated: List[ExportRecord]) -> bool:
        table = Table(title="Files to overwrite")
        table.add_column("File", style="cyan")
        table.add_column("Event")
        for record in updated:
            table.add_row(record.filename, record.event.name or "")
        self.console.print(table)

        return Confirm.ask("Overwrite these files?", default=False)

    def confirm_snapshot_limits(self) -> bool:
        self.console.print(Panel.fit(SNAPSHOT_LIMIT_WARNING, title="Snapshot limits", style="yellow"))
        return Confirm.ask("Continue?", default=False)

    async def run_export(
        self,
        directory: str,
        event_id: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        snapshots: bool = False,
        force: bool = False,
        log_file: Optional[str] = None
    ) -> List[ExportRecord]:
        log = FileLog(log_file or get_default_log_path("event", "export"), "Event Export Log").open()

        try:
            async with self.create_client() as client:
                exporter = EventExporter(client, log)
                records = await exporter.export(
                    self.config.hub_id,
                    directory,
                    event_id=event_id,
                    from_date=from_date,
                    to_date=to_date,
                    snapshots=snapshots,
                    confirm_overwrite=None if force else self.confirm_overwrite
                )
        except Exception as e:
            log.error("Event export failed.", e)
            raise
        finally:
            log.close()

        return records

    async def run_import(
        self,
        directory: str,
        options: ImportOptions,
        map_file: Optional[str] = None,
        accept_snapshot_limits: bool = False,
        log_file: Optional[str] = None
    ) -> bool:
        """
        Import every event file in directory.

        Returns:
            False when the import was aborted or failed
        """
        log = FileLog(log_file or get_default_log_path("event", "import"), "Event Import Log").open()

        try:
            try:
                events = load_events_from_directory(directory)
            except ImportFileError as e:
                log.error(str(e), e.__cause__)
                return False

            if not events:
                log.append_line(f"No event files found in {directory}.")
                return True

            if not accept_snapshot_limits and not self.confirm_snapshot_limits():
                log.append_line("Import cancelled.")
                return False

            async with self.create_client() as client:
                try:
                    hub = await client.get_hub(self.config.hub_id)
                except HubApiError as e:
                    log.error(f"Couldn't get hub with id {self.config.hub_id}, aborting.", e)
                    return False

                mapping = ContentMapping()
                mapping_path = Path(map_file) if map_file else get_default_mapping_path(f"hub-{hub.id}")
                if mapping.load(mapping_path):
                    log.append_line(f"Existing mapping loaded from '{mapping_path}', changes will be saved back to it.")
                else:
                    log.append_line(f"Creating new mapping file at '{mapping_path}'.")

                synchronizer = EventSynchronizer(client, hub, mapping, log, options)
                try:
                    await synchronizer.import_events(list(events.values()))
                except Exception as e:
                    log.error("Failed to import events.", e)
                    return False
                finally:
                    try:
                        mapping.save(mapping_path)
                    except Exception as e:
                        log.warn(f"Failed to save mapping to '{mapping_path}'.", e)

            log.append_line("Done!")
            return True
        finally:
            log.close()


def _load_config(config_file: Optional[str], hub_id: Optional[str]) -> HubConfig:
    try:
        return load_config(config_file, hub_id=hub_id)
    except ConfigurationError as e:
        console.print(f"❌ {e}", style="red")
        raise typer.Exit(code=1)


def _parse_relative_date(value: Optional[str], name: str) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return relative_date(value)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=name)


def _display_exports(records: List[ExportRecord]):
    """Export summary table"""
    table = Table(title="Exported Events")
    table.add_column("File", style="cyan")
    table.add_column("Event")
    table.add_column("Result", style="green")

    for record in records:
        table.add_row(record.filename, record.event.name or "", record.status.value)

    console.print(table)


@app.command()
def configure(
    client_id: str = typer.Option(..., prompt=True, help="API client id"),
    client_secret: str = typer.Option(..., prompt=True, hide_input=True, help="API client secret"),
    hub_id: str = typer.Option(..., prompt=True, help="Hub id"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Configuration file")
):
    """Save hub credentials"""
    config = HubConfig(client_id=client_id, client_secret=client_secret, hub_id=hub_id)
    path = save_config(config, config_file)
    console.print(f"✅ Configuration saved to {path}", style="green")


@event_app.command("export")
def export_events(
    directory: str = typer.Argument(..., help="Output directory"),
    event_id: Optional[str] = typer.Option(None, "--id", help="Export a single event"),
    from_date: Optional[str] = typer.Option(None, "--from-date", help="NOW or <n>:DAYS, e.g. -7:DAYS"),
    to_date: Optional[str] = typer.Option(None, "--to-date", help="NOW or <n>:DAYS, e.g. 30:DAYS"),
    snapshots: bool = typer.Option(False, "--snapshots", help="Also export referenced snapshots"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite files without asking"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file, <DATE> is replaced"),
    hub_id: Optional[str] = typer.Option(None, "--hub-id", help="Source hub (overrides configuration)"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Configuration file")
):
    """Export events from the configured hub"""
    config = _load_config(config_file, hub_id)
    start = _parse_relative_date(from_date, "--from-date")
    end = _parse_relative_date(to_date, "--to-date")

    cli = EventSyncCLI(config)

    try:
        records = asyncio.run(cli.run_export(directory, event_id, start, end, snapshots, force, log_file))
    except Exception as e:
        console.print(f"❌ Export failed: {e}", style="red")
        raise typer.Exit(code=1)

    if records:
        _display_exports(records)


@event_app.command("import")
def import_events(
    directory: str = typer.Argument(..., help="Directory of exported events"),
    map_file: Optional[str] = typer.Option(None, "--map-file", help="Mapping file (default per destination hub)"),
    original_ids: bool = typer.Option(False, "--original-ids", help="Match destination resources by source id"),
    catchup: bool = typer.Option(False, "--catchup", help="Schedule editions that have already ended"),
    no_schedule: bool = typer.Option(False, "--no-schedule", help="Import scheduled editions as drafts"),
    accept_snapshot_limits: bool = typer.Option(False, "--accept-snapshot-limits", help="Skip the snapshot warning"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file, <DATE> is replaced"),
    hub_id: Optional[str] = typer.Option(None, "--hub-id", help="Destination hub (overrides configuration)"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Configuration file")
):
    """Import events into the configured hub"""
    config = _load_config(config_file, hub_id)
    options = ImportOptions(original_ids=original_ids, catchup=catchup, schedule=not no_schedule)

    cli = EventSyncCLI(config)
    success = asyncio.run(cli.run_import(directory, options, map_file, accept_snapshot_limits, log_file))

    if not success:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
