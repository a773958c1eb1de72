"""Init command."""

import click

from ..helpers import echo_json, get_project_context, handle_errors, json_option
from ...core.record_store import RecordStore
from ...utils.config_manager import ConfigManager, default_config


@click.command()
@click.option('--force', is_flag=True, help='Overwrite an existing configuration with the defaults')
@json_option
@handle_errors
def init(force, as_json):
    """Initialise agentsquad in the current project"""
    project_root, workspace_dir = get_project_context()

    config_manager = ConfigManager(project_root)
    created = False
    if force or not config_manager.config_exists():
        config_manager.save_config(default_config())
        created = True
    config = config_manager.load_config()

    store = RecordStore(project_root)
    store.ensure_session_store(config.default_session)

    if as_json:
        echo_json({
            "status": "ok",
            "message": "Agentsquad workspace initialised",
            "workspace_root": str(workspace_dir),
            "config_path": str(config_manager.config_file),
            "config_created": created,
        })
        return

    click.echo(f"✅ Agentsquad workspace initialised at {workspace_dir}")
    if created:
        click.echo(f"   Wrote default configuration to {config_manager.config_file.name}")
    else:
        click.echo(f"   Using existing {config_manager.config_file.name}")
