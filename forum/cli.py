import click
from flask import current_app
from flask.cli import with_appcontext


@click.command("purge-sessions")
@with_appcontext
def purge_sessions_command():
    """Delete session rows whose expiry has passed."""
    deleted = current_app.extensions["session_manager"].purge_expired()
    click.echo(f"Deleted {deleted} expired session(s).")


def register_commands(app):
    app.cli.add_command(purge_sessions_command)
