# campusvote/commands.py

import click

from campusvote import app, db
from campusvote.election.models import initial_roster
from campusvote.storage.kv_store import DatabaseKeyValueStore
from campusvote.storage.stores import CandidateStore


@app.cli.command('init-db')
def init_db():
    """Create the store table and seed the candidate list if it is empty."""
    db.create_all()
    candidate_store = CandidateStore(DatabaseKeyValueStore(db))
    if candidate_store.load() is None:
        candidate_store.save(initial_roster())
        click.echo("Seeded the initial candidate roster.")
    click.echo("Database ready.")
