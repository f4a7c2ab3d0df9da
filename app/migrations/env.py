from alembic import context

# this is the Alembic Config object
config = context.config


def run_migrations_online() -> None:
    """Run migrations on the connection handed over by apply_migrations()."""
    connection = config.attributes["connection"]

    context.configure(
        connection=connection,
        target_metadata=None,
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


run_migrations_online()
