import time

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from forum.errors import StorageError


db = SQLAlchemy()


def _is_sqlite(uri: str) -> bool:
    return uri.startswith("sqlite")


def _is_postgres(uri: str) -> bool:
    return uri.startswith("postgresql")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _engine_options(app) -> dict:
    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    timeout = app.config["STORE_BUSY_TIMEOUT_SECONDS"]

    options = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS") or {})
    connect_args = dict(options.get("connect_args") or {})

    if _is_sqlite(uri):
        # sqlite3's timeout is the busy wait on a locked database.
        connect_args.setdefault("timeout", timeout)
        connect_args.setdefault("check_same_thread", False)
    elif _is_postgres(uri):
        connect_args.setdefault("options", f"-c lock_timeout={int(timeout * 1000)}")

    options["connect_args"] = connect_args
    return options


def init_db(app):
    """Bind the store to ``app``, create the schema and return the handle."""
    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = _engine_options(app)

    db.init_app(app)

    with app.app_context():
        if _is_sqlite(uri):
            event.listen(db.engine, "connect", _enable_sqlite_foreign_keys)

        import forum.models  # noqa: F401 - registers tables for create_all()

        db.create_all()

    return db


def _is_lock_contention(error: OperationalError) -> bool:
    message = str(error.orig or error).lower()
    return "locked" in message or "busy" in message or "lock timeout" in message


def run_query(store, query):
    """Run the read-only ``query(session)``, mapping store failures."""
    try:
        return query(store.session)
    except SQLAlchemyError as exc:
        store.session.rollback()
        raise StorageError("Store query failed") from exc


def run_in_transaction(store, work, retries=None):
    """Run ``work(session)`` as one transaction.

    Commits on success and rolls back on any failure. Lock contention that
    outlasts the busy timeout is retried ``STORE_WRITE_RETRIES`` times before
    surfacing as ``StorageError``; other SQLAlchemy failures become
    ``StorageError`` immediately. Domain errors raised by ``work`` propagate
    unchanged after the rollback.
    """
    session = store.session
    if retries is None:
        retries = current_app.config["STORE_WRITE_RETRIES"]
    delay = current_app.config["STORE_RETRY_DELAY_SECONDS"]

    attempt = 0
    while True:
        try:
            result = work(session)
            session.commit()
            return result
        except OperationalError as exc:
            session.rollback()
            if _is_lock_contention(exc) and attempt < retries:
                attempt += 1
                current_app.logger.warning(
                    "Store is busy, retrying transaction (attempt %s of %s)",
                    attempt,
                    retries,
                )
                time.sleep(delay * attempt)
                continue
            raise StorageError("Store is unavailable") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageError("Store operation failed") from exc
        except Exception:
            session.rollback()
            raise
