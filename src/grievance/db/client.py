"""Postgres connection helpers for the complaint store."""

from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg

from grievance.config import Settings


APPLICATION_NAME = "grievance"


def get_connection(settings: Optional[Settings] = None) -> psycopg.Connection:
    """Open a connection tagged with the application name.

    The connect timeout keeps an unreachable database from stalling a
    submission's duplicate check past its own deadline.
    """
    settings = settings or Settings()
    return psycopg.connect(
        settings.get_database_url(),
        connect_timeout=max(1, round(settings.db_connect_timeout_seconds)),
        application_name=APPLICATION_NAME,
    )


@contextmanager
def db_cursor(settings: Optional[Settings] = None) -> Iterator[psycopg.Cursor]:
    """Yield a cursor; commit when the block succeeds, roll back when it raises."""
    conn = get_connection(settings)
    try:
        with conn.cursor() as cursor:
            yield cursor
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
