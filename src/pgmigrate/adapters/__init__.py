"""Database adapters satisfying :class:`pgmigrate.protocols.Connection`.

``sqlite``       stdlib ``sqlite3`` in manual transaction mode
``postgresql``   psycopg3, autocommit outside explicit transactions

Adapters are imported lazily by :func:`pgmigrate.connection.create_connection`
so the PostgreSQL driver only loads when a PostgreSQL URL is used.
"""
