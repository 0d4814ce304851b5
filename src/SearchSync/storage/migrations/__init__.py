"""Versioned migration files for the SearchSync queue database.

Each module in this package must expose a single ``MIGRATION`` constant of
type :class:`~SearchSync.storage.migration.Migration`.  Modules are
discovered and sorted automatically by
:func:`~SearchSync.storage.migration.load_migrations`; file names should
follow the ``vNNN_<description>.py`` convention for readability.
"""
