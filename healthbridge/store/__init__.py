"""Permissioned health record store backends.

Import concrete stores from their modules (``healthbridge.store.sql``,
``healthbridge.store.unavailable``); this package stays import-light because
``healthbridge.registry`` depends on ``healthbridge.store.records``.
"""
