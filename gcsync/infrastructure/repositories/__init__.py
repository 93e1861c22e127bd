"""
Implementaciones del record store (host store).

- InMemoryRecordStore: dicts en memoria (dry runs y tests)
- PostgresRecordStore: psycopg v3 sobre schema.sql
"""
