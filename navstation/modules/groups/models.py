# Tables: groups (and, through the cascade, sites)
# This file documents the expected database schema
# Actual operations are handled by the EntityStore in navstation.database

"""
groups:
- id: integer identity (primary key, immutable)
- name: text (not null, non-empty)
- order_num: integer (not null) - position among all groups, 0..n-1 after a reorder
- created_at: timestamp
- updated_at: timestamp (touched on every write)

Deleting a group deletes its sites (sites.group_id ON DELETE CASCADE).
"""
