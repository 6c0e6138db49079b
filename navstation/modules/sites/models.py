# Table: sites
# This file documents the expected database schema

"""
sites:
- id: integer identity (primary key, immutable)
- group_id: integer (foreign key to groups.id, not null, ON DELETE CASCADE)
- name: text (not null, non-empty)
- url: text (not null, non-empty)
- icon: text (default '')
- description: text (default '')
- notes: text (default '')
- order_num: integer (not null) - position among the sites of the same group
- created_at: timestamp
- updated_at: timestamp
"""
