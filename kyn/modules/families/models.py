# Supabase tables: families, family_members, profile_preferences
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL, constraints and stored procedures: supabase/migrations/0001_kyn_schema.sql

"""
Expected Supabase table structure:

families:
- id: uuid (primary key)
- name: text (not null)
- created_by: uuid (foreign key to profiles.id, not null)
- invite_password: text (nullable) - multi-use join password, overwritten on regenerate
- created_at: timestamp (default: now())
- unique constraint families_created_by_key on (created_by) - one family per creator
- unique constraint families_created_by_name_key on (created_by, name)

family_members:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null)
- profile_id: uuid (foreign key to profiles.id, not null)
- role: text (not null, default: 'member') - values: admin, member
- parent_id: uuid (foreign key to family_members.id, nullable) - family tree edge
- joined_at: timestamp (default: now())
- unique constraint family_members_family_id_profile_id_key on (family_id, profile_id)

profile_preferences:
- profile_id: uuid (foreign key to profiles.id, not null)
- key: text (not null) - e.g. 'kyn-selected-family'
- value: text (not null)
- primary key (profile_id, key)

Stored procedures:
- create_family_with_admin(p_name text, p_creator_id uuid) returns setof families
  Inserts the family and the creator's admin membership in one transaction.
"""
