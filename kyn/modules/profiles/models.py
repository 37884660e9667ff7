# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (unique, references auth.users.id, not null)
- email: text (nullable) - stored lower-cased, used by invite-by-email
- full_name: text (nullable)
- avatar_url: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Exactly one profile per auth account. A profile is created by onboarding and
is the identity every other table references (families.created_by,
family_members.profile_id, posts.author_id, ...).
"""
