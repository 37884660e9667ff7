# Supabase tables: polls, poll_votes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

polls:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null)
- created_by: uuid (foreign key to profiles.id, nullable)
- question: text (not null)
- options: jsonb (not null) - array of 2 to 6 option labels
- created_at: timestamp (default: now())

poll_votes:
- id: uuid (primary key)
- poll_id: uuid (foreign key to polls.id, not null)
- family_id: uuid (foreign key to families.id, not null) - copied from the poll for realtime filtering
- profile_id: uuid (foreign key to profiles.id, not null)
- option_index: integer (not null) - position in polls.options
- created_at: timestamp (default: now())
- unique constraint on (poll_id, profile_id) - one vote per member, changed by upsert
"""
