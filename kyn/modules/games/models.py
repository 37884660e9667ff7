# Supabase tables: trivia_questions, trivia_scores
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

trivia_questions:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null)
- created_by: uuid (foreign key to profiles.id, nullable)
- question: text (not null)
- answer: text (not null) - never returned by the API or the realtime relay
- created_at: timestamp (default: now())

trivia_scores:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null)
- profile_id: uuid (foreign key to profiles.id, not null)
- score: integer (not null, default: 0)
- updated_at: timestamp (default: now())
- unique constraint on (family_id, profile_id)

Stored procedures:
- increment_trivia_score(p_family_id uuid, p_profile_id uuid) returns setof trivia_scores
  Adds one point, creating the score row on first use, in a single statement.
"""
