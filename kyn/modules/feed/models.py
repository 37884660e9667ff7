# Supabase tables: posts, comments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

posts:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null)
- author_id: uuid (foreign key to profiles.id, not null)
- content: text (not null)
- created_at: timestamp (default: now())

comments:
- id: uuid (primary key)
- post_id: uuid (foreign key to posts.id, not null)
- family_id: uuid (foreign key to families.id, not null) - copied from the post so realtime can filter on it
- author_id: uuid (foreign key to profiles.id, not null)
- content: text (not null)
- created_at: timestamp (default: now())
"""
