# Supabase table: messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

messages:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null)
- sender_id: uuid (foreign key to profiles.id, not null)
- recipient_id: uuid (foreign key to profiles.id, not null)
- content: text (not null)
- created_at: timestamp (default: now())

Messages are direct: only sender and recipient can read them, and both must
belong to the family the message is filed under.
"""
