# Supabase tables: events, event_rsvps
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

events:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null)
- created_by: uuid (foreign key to profiles.id, nullable)
- title: text (not null)
- description: text (nullable)
- location: text (nullable)
- event_date: timestamp (not null)
- created_at: timestamp (default: now())

event_rsvps:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, not null)
- family_id: uuid (foreign key to families.id, not null) - copied from the event for realtime filtering
- profile_id: uuid (foreign key to profiles.id, not null)
- status: text (not null) - values: yes, no, maybe
- created_at: timestamp (default: now())
- unique constraint on (event_id, profile_id) - one answer per member, changed by upsert
"""
