# Supabase table: tasks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

tasks:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null)
- created_by: uuid (foreign key to profiles.id, nullable)
- assigned_to: uuid (foreign key to profiles.id, nullable) - must be a member of the family
- title: text (not null)
- description: text (nullable)
- due_date: date (nullable)
- completed: boolean (not null, default: false)
- created_at: timestamp (default: now())
"""
