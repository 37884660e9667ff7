# Supabase table: family_invites
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# The password mechanism uses families.invite_password (see kyn.modules.families.models)

"""
Expected Supabase table structure:

family_invites:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null)
- token: text (unique, not null) - 16 random URL-safe characters
- expires_at: timestamp (not null) - created_at + 1 hour
- used: boolean (not null, default: false)
- created_by: uuid (foreign key to profiles.id, nullable)
- created_at: timestamp (default: now())

Lifecycle: pending (used=false, not expired) -> consumed (used=true) on a
successful token join, or expired once expires_at passes. Expired rows are
left in place and rejected at redemption time.

Stored procedures:
- redeem_family_invite(p_invite_id uuid, p_profile_id uuid) returns setof family_members
  Marks the invite used (only while unused and unexpired) and inserts the
  member row in one transaction. Raises 'invite_unavailable' when the invite
  was consumed or expired in the meantime.
"""
