# Supabase table: family_members (parent_id column)
# The tree is not stored separately: each membership may point at the
# membership of its parent via family_members.parent_id (null = root).
