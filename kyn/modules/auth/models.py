# Supabase Auth
# Accounts live in Supabase's auth.users table; this module never writes tables directly.

"""
Supabase Auth provides:
- auth.sign_up() - Register new accounts
- auth.sign_in_with_password() - Authenticate accounts
- auth.get_user() - Get current account from JWT token
- auth.sign_out() - Logout

An account is not a Kyn identity on its own: the application-level identity is
the `profiles` row created during onboarding (see kyn.modules.profiles).
"""
