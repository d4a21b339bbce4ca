# Supabase Auth
# Sign-up and sign-in happen in the mobile client against Supabase Auth
# directly. This backend only resolves bearer tokens to users:
# - auth.get_user(jwt) - Get current user from JWT token

"""
The resolved user id is the scope every favorites query and mutation runs
under; RLS on the tables enforces the same scope server-side.
"""
