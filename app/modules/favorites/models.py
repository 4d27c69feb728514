# Supabase table: favorites
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

FAVORITES_TABLE = "favorites"

"""
Expected Supabase table structure:

favorites:
- id: uuid (primary key)
- vendor_id: uuid (not null) - auth user id of the vendor
- supplier_id: uuid (not null) - supplier_profiles.id of the bookmarked supplier
- created_at: timestamp (default: now())
- unique constraint on (vendor_id, supplier_id)

RLS only lets a user holding the 'vendor' role insert/delete rows where
vendor_id = auth.uid(); the backend does not re-check ownership.
"""
