# Supabase tables: profiles, user_roles, supplier_profiles, vendor_profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in repository.py
# Authentication is handled by Supabase Auth (auth.users table)

PROFILES_TABLE = "profiles"
USER_ROLES_TABLE = "user_roles"
SUPPLIER_PROFILES_TABLE = "supplier_profiles"
VENDOR_PROFILES_TABLE = "vendor_profiles"

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (unique, not null, references auth.users.id)
- email: text (not null)
- full_name: text (nullable)
- phone: text (nullable)
- city: text (nullable)
- show_phone: boolean (default: false)
- show_email: boolean (default: false)
- avatar_url: text (nullable)
- created_at / updated_at: timestamp (default: now())

user_roles:
- id: uuid (primary key)
- user_id: uuid (unique, not null, references auth.users.id)
- role: user_role enum ('supplier' | 'vendor'), never updated after insert

supplier_profiles:
- id: uuid (primary key, referenced by favorites.supplier_id)
- user_id: uuid (unique, not null)
- company_name: text (not null)
- company_description: text (nullable)
- category: text (nullable)
- rating_average: numeric (default: 0)
- rating_count: integer (default: 0)
- is_verified: boolean (default: false)
- created_at / updated_at: timestamp

vendor_profiles:
- id: uuid (primary key)
- user_id: uuid (unique, not null)
- store_name: text (not null)
- store_description: text (nullable)
- created_at / updated_at: timestamp

A supplier_profiles row exists iff user_roles.role = 'supplier' (and symmetrically for
vendor_profiles). Rows are written in the order profiles -> user_roles -> role profile
during sign up, so a user may temporarily own only a prefix of that chain.

Database function has_role(_user_id uuid, _role user_role) -> boolean backs the RLS
policies; the backend mirrors it in IdentityRepository.has_role.
"""
