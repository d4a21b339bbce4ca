# Supabase table: favorites
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- user_id: uuid (foreign key to auth.users.id, not null)
- property_id: uuid (foreign key to properties.id, not null, on delete cascade)
- created_at: timestamp (default: now())
- primary key / unique constraint on (user_id, property_id)

RLS: users can select, insert and delete only rows where user_id = auth.uid().

The joined view reads these columns from properties:
id, title, description, price, currency, city, address, bedrooms, bathrooms,
area_sqm, property_type, status, cover_image, created_at
"""
