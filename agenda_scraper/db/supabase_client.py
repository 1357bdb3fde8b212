from __future__ import annotations

from supabase import create_client, Client

from ..config import supabase_credentials


def get_supabase_client() -> Client:
    url, key = supabase_credentials()
    return create_client(url, key)
