"""Supabase adapter (auth + PostgREST) over httpx."""

from bizplan.adapters.supabase.client import SupabaseClient, SupabaseUser, eq

__all__ = ["SupabaseClient", "SupabaseUser", "eq"]
