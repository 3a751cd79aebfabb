"""Supabase implementation of the idea board RemoteStore."""

from supabase_store_impl.supabase_impl import SupabaseError, SupabaseStore, get_store
from supabase_store_impl.supabase_watcher import PollingSubscription

__all__ = ["PollingSubscription", "SupabaseError", "SupabaseStore", "get_store"]
