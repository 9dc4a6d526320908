"""Supabase persistence."""
