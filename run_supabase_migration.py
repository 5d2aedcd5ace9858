#!/usr/bin/env python3
"""Check that the chat tables and store functions exist in Supabase."""
import sys
from pathlib import Path

from neurocom.db.supabase_client import get_supabase

MIGRATION = Path(__file__).parent / "migrations" / "0001_chat_rag.sql"

TABLES = ["sessions", "history", "documents"]


def run_check():
    supabase = get_supabase()
    missing = []

    for table in TABLES:
        try:
            supabase.table(table).select("id").limit(1).execute()
            print(f"✅ table {table}")
        except Exception as e:
            print(f"❌ table {table}: {e}")
            missing.append(table)

    try:
        supabase.rpc("list_sessions_ordered", {"p_user_id": "__schema_check__"}).execute()
        print("✅ function list_sessions_ordered")
    except Exception as e:
        print(f"❌ function list_sessions_ordered: {e}")
        missing.append("list_sessions_ordered")

    if missing:
        print(f"\n💡 Run {MIGRATION.name} in your Supabase SQL editor:\n")
        print(MIGRATION.read_text())
        sys.exit(1)


if __name__ == "__main__":
    run_check()
