"""Script to clear indexed chunks and force every course to be re-ingested.

This script:
1. Deletes all course chunks from the vector index
2. Resets course statuses to 'pending'
3. Allows the next sweep to re-chunk and re-index every transcript
"""

import asyncio
import os

from dotenv import load_dotenv
from supabase import create_client

load_dotenv()


async def clear_and_reset() -> None:
    """Clear indexed chunks and reset course statuses."""
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_KEY")

    if not url or not key:
        raise ValueError("Missing SUPABASE_URL or SUPABASE_SERVICE_KEY")

    client = create_client(url, key)

    courses_response = client.table("courses").select("id, processing_status").execute()
    chunks_response = client.table("course_chunks").select("id").execute()

    print("Current state:")
    print(f"  Courses: {len(courses_response.data) if courses_response.data else 0}")
    print(f"  Chunks: {len(chunks_response.data) if chunks_response.data else 0}")

    print("\nThis will:")
    print("  1. DELETE all course chunks")
    print("  2. RESET all course statuses to 'pending'")
    print("  3. Re-index everything on the next sweep")

    confirm = input("\nAre you sure? Type 'yes' to continue: ")

    if confirm.lower() != "yes":
        print("Aborted")
        return

    print("\nDeleting course chunks...")
    client.table("course_chunks").delete().neq("id", "00000000-0000-0000-0000-000000000000").execute()

    print("Resetting course statuses...")
    client.table("courses").update(
        {
            "processing_status": "pending",
            "processed_at": None,
            "error_message": None,
        }
    ).neq("id", "").execute()

    print("\nDone! You can now run the sweep:")
    print("  python -m src.rag_pipeline.cli --sweep")


if __name__ == "__main__":
    asyncio.run(clear_and_reset())
