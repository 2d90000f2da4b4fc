"""
Add a channel if needed and scrape it right away, without the queue.

Usage:
    python manual_scrape.py @somechannel            # incremental
    python manual_scrape.py UCxxxxxxxxxxxxxxxxxxxxxx --full
"""
import argparse

from tubeingest.core.errors import IngestError
from tubeingest.db.base import Base
from tubeingest.db.context import get_db_session
from tubeingest.db.repositories import ChannelRepository
from tubeingest.db.session import engine
from tubeingest.services.channel_scraper import add_channel, scrape_channel
from tubeingest.services.youtube import YouTubeClient
import tubeingest.models  # noqa: F401


def manual_scrape(raw_input: str, full: bool, frequency: str) -> int:
    print(f"--- MANUAL SCRAPE START ---")
    Base.metadata.create_all(bind=engine)
    client = YouTubeClient()

    with get_db_session() as db:
        print("1. Resolving channel...")
        youtube_channel_id = client.resolve_channel_id(raw_input)
        if not youtube_channel_id:
            print(f"   Could not find a channel for {raw_input!r}")
            return 1
        print(f"   {raw_input} -> {youtube_channel_id}")

        ch = ChannelRepository(db).get_by_youtube_id(youtube_channel_id)
        if ch is None:
            print("2. Adding channel...")
            ch = add_channel(db, youtube_channel_id, scrape_frequency=frequency, client=client)
            print(f"   Created channel {ch.name} ({ch.id})")
        else:
            print(f"2. Channel already tracked: {ch.name}, last scraped {ch.last_scraped_at or 'never'}")

        print(f"3. Running {'full' if full else 'incremental'} scrape...")
        result = scrape_channel(db, ch.id, full=full, client=client)
        print(f"   found={result.videos_found} created={result.videos_created} skipped={result.videos_skipped}")
        print(f"   watermark -> {result.watermark.isoformat()}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("channel", help="Channel ID, @handle or channel URL")
    parser.add_argument("--full", action="store_true", help="Scrape the whole upload history")
    parser.add_argument("--frequency", choices=["daily", "manual"], default="daily",
                        help="Cadence for a newly added channel")
    args = parser.parse_args()
    try:
        raise SystemExit(manual_scrape(args.channel, args.full, args.frequency))
    except IngestError as e:
        print(f"   Failed: {type(e).__name__}: {e}")
        raise SystemExit(2)
