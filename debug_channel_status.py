from tubeingest.db.context import get_db_session
from tubeingest.models import Channel, Video

with get_db_session() as db:
    channels = db.query(Channel).order_by(Channel.name.asc()).all()
    print(f"{'Channel ID':<24} | {'Active':<6} | {'Freq':<6} | {'Last scraped':<32} | {'Name'}")
    print("-" * 100)
    for ch in channels:
        last = ch.last_scraped_at.isoformat() if ch.last_scraped_at else "never"
        print(f"{ch.youtube_channel_id:<24} | {str(ch.is_active):<6} | {ch.scrape_frequency:<6} | {last:<32} | {ch.name}")
        count = db.query(Video).filter(Video.channel_id == ch.id).count()
        print(f"  {count} videos stored")

    print("\nLatest ingested videos:")
    videos = db.query(Video).order_by(Video.created_at.desc()).limit(10).all()
    for v in videos:
        print(f"  - {v.youtube_video_id} | {v.status:<8} | {v.duration_sec:>6}s | {v.channel_name} | {v.title}")
