from rq import Worker
from tubeingest.workers.queue import scrape_queue, redis_conn

if __name__ == "__main__":
    w = Worker([scrape_queue], connection=redis_conn)
    w.work()
