import os
import logging

logger = logging.getLogger("gunicorn.conf")

bind = os.getenv("BIND", "0.0.0.0:8000")
worker_class = os.getenv("WORKER_CLASS", "uvicorn.workers.UvicornWorker")
workers = int(os.getenv("WEB_CONCURRENCY", 2))
threads = int(os.getenv("THREADS", 4))

# The SQLAlchemy engine is created per worker unless preloaded
preload_app = os.getenv("PRELOAD_APP", "false").lower() == "true"

# An export fetches every photo and zips it in memory before answering
timeout = int(os.getenv("EXPORT_TIMEOUT", 300))
graceful_timeout = int(os.getenv("GRACEFUL_TIMEOUT", 60))
keepalive = int(os.getenv("KEEP_ALIVE", 5))

# Recycle workers now and then; export archives are held whole in memory
max_requests = int(os.getenv("MAX_REQUESTS", 500))
max_requests_jitter = int(os.getenv("MAX_REQUESTS_JITTER", 50))

worker_tmp_dir = "/dev/shm"


def on_starting(server):
    logger.info(f"Starting event photo API with {workers} worker(s) on {bind}")
    scheduled = os.getenv("ORPHAN_CLEANUP_SCHEDULE", "false").lower() == "true"
    if scheduled and workers > 1:
        # Each worker runs the app lifespan, so each would start its own cleanup job
        logger.warning(
            f"ORPHAN_CLEANUP_SCHEDULE is on with {workers} workers; "
            "trigger the cleanup_orphaned_files Celery task instead"
        )


def post_worker_init(worker):
    worker.log.info(f"Worker {worker.pid} ready")


def worker_abort(worker):
    # Usually a timed out export
    worker.log.warning(f"Worker {worker.pid} aborted after {timeout}s")


def worker_exit(server, worker):
    worker.log.info(f"Worker exited: {worker.pid}")
