import multiprocessing
import os

wsgi_app = "school_api.main:app"
bind = os.getenv("BIND", "127.0.0.1:8000")
# The overdue-fee scheduler runs in-process; keep ENABLE_SCHEDULER on for a single worker only.
workers = int(os.getenv("WEB_CONCURRENCY", (multiprocessing.cpu_count() * 2) + 1))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 60
graceful_timeout = 30
keepalive = 5
loglevel = os.getenv("LOG_LEVEL", "info")
accesslog = "-"
errorlog = "-"
