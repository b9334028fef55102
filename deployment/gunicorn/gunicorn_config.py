import multiprocessing
import os

wsgi_app = "core.wsgi:application"
bind = os.getenv("GUNICORN_BIND", "unix:/run/agricart/gunicorn.sock")
workers = int(os.getenv("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "sync"
worker_tmp_dir = "/dev/shm"
max_requests = 1000
max_requests_jitter = 100
# Checkout and group verdicts hold row locks; keep requests short
timeout = 60
keepalive = 5

# Logging
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
access_log_format = '%(h)s %(u)s %(t)s "%(r)s" %(s)s %(b)s %(D)s'

proc_name = "agricart-backend"


def when_ready(server):
    server.log.info("Agricart backend ready, spawning workers")


def worker_abort(worker):
    """Called when a worker times out, usually a request stuck on a row lock."""
    worker.log.warning("Worker aborted after timeout")
