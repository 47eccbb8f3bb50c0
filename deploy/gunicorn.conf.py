"""Gunicorn configuration for the Mark Scheme Coach service.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

Live analysis is CPU-bound and short (tens of milliseconds per keystroke);
only ``/api/mark`` waits on the external marking oracle.  Each worker keeps
its own rubric cache, so a client hitting different workers compiles the
same rubric once per worker.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 1024

# ─── Worker processes ───────────────────────────────────────────
#
# Live analysis runs in the threadpool of each worker, so throughput scales
# with cores rather than with connections.

workers = int(os.getenv("WORKERS", multiprocessing.cpu_count()))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# Must exceed MARKING_TIMEOUT so a slow oracle call can still fall back
# before the worker is killed.

timeout = 60
graceful_timeout = 30
keepalive = 5

# ─── Worker recycling ──────────────────────────────────────────

max_requests = 20000
max_requests_jitter = 2000

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %({x-request-id}o)s %(D)sμs'

# ─── Process naming ─────────────────────────────────────────────

proc_name = "mark-scheme-coach"

# ─── Server hooks ───────────────────────────────────────────────


def on_starting(server):
    server.log.info(
        "Starting Mark Scheme Coach: workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)
