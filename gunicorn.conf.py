"""
Gunicorn configuration for the habitlog production server.

Env vars that override defaults:
  PORT   TCP port to bind

Day state lives in process memory and the rollover scheduler runs inside
the worker, so exactly one worker process may serve the app.
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = 1

# Each worker runs Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

timeout = 120

# stdout only; the platform captures it.
loglevel = "info"
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

# Lets the lifespan stop the scheduler thread before the worker exits.
graceful_timeout = 30
