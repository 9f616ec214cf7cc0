import multiprocessing

from rentaldesk.core.config import settings

_workers_default = (multiprocessing.cpu_count() * 2) + 1

bind = settings.GUNICORN_BIND
workers = settings.GUNICORN_WORKERS or _workers_default
worker_class = settings.GUNICORN_WORKER_CLASS

accesslog = "-"
errorlog = "-"
loglevel = settings.LOG_LEVEL.lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(L)s'

# Each worker owns its own Mongo client and background backup tasks
preload_app = False

print(f"Gunicorn config loaded: Binding to {bind}, Workers: {workers}, Class: {worker_class}, LogLevel: {loglevel}")
