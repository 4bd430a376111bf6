import os

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
# Limiter and token stores are thread-safe
threads = int(os.getenv("GUNICORN_THREADS", "4"))
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr (collected by Docker)
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Forwarded headers are only honoured behind a trusted proxy (see TRUST_PROXY)
_trust_proxy = os.getenv("TRUST_PROXY", "false").strip().lower() in {"1", "true", "yes", "on"}
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*") if _trust_proxy else "127.0.0.1"
proxy_protocol = False

wsgi_app = "gzclp_api:create_app()"
