import multiprocessing

wsgi_app = "qrtrack:create_app()"

# Scan redirects are I/O bound (database, geolocation); threads per worker absorb bursts
workers = int((multiprocessing.cpu_count() * 2) + 1)
threads = 2
worker_class = "gthread"

# create_app() creates the tables; do it once before forking
preload_app = True
bind = ":8000"

# X-Forwarded-For feeds client_ip() through ProxyFix
forwarded_allow_ips = "*"

# A hung geolocation lookup must not hold a redirect past this
timeout = 30
keepalive = 75

accesslog = "-"
errorlog = "-"
loglevel = "info"
