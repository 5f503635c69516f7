# use in gunicorn as: env/bin/gunicorn mediastore.api:app -c gunicorn.conf.py
# Every worker has its own in-flight thumbnail registry, so concurrent requests for a new
# thumbnail that land on different workers can both render it (they write identical bytes).

# Workers
workers = 5
worker_class = 'uvicorn.workers.UvicornWorker'

# Socket
bind = 'localhost:5001'

# Logging
# loglevel = 'debug'
# accesslog = '/tmp/mediastore_access_log'
# errorlog =  '/tmp/mediastore_error_log'
