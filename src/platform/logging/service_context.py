"""
Service identification prefix for every log line.

API replicas and standalone expiration consumers share one log stream, so each
line carries `<service>@<env>:<host>/<pid>`.
"""

import os
import socket
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'event-booking')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
    host = os.getenv('HOSTNAME') or socket.gethostname()
    return f'{service_name}@{deploy_env}:{host[:12]}/{os.getpid()}'
