"""Study Buddy gateway proxy."""

from .config import ProxyConfig
from .proxy import create_proxy_app, start_proxy_server

__all__ = ['ProxyConfig', 'create_proxy_app', 'start_proxy_server']
