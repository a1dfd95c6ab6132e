"""
Built-in handlers: the CORS policy and the demo routes.
"""

from .cors import CORSPolicy
from .demo import echo, hello, register_demo_routes, welcome

__all__ = [
    "CORSPolicy",
    "echo",
    "hello",
    "register_demo_routes",
    "welcome",
]
