"""Network transport for answer submission and report status."""

from .base import NetworkTransport
from .http import HttpTransport

__all__ = ['NetworkTransport', 'HttpTransport']
