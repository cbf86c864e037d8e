"""
HTTP gateway adapters for TouristSafe.

This module contains the SMS and push adapters that reach
external providers over HTTP.
"""

from .sms_gateway import HTTPSMSGateway
from .push_gateway import HTTPPushGateway

__all__ = ["HTTPSMSGateway", "HTTPPushGateway"]
