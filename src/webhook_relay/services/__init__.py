"""
Services Module

Outbound integrations of the relay.
"""
from webhook_relay.services.fanout import DeliveryOutcome, FanoutDelivery

__all__ = ["DeliveryOutcome", "FanoutDelivery"]
