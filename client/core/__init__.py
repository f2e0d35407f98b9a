from .negotiator import RoleNegotiator
from .network import OutboundSender

__all__ = ["OutboundSender", "RoleNegotiator"]
