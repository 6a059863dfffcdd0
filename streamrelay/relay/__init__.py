from streamrelay.state import OutcomeKind, RelayOutcome

from .relay import Relay
from .bridge import RelayBridge
from .deframer import Deframer, deframe
from .delivery import DeliveryQueue
from .watchdog import StallWatchdog
from .fragment import MessageFragment
from .upstream import UpstreamClient
from .request import RelayRequest, parse_relay_request

__all__ = [
    "Deframer",
    "DeliveryQueue",
    "MessageFragment",
    "OutcomeKind",
    "Relay",
    "RelayBridge",
    "RelayOutcome",
    "RelayRequest",
    "StallWatchdog",
    "UpstreamClient",
    "deframe",
    "parse_relay_request",
]
