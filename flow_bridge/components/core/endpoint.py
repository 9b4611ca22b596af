"""
Endpoint value object.

One mounted, addressable namespace bridging flow messages and real-time
clients. Owned by a BridgeEndpoint; discarded when it is torn down.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flow_bridge.components.core.constants import BridgeConstants
from flow_bridge.components.routing.paths import url_join


@dataclass
class Endpoint:
    """
    Configuration and counters for one endpoint.

    Attributes:
        url: Normalized base path ("/dashboard"). Also the namespace name.
        data_channel: Channel carrying application messages.
        control_channel: Channel carrying lifecycle signals.
        allow_scripts: Keep a "script" key on inbound flow messages.
        allow_styles: Keep a "style" key on inbound flow messages.
        fwd_in_messages: Re-emit inbound flow messages on output 1.
        topic: Default topic stamped on outgoing messages ("" = none).
        rcv_msg_count: Inbound flow messages seen, dropped ones included.
    """

    url: str
    data_channel: str = BridgeConstants.DATA_CHANNEL
    control_channel: str = BridgeConstants.CONTROL_CHANNEL
    allow_scripts: bool = False
    allow_styles: bool = False
    fwd_in_messages: bool = False
    topic: str = ""
    rcv_msg_count: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.url = url_join(self.url)
        if self.url == "/":
            raise ValueError("Endpoint url must not be empty")
        if not self.data_channel or not self.control_channel:
            raise ValueError("Channel names must not be empty")
        if self.data_channel == self.control_channel:
            raise ValueError(
                f"Data and control channels must differ (both are {self.data_channel!r})"
            )

    @property
    def namespace_name(self) -> str:
        return self.url
