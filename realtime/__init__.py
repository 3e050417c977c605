from realtime.channels import Connection, ConnectionRegistry, ChannelRouter

__all__ = ["Connection", "ConnectionRegistry", "ChannelRouter"]
