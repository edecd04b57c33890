"""Exception types raised by the debugbridge core."""


class DebugBridgeError(Exception):
    """Base class for debugbridge errors."""


class FrameDecodeError(DebugBridgeError, ValueError):
    """A line carries the frame prefix but does not match the frame grammar."""


class PayloadDecodeError(DebugBridgeError, ValueError):
    """A (reassembled) payload is not valid base64 or JSON message text."""


class RelayAlreadyRunningError(DebugBridgeError, RuntimeError):
    """start() was called on a relay server that is already listening."""
