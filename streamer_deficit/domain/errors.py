"""Error taxonomy for the deficit report pipeline."""
from __future__ import annotations


class StreamerDeficitError(Exception):
    """Base class for every failure the report pipeline raises."""


class ConfigurationError(StreamerDeficitError):
    """A required external input is missing or inconsistent."""


class ChainReadError(StreamerDeficitError):
    """An RPC call failed or returned something we cannot interpret."""


class LogParsingError(StreamerDeficitError):
    """An event log could not be decoded against the contract ABI."""


class SimulationError(StreamerDeficitError):
    """The forked claim simulation reverted or produced no receipt."""
