"""Logging adapters implementing LoggerProtocol."""

from authguard.infrastructure.logging.console_adapter import ConsoleAdapter
from authguard.infrastructure.logging.noop_adapter import NoOpLogger

__all__ = ["ConsoleAdapter", "NoOpLogger"]
