"""Unit tests configuration file."""

import os

import pytest

FIFO_DEPTH = 1024
TESTS_DIR = os.path.dirname(os.path.realpath(__file__))


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


class FakeTransport:
    """In-memory driver session: registers keyed by offset, FIFOs by number."""

    def __init__(self):
        self.registers = {}
        self.register_words = {}
        self.fifos = {}
        self.fifo_bytes = {}

    def read_register(self, offset, kind):
        return self.registers.get(offset, 0)

    def write_register(self, offset, kind, value):
        self.registers[offset] = value

    def read_register_words(self, offset, count):
        return list(self.register_words.get(offset, [0] * count))

    def write_register_words(self, offset, words):
        self.register_words[offset] = list(words)

    def read_fifo(self, number, kind, count, timeout_ms):
        queue = self.fifos.get(number, [])
        data, self.fifos[number] = queue[:count], queue[count:]
        return data, len(self.fifos[number])

    def write_fifo(self, number, kind, values, timeout_ms):
        self.fifos.setdefault(number, []).extend(values)
        return FIFO_DEPTH - len(self.fifos[number])

    def read_fifo_composite(self, number, element_bytes, count, timeout_ms):
        buffer = self.fifo_bytes.get(number, b"")
        size = element_bytes * count
        data, self.fifo_bytes[number] = buffer[:size], buffer[size:]
        return data, len(self.fifo_bytes[number]) // element_bytes

    def write_fifo_composite(self, number, data, element_bytes, count, timeout_ms):
        self.fifo_bytes[number] = self.fifo_bytes.get(number, b"") + bytes(data)
        return FIFO_DEPTH - len(self.fifo_bytes[number]) // element_bytes


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def example_bitfile_path():
    return os.path.join(TESTS_DIR, "bitfile", "example.lvbitx")
