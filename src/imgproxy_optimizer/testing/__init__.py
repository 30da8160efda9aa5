"""Testing utilities and fakes for the image optimizer."""

from .fakes import (
    FakeLogger,
    FakeOptionStore,
    make_test_config,
    sample_document,
)

__all__ = [
    "FakeLogger",
    "FakeOptionStore",
    "make_test_config",
    "sample_document",
]
