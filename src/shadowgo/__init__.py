"""shadowgo: generate shadow Go packages whose calls can be routed to gomock."""

from __future__ import annotations

from . import errors
from .builder.build import PackageResult, get_mocked_packages, make_pkg, mock_interfaces
from .config import MockConfig

__all__ = [
    "MockConfig",
    "PackageResult",
    "errors",
    "get_mocked_packages",
    "make_pkg",
    "mock_interfaces",
]
