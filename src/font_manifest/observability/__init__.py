# Copyright (c) 2025 Arye Kogan
# SPDX-License-Identifier: MIT

"""Observability utilities (structured build logging)."""

from .logging import StructuredJsonFormatter, StructuredLoggerAdapter, build_logging

__all__ = [
    "StructuredJsonFormatter",
    "StructuredLoggerAdapter",
    "build_logging",
]
