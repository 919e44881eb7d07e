# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Nested block converters, one to_wire / from_wire pair per block."""

from jobwire.converters.context import ConversionContext

__all__ = ["ConversionContext"]
