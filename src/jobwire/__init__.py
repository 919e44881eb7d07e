# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""jobwire - job config tree ⇄ scheduler wire document converter."""

__version__ = "0.1.0"

from jobwire.assembler import dump_document, from_wire_document, to_wire_document
from jobwire.compiler import compile_job, job_to_dict, load_job_yaml
from jobwire.config import ConverterConfig, load_config
from jobwire.normalize import semantic_equals

__all__ = [
    "__version__",
    "ConverterConfig",
    "compile_job",
    "dump_document",
    "from_wire_document",
    "job_to_dict",
    "load_config",
    "load_job_yaml",
    "semantic_equals",
    "to_wire_document",
]
