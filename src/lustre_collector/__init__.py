# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
from lustre_collector.errors import (
    CollaboratorError,
    GrammarExhaustedError,
    LustreCollectorError,
    NumericOverflowError,
    ParseError,
    StructuredDecodeError,
    UnconsumedInputError,
)
from lustre_collector.parser import params, parse_lctl_output

__version__ = "0.1.0"

__all__ = [
    "CollaboratorError",
    "GrammarExhaustedError",
    "LustreCollectorError",
    "NumericOverflowError",
    "ParseError",
    "StructuredDecodeError",
    "UnconsumedInputError",
    "params",
    "parse_lctl_output",
]
