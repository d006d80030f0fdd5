# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Everything an object storage server reports: the ``obdfilter`` targets,
their ``osd`` devices, the ``ost.OSS`` service threads and the lock
manager namespaces.
"""
from typing import List

from lustre_collector import ldlm_parser, obdfilter_parser, osd_parser, ost_parser
from lustre_collector.base_parsers import Input, choice
from lustre_collector.brw_stats_parser import BrwSchema
from lustre_collector.types import Record, TargetVariant


def params() -> List[str]:
    return (
        obdfilter_parser.params()
        + osd_parser.params(TargetVariant.OST)
        + ost_parser.params()
        + ldlm_parser.params()
    )


def parse(inp: Input, brw_schema: BrwSchema = BrwSchema.COUNTS) -> List[Record]:
    return choice(
        inp,
        [
            lambda i: obdfilter_parser.parse(i, brw_schema),
            lambda i: osd_parser.parse(i, TargetVariant.OST, brw_schema),
            ost_parser.parse,
            ldlm_parser.parse,
        ],
    )
