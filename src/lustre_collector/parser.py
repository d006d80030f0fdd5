# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Dispatch over the per-subsystem grammars.

Grammars are tried in priority order at every record boundary: host level
parameters, then the management, metadata and object storage servers,
then the quota master. The first grammar that parses a whole record wins.
If none does, the failure is reported as exhaustion when some grammar got
past the start of the record and as unconsumed input when none did.
"""
import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Sequence, Union

from lustre_collector import (
    lnetctl_parser,
    mds_parser,
    mgs_fs_parser,
    mgs_parser,
    node_parser,
    oss_parser,
    quota_parser,
    recovery_status_parser,
    top_level_parser,
)
from lustre_collector.base_parsers import Input, NoMatch, attempt, many
from lustre_collector.brw_stats_parser import BrwSchema
from lustre_collector.errors import (
    CollaboratorError,
    GrammarExhaustedError,
    UnconsumedInputError,
)
from lustre_collector.types import Record

logger = logging.getLogger("lustre-collector.parser")


@dataclass(frozen=True)
class Grammar:
    name: str
    parse: Callable[[Input], List[Record]]
    params: Callable[[], List[str]]


def grammars(brw_schema: BrwSchema = BrwSchema.COUNTS) -> List[Grammar]:
    return [
        Grammar("top_level", top_level_parser.parse, top_level_parser.params),
        Grammar("mgs", mgs_parser.parse, mgs_parser.params),
        Grammar("mds", mds_parser.parse, mds_parser.params),
        Grammar("oss", partial(oss_parser.parse, brw_schema=brw_schema), oss_parser.params),
        Grammar("quota", quota_parser.parse, quota_parser.params),
    ]


def params() -> List[str]:
    """Every pattern ``lctl get_param`` must be asked for."""
    result: List[str] = []
    for grammar in grammars():
        result.extend(grammar.params())
    return result


def parse_records(inp: Input, choices: Sequence[Grammar]) -> List[Record]:
    records: List[Record] = []
    while not inp.at_eof():
        start = inp.pos
        inp.furthest = start
        inp.expected = set()
        for grammar in choices:
            try:
                records.extend(attempt(inp, grammar.parse))
                break
            except NoMatch:
                continue
        else:
            queries = [query for grammar in choices for query in grammar.params()]
            raise _no_match_error(inp, start, queries)
    return records


def _no_match_error(
    inp: Input, start: int, queries: List[str]
) -> Union[GrammarExhaustedError, UnconsumedInputError]:
    if inp.furthest > start:
        return inp.error(GrammarExhaustedError, "No grammar could finish parsing")
    line, column = inp.line_col(start)
    return UnconsumedInputError(
        inp.remaining(), queries, start, line, column, inp.expected
    )


def decode_output(output: Union[str, bytes], source: str = "lctl") -> str:
    if isinstance(output, str):
        return output
    try:
        return output.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CollaboratorError(f"Output of {source} is not valid UTF-8: {e}", [source])


def parse_lctl_output(
    output: Union[str, bytes], brw_schema: BrwSchema = BrwSchema.COUNTS
) -> List[Record]:
    """Records for ``lctl get_param`` output of the patterns from ``params``."""
    inp = Input(decode_output(output))
    records = parse_records(inp, grammars(brw_schema))
    logger.debug(f"Parsed {len(records)} records from lctl output")
    return records


def parse_mgs_fs_output(output: Union[str, bytes]) -> List[Record]:
    inp = Input(decode_output(output))
    lines = many(inp, mgs_fs_parser.fs_line)
    if not inp.at_eof():
        raise _no_match_error(inp, inp.pos, mgs_fs_parser.params())
    return mgs_fs_parser.group_fs_names(lines)


def parse_recovery_status_output(output: Union[str, bytes]) -> List[Record]:
    inp = Input(decode_output(output))
    return parse_records(
        inp,
        [
            Grammar(
                "recovery_status",
                recovery_status_parser.target_recovery_status,
                recovery_status_parser.params,
            )
        ],
    )


def parse_lnetctl_output(output: Union[str, bytes]) -> List[Record]:
    return lnetctl_parser.parse(decode_output(output, "lnetctl"))


def parse_lnetctl_stats(output: Union[str, bytes]) -> List[Record]:
    return lnetctl_parser.parse_stats(decode_output(output, "lnetctl"))


def parse_node_output(output: Union[str, bytes]) -> List[Record]:
    return node_parser.parse(Input(decode_output(output, "proc")))
