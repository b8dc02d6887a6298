"""Reader for the JSON-lines facts file written by analysis engines.

Each line is one JSON object with a ``kind``:

    {"kind": "type", "uri": "/p/A", "sourceFile": "A.java",
     "superClasses": ["/java.lang/Object"], "superInterfaces": []}
    {"kind": "method", "type": "/p/A", "uri": "/p/A.foo()V"}
    {"kind": "call", "source": "/p/A.foo()V", "target": "/q/B.bar()V",
     "callType": "invokevirtual"}

Lines of other kinds are skipped.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from callgraph_core.assembler import CallGraphAssembler
from callgraph_core.exceptions import FormatError
from callgraph_core.uri import Identifier
from callgraph_core.wire import require

logger = logging.getLogger(__name__)


def load_facts(path: Path | str, assembler: CallGraphAssembler) -> int:
    """Feed every fact in ``path`` into ``assembler``.

    Returns:
        Number of facts applied
    """
    with Path(path).open("r", encoding="utf-8") as f:
        return apply_facts(f, assembler)


def apply_facts(lines: Iterable[str], assembler: CallGraphAssembler) -> int:
    """Feed JSON-lines facts into ``assembler``.

    Types are applied before methods and methods before calls, so engines may
    write facts in any order.

    Raises:
        FormatError: If a line is not a JSON object or lacks a required key
    """
    types: list[dict[str, Any]] = []
    methods: list[dict[str, Any]] = []
    calls: list[dict[str, Any]] = []
    skipped = 0

    for number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise FormatError("Invalid fact line", {"line": number, "error": str(e)}) from e
        if not isinstance(obj, dict):
            raise FormatError("Fact must be an object", {"line": number})

        kind = obj.get("kind")
        if kind == "type":
            types.append(obj)
        elif kind == "method":
            methods.append(obj)
        elif kind == "call":
            calls.append(obj)
        else:
            skipped += 1

    for fact in types:
        assembler.add_type(
            Identifier.create(require(fact, "uri", str, "type fact")),
            require(fact, "sourceFile", str, "type fact"),
            [Identifier.create(uri) for uri in fact.get("superClasses", [])],
            [Identifier.create(uri) for uri in fact.get("superInterfaces", [])],
        )
    for fact in methods:
        assembler.add_method(
            Identifier.create(require(fact, "type", str, "method fact")),
            Identifier.create(require(fact, "uri", str, "method fact")),
        )
    for fact in calls:
        assembler.add_call(
            Identifier.create(require(fact, "source", str, "call fact")),
            Identifier.create(require(fact, "target", str, "call fact")),
            require(fact, "callType", str, "call fact"),
        )

    if skipped:
        logger.debug("Skipped %d facts of unknown kind", skipped)
    return len(types) + len(methods) + len(calls)
