"""
SQL sidecar files for revision scripts.

A revision script ``0002_add_runs.py`` keeps its SQL next to it in
``0002_add_runs.up.sql`` and ``0002_add_runs.down.sql``:

    def upgrade() -> None:
        run_sql(__file__, "up")
"""

from pathlib import Path
from typing import List, Union

from alembic import op

DIRECTIONS = ("up", "down")


def sql_path(revision_file: Union[str, Path], direction: str) -> Path:
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")
    revision_file = Path(revision_file)
    return revision_file.with_name(f"{revision_file.stem}.{direction}.sql")


def read_sql(revision_file: Union[str, Path], direction: str) -> str:
    return sql_path(revision_file, direction).read_text(encoding="utf-8")


def split_statements(sql: str) -> List[str]:
    """
    Split on semicolons, respecting single/double quotes and dollar-quoted
    strings. ``--`` and ``/* */`` comments outside quotes are dropped.
    """
    statements = []
    current = []
    in_single = False
    in_double = False
    dollar_quote = False
    dollar_tag = ""
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        quoted = in_single or in_double or dollar_quote
        if not quoted and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end
            continue
        if not quoted and sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end == -1 else end + 2
            current.append(" ")
            continue
        if not in_single and not in_double and ch == '$':
            j = i + 1
            while j < n and (sql[j].isalnum() or sql[j] in ['_', '$']):
                j += 1
                if sql[j - 1] == '$':
                    break
            tag = sql[i:j]
            if dollar_quote and tag == dollar_tag:
                dollar_quote = False
                dollar_tag = ""
            elif not dollar_quote and len(tag) >= 2 and tag.endswith('$'):
                dollar_quote = True
                dollar_tag = tag
            current.append(tag)
            i = j
            continue
        if not dollar_quote and ch == "'" and not in_double:
            in_single = not in_single
        elif not dollar_quote and ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ';' and not in_single and not in_double and not dollar_quote:
            stmt = ''.join(current).strip()
            if stmt:
                statements.append(stmt)
            current = []
            i += 1
            continue
        current.append(ch)
        i += 1
    stmt = ''.join(current).strip()
    if stmt:
        statements.append(stmt)
    return statements


def run_sql(revision_file: Union[str, Path], direction: str) -> None:
    """Execute the sidecar SQL of a revision, one statement at a time."""
    for statement in split_statements(read_sql(revision_file, direction)):
        op.execute(statement)
