from typing import Iterable, List

from shard_memory import IndexGroup

HEADERS = ("shard id", "p/r", "index", "index total memory size")

TABLE_OPEN = '<table style="font-family:monospace;">\n'
HEADER_ROW = "<tr>" + "".join(f"<td>{h}</td>" for h in HEADERS) + "</tr>"
ROW = "<tr> <td>{}</td><td>{}&nbsp;</td><td>{}</td><td>{}</td></tr>\n"


def primary_flag(primary: bool) -> str:
    return "p" if primary else "r"


def format_html(index_groups: Iterable[IndexGroup]) -> str:
    """One row per shard instance; the index total is repeated on each row.
    Values come from the cluster and are written unescaped."""
    body = TABLE_OPEN + HEADER_ROW
    for group in index_groups:
        for shard in group.shards:
            body += ROW.format(shard.id, primary_flag(shard.primary), group.index_name, group.memory)
    return body + "</table>"


def format_text(index_groups: Iterable[IndexGroup]) -> str:
    rows: List[tuple] = [
        (shard.id, primary_flag(shard.primary), group.index_name, str(group.memory))
        for group in index_groups
        for shard in group.shards
    ]
    lines = [f"{HEADERS[0]:>8} {HEADERS[1]:3} {HEADERS[2]:50} {HEADERS[3]:>23}", "-" * 87]
    for shard_id, flag, index_name, memory in rows:
        lines.append(f"{shard_id:>8} {flag:3} {index_name:50} {memory:>23}")
    return "\n".join(lines)
