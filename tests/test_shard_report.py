"""
Tests for table rendering.
"""
from shard_memory import IndexGroup, ShardSummary
from shard_report import format_html, format_text


GROUPS = [
    IndexGroup(index_name="small", memory=10, shards=[ShardSummary(id="0", primary=True, node="n1")]),
    IndexGroup(index_name="big", memory=300, shards=[
        ShardSummary(id="0", primary=True, node="n1"),
        ShardSummary(id="0", primary=False, node="n2"),
    ]),
]


def test_html_table():
    html = format_html(GROUPS)

    assert html == (
        '<table style="font-family:monospace;">\n'
        "<tr><td>shard id</td><td>p/r</td><td>index</td><td>index total memory size</td></tr>"
        "<tr> <td>0</td><td>p&nbsp;</td><td>small</td><td>10</td></tr>\n"
        "<tr> <td>0</td><td>p&nbsp;</td><td>big</td><td>300</td></tr>\n"
        "<tr> <td>0</td><td>r&nbsp;</td><td>big</td><td>300</td></tr>\n"
        "</table>"
    )


def test_html_empty_index_has_no_rows():
    html = format_html([IndexGroup(index_name="empty", memory=0)])

    assert "empty" not in html
    assert html.endswith("</table>")


def test_text_table():
    lines = format_text(GROUPS).splitlines()

    assert "shard id" in lines[0]
    assert len(lines) == 5
    assert lines[4].split() == ["0", "r", "big", "300"]
