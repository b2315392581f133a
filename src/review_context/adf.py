"""Atlassian Document Format (ADF) to markdown conversion.

Jira Cloud returns issue descriptions and comment bodies as ADF: a JSON
tree of typed nodes, e.g.

    {"type": "doc", "version": 1, "content": [
        {"type": "paragraph", "content": [
            {"type": "text", "text": "Hello ", "marks": []},
            {"type": "text", "text": "world", "marks": [{"type": "strong"}]}
        ]}
    ]}

This module turns that tree into markdown good enough to read in an
editor. It is the default converter handed to the issue renderer; the
renderer only relies on the ``convert(doc) -> ConversionResult`` shape.

Nodes we don't know about render their children, so new ADF node types
degrade to plain text instead of disappearing.

ADF reference: https://developer.atlassian.com/cloud/jira/platform/apis/document/structure/
"""

from __future__ import annotations

from typing import Any

from review_context.renderer import ConversionResult

Node = dict[str, Any]


def _children(node: Node) -> list[Node]:
    return node.get("content") or []


def _apply_marks(text: str, marks: list[Node]) -> str:
    for mark in marks:
        kind = mark.get("type")
        if kind == "strong":
            text = f"**{text}**"
        elif kind == "em":
            text = f"*{text}*"
        elif kind == "code":
            text = f"`{text}`"
        elif kind == "strike":
            text = f"~~{text}~~"
        elif kind == "link":
            href = (mark.get("attrs") or {}).get("href", "")
            text = f"[{text}]({href})"
    return text


def _inline(nodes: list[Node]) -> str:
    """Render a run of inline nodes (text, mentions, breaks, ...)."""
    out = []
    for node in nodes:
        kind = node.get("type")
        attrs = node.get("attrs") or {}
        if kind == "text":
            out.append(_apply_marks(node.get("text", ""), node.get("marks") or []))
        elif kind == "hardBreak":
            out.append("  \n")
        elif kind == "mention":
            out.append(attrs.get("text") or f"@{attrs.get('id', '')}")
        elif kind == "emoji":
            out.append(attrs.get("text") or attrs.get("shortName", ""))
        elif kind in ("inlineCard", "blockCard"):
            url = attrs.get("url", "")
            out.append(f"<{url}>" if url else "")
        elif kind == "date":
            out.append(str(attrs.get("timestamp", "")))
        elif kind == "status":
            out.append(f"[{attrs.get('text', '')}]")
        else:
            out.append(_inline(_children(node)))
    return "".join(out)


def _list(node: Node, ordered: bool, depth: int) -> str:
    lines = []
    start = (node.get("attrs") or {}).get("order") or 1
    for index, item in enumerate(_children(node), start=start):
        bullet = f"{index}." if ordered else "-"
        indent = "  " * depth
        body_lines = []
        for child in _children(item):
            kind = child.get("type")
            if kind in ("bulletList", "orderedList"):
                body_lines.append(_list(child, kind == "orderedList", depth + 1))
            else:
                body_lines.append(_block(child, depth + 1).strip())
        first, *rest = "\n".join(body_lines).split("\n") or [""]
        lines.append(f"{indent}{bullet} {first}")
        lines.extend(rest)
    return "\n".join(lines)


def _table(node: Node) -> str:
    rows = []
    for row in _children(node):
        cells = [
            " ".join(_block(c).strip() for c in _children(cell)).replace("|", "\\|")
            for cell in _children(row)
        ]
        rows.append(cells)
    if not rows:
        return ""

    width = max(len(r) for r in rows)
    rows = [r + [""] * (width - len(r)) for r in rows]
    lines = ["| " + " | ".join(rows[0]) + " |", "|" + " --- |" * width]
    lines.extend("| " + " | ".join(r) + " |" for r in rows[1:])
    return "\n".join(lines)


def _block(node: Node, depth: int = 0) -> str:
    """Render one block-level node."""
    kind = node.get("type")
    attrs = node.get("attrs") or {}

    if kind == "paragraph":
        return _inline(_children(node))
    if kind == "heading":
        level = min(max(int(attrs.get("level", 1)), 1), 6)
        return f"{'#' * level} {_inline(_children(node))}"
    if kind == "bulletList":
        return _list(node, ordered=False, depth=depth)
    if kind == "orderedList":
        return _list(node, ordered=True, depth=depth)
    if kind == "codeBlock":
        language = attrs.get("language") or ""
        return f"```{language}\n{_inline(_children(node))}\n```"
    if kind == "blockquote":
        inner = _blocks(_children(node))
        return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
    if kind == "rule":
        return "---"
    if kind == "table":
        return _table(node)
    if kind in ("panel", "expand", "nestedExpand", "mediaSingle", "mediaGroup"):
        title = attrs.get("title")
        body = _blocks(_children(node))
        return f"**{title}**\n\n{body}" if title else body
    if kind == "media":
        return f"[attachment: {attrs.get('alt') or attrs.get('id', '')}]"
    if kind in ("text", "hardBreak", "mention", "emoji", "inlineCard", "date", "status"):
        return _inline([node])
    return _blocks(_children(node))


def _blocks(nodes: list[Node]) -> str:
    return "\n\n".join(part for part in (_block(n) for n in nodes) if part)


def adf_to_markdown(document: Node | None) -> ConversionResult:
    """Convert an ADF document to markdown.

    Args:
        document: ADF tree (usually ``{"type": "doc", ...}``) or None

    Returns:
        A ConversionResult whose ``result`` is the markdown text
    """
    if not document:
        return ConversionResult(result="")
    if document.get("type") == "doc":
        return ConversionResult(result=_blocks(_children(document)))
    return ConversionResult(result=_block(document))
