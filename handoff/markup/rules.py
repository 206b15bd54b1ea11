"""Named text-rewriting rules for generated UI markup.

The markup dialect is fixed and small: JSX-like opening tags whose inline
styles are written as ``style={{ key: 'value', ... }}``. A bare
``style={expr}`` is read as a single spread, so rewriting it yields
``style={{ ...expr, ... }}``. Every pattern the correction stages rely on
lives here as a named, independently testable rule.
Nothing in this module builds a syntax tree; rules scan text and return
offsets, and rewrites are plain slice substitutions.

Rules never raise on malformed input. A rule that cannot find its pattern
returns None (or an empty result) and callers leave the text untouched.
The one exception is extract_markup_block, which raises when a generation
response carries no markup at all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from handoff.errors import MarkupExtractionError

NODE_ID_ATTR = "data-node-id"
# Elements added by the accessibility passes; never paired with design nodes
HELPER_ATTR = "data-a11y"

NATIVE_INTERACTIVE_TAGS = frozenset({"button", "a", "input", "select", "textarea"})


# =====================================================================
# Fenced block extraction
# =====================================================================

_FENCED_BLOCK_RE = re.compile(
    r"```(?:jsx|tsx|js|javascript)[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE,
)


def extract_markup_block(text: Optional[str]) -> str:
    """Return the first fenced jsx/tsx/js/javascript block of a response.

    Pre: text is a generation-service reply.
    Post: the block body without fences, stripped of surrounding blank lines.
    Raises MarkupExtractionError when no such block exists.
    """
    match = _FENCED_BLOCK_RE.search(text or "")
    if not match:
        raise MarkupExtractionError("no fenced jsx/js block found in generation response")
    return match.group(1).strip("\n")


# =====================================================================
# Opening tags
# =====================================================================

_OPEN_TAG_RE = re.compile(r"<([A-Za-z][\w.:-]*)(?=[\s/>])")
_CLOSE_TAG_RE = re.compile(r"</([A-Za-z][\w.:-]*)\s*>")


@dataclass(frozen=True)
class ElementMatch:
    """One opening tag found in markup.

    ``start``/``end`` delimit the opening tag only (``end`` is one past ``>``).
    ``attrs_text`` is everything between the tag name and the closing ``>``
    or ``/>``.
    """

    tag: str
    start: int
    end: int
    attrs_text: str
    self_closing: bool
    node_id: Optional[str] = None

    def text(self, markup: str) -> str:
        return markup[self.start:self.end]

    def has_attribute(self, name: str) -> bool:
        return _attr_pattern(name).search(self.attrs_text) is not None

    def get_attribute(self, name: str) -> Optional[str]:
        return get_attribute(self.attrs_text, name)


def _scan_tag_end(markup: str, pos: int) -> int:
    """Index of the ``>`` that closes the tag opened before pos, or -1.

    Skips quoted strings and ``{...}`` expressions so ``=>`` inside handlers
    and ``>`` inside strings do not end the tag.
    """
    depth = 0
    quote: Optional[str] = None
    i = pos
    n = len(markup)
    while i < n:
        ch = markup[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(0, depth - 1)
        elif ch == ">" and depth == 0:
            return i
        elif ch == "<" and depth == 0 and quote is None:
            # A new tag starts before this one closed: malformed
            return -1
        i += 1
    return -1


def iter_elements(markup: Optional[str]) -> Iterator[ElementMatch]:
    """Yield JSX opening tags in document order.

    A ``<`` only opens a tag when directly followed by a tag name and not
    preceded by an identifier character, so comparisons (``a < b``) and type
    arguments (``useState<string>``) are skipped. Tags that never close are
    skipped.
    """
    if not markup:
        return
    pos = 0
    while True:
        match = _OPEN_TAG_RE.search(markup, pos)
        if not match:
            return
        start = match.start()
        prev = markup[start - 1] if start > 0 else ""
        if prev and (prev.isalnum() or prev in "_.$"):
            pos = match.end()
            continue
        close = _scan_tag_end(markup, match.end())
        if close < 0:
            pos = match.end()
            continue
        inner = markup[match.end():close]
        self_closing = inner.rstrip().endswith("/")
        attrs_text = inner.rstrip()[:-1] if self_closing else inner
        yield ElementMatch(
            tag=match.group(1),
            start=start,
            end=close + 1,
            attrs_text=attrs_text,
            self_closing=self_closing,
            node_id=get_attribute(attrs_text, NODE_ID_ATTR),
        )
        pos = close + 1


def root_element(markup: Optional[str]) -> Optional[ElementMatch]:
    """Outermost (first) element of the markup, or None."""
    return next(iter_elements(markup), None)


def rewrite_element(markup: str, element: ElementMatch, new_open: str) -> str:
    """Replace element's opening tag with new_open. Offsets after it shift."""
    return markup[:element.start] + new_open + markup[element.end:]


def match_closing_tags(
    markup: str, elements: Optional[Sequence[ElementMatch]] = None,
) -> Dict[int, Tuple[int, int]]:
    """Map each non-self-closing element's start offset to its close-tag span.

    Stack-matches opening and closing tags by name. Unbalanced closers are
    ignored; openers that never close are absent from the result.
    """
    if elements is None:
        elements = list(iter_elements(markup))
    events: List[Tuple[int, str, object]] = [
        (e.start, "open", e) for e in elements if not e.self_closing
    ]
    for match in _CLOSE_TAG_RE.finditer(markup):
        events.append((match.start(), "close", match))
    events.sort(key=lambda ev: ev[0])

    stack: List[ElementMatch] = []
    spans: Dict[int, Tuple[int, int]] = {}
    for _, kind, item in events:
        if kind == "open":
            stack.append(item)
            continue
        name = item.group(1)
        for i in range(len(stack) - 1, -1, -1):
            if stack[i].tag == name:
                spans[stack[i].start] = (item.start(), item.end())
                del stack[i:]
                break
    return spans


def closing_tag_span(markup: str, element: ElementMatch) -> Optional[Tuple[int, int]]:
    """Span of the ``</tag>`` matching element, or None (self-closing/unmatched)."""
    if element.self_closing:
        return None
    return match_closing_tags(markup).get(element.start)


def element_extent(markup: str, element: ElementMatch, spans: Dict[int, Tuple[int, int]]) -> int:
    """Offset one past the element's full extent (closing tag included)."""
    if element.self_closing:
        return element.end
    span = spans.get(element.start)
    return span[1] if span else len(markup)


def rename_element(markup: str, element: ElementMatch, new_tag: str) -> str:
    """Rename an element's opening and matching closing tag."""
    span = closing_tag_span(markup, element)
    if span is not None:
        markup = markup[:span[0]] + f"</{new_tag}>" + markup[span[1]:]
    open_text = element.text(markup)
    renamed = "<" + new_tag + open_text[1 + len(element.tag):]
    return rewrite_element(markup, element, renamed)


def inner_text(markup: str, element: ElementMatch) -> Optional[str]:
    """Text content of a leaf element (no nested tags), else None."""
    span = closing_tag_span(markup, element)
    if span is None:
        return None
    body = markup[element.end:span[0]]
    if "<" in body:
        return None
    return body


def text_content(markup: str, element: ElementMatch) -> str:
    """Visible text inside an element with nested tags stripped."""
    span = closing_tag_span(markup, element)
    if span is None:
        return ""
    body = markup[element.end:span[0]]
    for nested in reversed(list(iter_elements(body))):
        body = body[:nested.start] + body[nested.end:]
    return _CLOSE_TAG_RE.sub("", body).strip()


# =====================================================================
# Attributes
# =====================================================================


def _attr_pattern(name: str) -> "re.Pattern[str]":
    return re.compile(
        r"(?<![\w-])" + re.escape(name)
        + r"""\s*=\s*(?:"([^"]*)"|'([^']*)'|\{\s*["']([^"']*)["']\s*\}|\{([^}]*)\})"""
    )


def get_attribute(attrs_text: str, name: str) -> Optional[str]:
    """Value of a string (or braced literal) attribute, or None."""
    match = _attr_pattern(name).search(attrs_text or "")
    if not match:
        return None
    for group in match.groups():
        if group is not None:
            return group.strip()
    return ""


def set_attribute(open_text: str, tag: str, name: str, value: str) -> str:
    """Add ``name="value"`` after the tag name unless the attribute exists.

    Existing attributes are never overwritten; use replace_attribute for that.
    """
    if _attr_pattern(name).search(open_text):
        return open_text
    head = "<" + tag
    return head + f' {name}="{value}"' + open_text[len(head):]


def set_raw_attribute(open_text: str, tag: str, name: str, expression: str) -> str:
    """Add ``name={expression}`` unless an attribute of that name exists."""
    if re.search(r"(?<![\w-])" + re.escape(name) + r"\s*=", open_text):
        return open_text
    head = "<" + tag
    return head + f" {name}={{{expression}}}" + open_text[len(head):]


def replace_attribute(open_text: str, tag: str, name: str, value: str) -> str:
    """Set a string attribute, replacing any existing value."""
    pattern = _attr_pattern(name)
    if pattern.search(open_text):
        return pattern.sub(f'{name}="{value}"', open_text, count=1)
    return set_attribute(open_text, tag, name, value)


# =====================================================================
# Style blocks
# =====================================================================

_STYLE_OPEN_RE = re.compile(r"(?<![\w-])style\s*=\s*\{\{")
_STYLE_EXPR_OPEN_RE = re.compile(r"(?<![\w-])style\s*=\s*\{")


@dataclass(frozen=True)
class StyleBlock:
    """``style={{ ... }}`` attribute located inside an opening tag.

    Offsets are relative to the opening tag text. ``body`` excludes the
    double braces.
    """

    start: int
    end: int
    body: str


@dataclass(frozen=True)
class StyleProp:
    """One ``key: value`` entry. ``key`` is None for spreads (``...base``)."""

    key: Optional[str]
    value: str

    @property
    def literal(self) -> str:
        """Value with surrounding JS quotes removed."""
        v = self.value.strip()
        if len(v) >= 2 and v[0] == v[-1] and v[0] in "'\"`":
            return v[1:-1]
        return v

    def render(self) -> str:
        if self.key is None:
            return self.value
        return f"{self.key}: {self.value}"


def find_style_block(open_text: str) -> Optional[StyleBlock]:
    """Locate the inline style attribute of an opening tag.

    Pre: open_text is the text of one opening tag.
    Post: StyleBlock whose start/end cover ``style={{ ... }}``, or None when
    the tag has no object-literal style (``style={styles.x}`` is not matched).
    """
    match = _STYLE_OPEN_RE.search(open_text)
    if not match:
        return None
    end = _close_braces(open_text, match.end(), 2)
    if end is None:
        return None
    return StyleBlock(start=match.start(), end=end, body=open_text[match.end():end - 2])


def find_style_expression(open_text: str) -> Optional[StyleBlock]:
    """Locate a ``style={expr}`` attribute whose value is not an object literal.

    Pre: open_text is the text of one opening tag.
    Post: StyleBlock covering ``style={expr}`` with ``body`` set to ``expr``,
    or None when the tag has no style or an object-literal one.
    """
    if find_style_block(open_text) is not None:
        return None
    match = _STYLE_EXPR_OPEN_RE.search(open_text)
    if not match:
        return None
    end = _close_braces(open_text, match.end(), 1)
    if end is None:
        return None
    body = open_text[match.end():end - 1].strip()
    return StyleBlock(start=match.start(), end=end, body=body) if body else None


def _close_braces(text: str, pos: int, depth: int) -> Optional[int]:
    """Index just past the brace that brings ``depth`` to zero, skipping strings."""
    quote: Optional[str] = None
    i = pos
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return None


def _split_top_level(text: str, sep: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    current: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            current.append(ch)
            if ch == "\\" and i + 1 < len(text):
                current.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'`":
            quote = ch
            current.append(ch)
        elif ch in "([{":
            depth += 1
            current.append(ch)
        elif ch in ")]}":
            depth -= 1
            current.append(ch)
        elif ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    parts.append("".join(current))
    return parts


def parse_style(body: Optional[str]) -> List[StyleProp]:
    """Split a style object body into ordered props.

    Entries that are neither ``key: value`` pairs nor spreads are dropped.
    """
    props: List[StyleProp] = []
    for part in _split_top_level(body or "", ","):
        entry = part.strip()
        if not entry:
            continue
        if entry.startswith("..."):
            props.append(StyleProp(key=None, value=entry))
            continue
        pieces = _split_top_level(entry, ":")
        if len(pieces) < 2:
            continue
        key = pieces[0].strip().strip("'\"")
        value = ":".join(pieces[1:]).strip()
        if key:
            props.append(StyleProp(key=key, value=value))
    return props


def render_style(props: Sequence[StyleProp]) -> str:
    """Render props as a complete ``style={{ ... }}`` attribute."""
    if not props:
        return "style={{}}"
    return "style={{ " + ", ".join(p.render() for p in props) + " }}"


def js_str(value: str) -> str:
    """Single-quoted JS string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def get_style_value(props: Sequence[StyleProp], key: str) -> Optional[str]:
    for prop in props:
        if prop.key == key:
            return prop.literal
    return None


def set_style_prop(props: Sequence[StyleProp], key: str, value: str) -> List[StyleProp]:
    """Set ``key`` to the raw JS expression ``value``.

    Existing entries are replaced in place (first occurrence, later duplicates
    dropped); new keys are appended.
    """
    result: List[StyleProp] = []
    found = False
    for prop in props:
        if prop.key == key:
            if not found:
                result.append(StyleProp(key=key, value=value))
                found = True
            continue
        result.append(prop)
    if not found:
        result.append(StyleProp(key=key, value=value))
    return result


def remove_style_props(props: Sequence[StyleProp], keys: Sequence[str]) -> List[StyleProp]:
    drop = set(keys)
    return [p for p in props if p.key not in drop]


def element_style(markup: str, element: ElementMatch) -> List[StyleProp]:
    """Props of the element's style; ``style={expr}`` reads as one spread of ``expr``."""
    open_text = element.text(markup)
    block = find_style_block(open_text)
    if block is not None:
        return parse_style(block.body)
    expression = find_style_expression(open_text)
    if expression is not None:
        return [StyleProp(key=None, value="..." + expression.body)]
    return []


def with_style(open_text: str, tag: str, props: Sequence[StyleProp]) -> str:
    """Opening tag text with its style attribute replaced (or inserted)."""
    rendered = render_style(props)
    block = find_style_block(open_text) or find_style_expression(open_text)
    if block is not None:
        return open_text[:block.start] + rendered + open_text[block.end:]
    head = "<" + tag
    return head + " " + rendered + open_text[len(head):]


# =====================================================================
# Pixel values
# =====================================================================

_PX_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s*(px)?\s*$")


def parse_px(value) -> Optional[float]:
    """Numeric pixel value of ``'20px'``, ``'20'`` or ``20``; None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _PX_RE.match(str(value).strip("'\"`"))
    if not match:
        return None
    return float(match.group(1))


def format_px(number: float) -> str:
    """``20`` → ``'20px'``; ``20.5`` → ``'20.5px'``. Never rounds."""
    if float(number).is_integer():
        return f"{int(number)}px"
    return f"{float(number)!r}px"
