"""Offline renderer for the mapping templates stepgate generates.

Only the part of the Velocity Template Language that those templates use
is supported. Anything outside it raises ``TemplateSyntaxError``.

Supported syntax:
    - ``#set($ref = expr)``, ``#if(expr)`` / ``#elseif(expr)`` / ``#else`` / ``#end``
    - references ``$name`` and ``$!name`` with ``.property`` and
      ``.method(args)`` chains
    - expressions: string, integer, boolean and null literals, references,
      ``== != && || !`` and parentheses

Runtime variables:
    - ``$input``: ``path(p)``, ``json(p)``, ``body``
    - ``$util``: ``escapeJavaScript(s)``
    - ``$context``: ``responseOverride.status``

Every value answers ``toString()`` and ``equals(x)``; strings also answer
``replaceAll(regex, replacement)`` with Java replacement syntax (``$1``,
``\\$``).

Rendering rules:
    - null renders as an empty string; a reference whose root variable does
      not exist renders as its own source text (nothing for ``$!``)
    - maps and lists render the way Java's ``toString`` prints them
    - a directive alone on its line consumes that whole line

Example::

    >>> MappingTemplate("#if($input.path('$.ok'))yes#end").render('{"ok": true}').text
    'yes'
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union

from stepgate.core.errors import TemplateSyntaxError

# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Prop:
    name: str


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple[Any, ...]


@dataclass(frozen=True)
class Ref:
    root: str
    chain: tuple[Union[Prop, Call], ...]
    source: str
    quiet: bool = False


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class BinOp:
    op: str
    left: Any
    right: Any


@dataclass(frozen=True)
class Not:
    operand: Any


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class SetDirective:
    target: Ref
    value: Any


@dataclass(frozen=True)
class IfDirective:
    branches: tuple[tuple[Any, tuple[Any, ...]], ...]
    otherwise: tuple[Any, ...] = ()


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

_DIRECTIVE_RE = re.compile(r"#(elseif|else|end|set|if)\b")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(r"-?\d+")
_KEYWORDS = {"true": True, "false": False, "null": None}


class _Parser:
    def __init__(self, source: str):
        self.src = source
        self.pos = 0
        self._elseif_cond: Any = None

    def parse(self) -> tuple[Any, ...]:
        nodes, _ = self._block(stops=())
        return nodes

    def _block(self, stops: tuple[str, ...]) -> tuple[tuple[Any, ...], str | None]:
        nodes: list[Any] = []
        buf: list[str] = []

        def flush() -> None:
            if buf:
                nodes.append(Text("".join(buf)))
                buf.clear()

        src = self.src
        while self.pos < len(src):
            ch = src[self.pos]
            if ch == "#":
                match = _DIRECTIVE_RE.match(src, self.pos)
                if match:
                    name = match.group(1)
                    start = self.pos
                    self.pos = match.end()
                    if name in ("elseif", "else", "end"):
                        if name not in stops:
                            raise TemplateSyntaxError(f"Unexpected #{name}", start)
                        if name == "elseif":
                            self._elseif_cond = self._paren_expression()
                        self._gobble_line(start, buf)
                        flush()
                        return tuple(nodes), name
                    if name == "set":
                        node = self._set_body()
                        self._gobble_line(start, buf)
                        flush()
                        nodes.append(node)
                    else:
                        cond = self._paren_expression()
                        self._gobble_line(start, buf)
                        flush()
                        nodes.append(self._if_rest(cond))
                    continue
            elif ch == "$":
                ref = self._try_reference()
                if ref is not None:
                    flush()
                    nodes.append(ref)
                    continue
            buf.append(ch)
            self.pos += 1

        flush()
        if stops:
            raise TemplateSyntaxError("Missing #end", self.pos)
        return tuple(nodes), None

    def _gobble_line(self, start: int, buf: list[str]) -> None:
        """Drop the line around a directive when nothing else is on it."""
        src = self.src
        line_start = src.rfind("\n", 0, start) + 1
        if src[line_start:start].strip(" \t"):
            return
        line_end = src.find("\n", self.pos)
        tail_end = len(src) if line_end < 0 else line_end
        if src[self.pos:tail_end].strip(" \t\r"):
            return
        indent = start - line_start
        if indent and buf:
            del buf[-indent:]
        self.pos = len(src) if line_end < 0 else line_end + 1

    def _if_rest(self, cond: Any) -> IfDirective:
        branches: list[tuple[Any, tuple[Any, ...]]] = []
        otherwise: tuple[Any, ...] = ()
        while True:
            body, terminator = self._block(stops=("elseif", "else", "end"))
            branches.append((cond, body))
            if terminator == "elseif":
                cond = self._elseif_cond
                continue
            if terminator == "else":
                otherwise, _ = self._block(stops=("end",))
            return IfDirective(branches=tuple(branches), otherwise=otherwise)

    def _set_body(self) -> SetDirective:
        self._skip_ws()
        self._expect("(")
        self._skip_ws()
        target = self._try_reference() if self._peek() == "$" else None
        if target is None or (target.chain and isinstance(target.chain[-1], Call)):
            raise TemplateSyntaxError("#set requires a reference target", self.pos)
        self._skip_ws()
        self._expect("=")
        value = self._expression()
        self._skip_ws()
        self._expect(")")
        return SetDirective(target=target, value=value)

    def _try_reference(self) -> Ref | None:
        src = self.src
        start = self.pos
        pos = start + 1
        quiet = src.startswith("!", pos)
        if quiet:
            pos += 1
        ident = _IDENT_RE.match(src, pos)
        if ident is None:
            return None
        self.pos = ident.end()
        chain: list[Union[Prop, Call]] = []
        while src.startswith(".", self.pos):
            member = _IDENT_RE.match(src, self.pos + 1)
            if member is None:
                break
            self.pos = member.end()
            if src.startswith("(", self.pos):
                chain.append(Call(member.group(0), self._arguments()))
            else:
                chain.append(Prop(member.group(0)))
        return Ref(root=ident.group(0), chain=tuple(chain), source=src[start:self.pos], quiet=quiet)

    def _arguments(self) -> tuple[Any, ...]:
        self._expect("(")
        self._skip_ws()
        if self._peek() == ")":
            self.pos += 1
            return ()
        args: list[Any] = []
        while True:
            args.append(self._expression())
            self._skip_ws()
            ch = self._peek()
            self.pos += 1
            if ch == ")":
                return tuple(args)
            if ch != ",":
                raise TemplateSyntaxError("Expected ',' or ')' in argument list", self.pos - 1)

    # -- expressions -------------------------------------------------------

    def _paren_expression(self) -> Any:
        self._skip_ws()
        self._expect("(")
        expr = self._expression()
        self._skip_ws()
        self._expect(")")
        return expr

    def _expression(self) -> Any:
        left = self._and()
        while self._operator("||"):
            left = BinOp("||", left, self._and())
        return left

    def _and(self) -> Any:
        left = self._comparison()
        while self._operator("&&"):
            left = BinOp("&&", left, self._comparison())
        return left

    def _comparison(self) -> Any:
        left = self._unary()
        for op in ("==", "!="):
            if self._operator(op):
                return BinOp(op, left, self._unary())
        return left

    def _unary(self) -> Any:
        self._skip_ws()
        if self._peek() == "!" and not self.src.startswith("!=", self.pos):
            self.pos += 1
            return Not(self._unary())
        return self._primary()

    def _primary(self) -> Any:
        self._skip_ws()
        src = self.src
        ch = self._peek()
        if ch == "(":
            return self._paren_expression()
        if ch in ("'", '"'):
            end = src.find(ch, self.pos + 1)
            if end < 0:
                raise TemplateSyntaxError("Unterminated string literal", self.pos)
            value = src[self.pos + 1:end]
            self.pos = end + 1
            return Literal(value)
        if ch == "$":
            ref = self._try_reference()
            if ref is None:
                raise TemplateSyntaxError("Invalid reference", self.pos)
            return ref
        number = _NUMBER_RE.match(src, self.pos)
        if number:
            self.pos = number.end()
            return Literal(int(number.group(0)))
        word = _IDENT_RE.match(src, self.pos)
        if word and word.group(0) in _KEYWORDS:
            self.pos = word.end()
            return Literal(_KEYWORDS[word.group(0)])
        raise TemplateSyntaxError("Expected an expression", self.pos)

    def _operator(self, op: str) -> bool:
        self._skip_ws()
        if self.src.startswith(op, self.pos):
            self.pos += len(op)
            return True
        return False

    def _peek(self) -> str:
        return self.src[self.pos] if self.pos < len(self.src) else ""

    def _skip_ws(self) -> None:
        while self.pos < len(self.src) and self.src[self.pos] in " \t\r\n":
            self.pos += 1

    def _expect(self, ch: str) -> None:
        if self._peek() != ch:
            raise TemplateSyntaxError(f"Expected {ch!r}", self.pos)
        self.pos += 1


# ---------------------------------------------------------------------------
# Runtime variables
# ---------------------------------------------------------------------------


class TemplateObject:
    """Object exposed to templates under camelCase member names."""

    properties: dict[str, str] = {}
    methods: dict[str, str] = {}


_JSONPATH_STEP_RE = re.compile(
    r"\.([A-Za-z_$][\w$-]*)|\[\s*'([^']*)'\s*\]|\[\s*\"([^\"]*)\"\s*\]|\[\s*(-?\d+)\s*\]"
)


def evaluate_path(document: Any, path: str) -> Any:
    """Evaluate a simple JSONPath (``$``, ``.key``, ``['key']``, ``[n]``)."""
    path = path.strip()
    if not path.startswith("$"):
        raise TemplateSyntaxError(f"JSONPath must start with '$': {path!r}")
    pos = 1
    value = document
    while pos < len(path):
        step = _JSONPATH_STEP_RE.match(path, pos)
        if step is None:
            raise TemplateSyntaxError(f"Unsupported JSONPath: {path!r}", pos)
        pos = step.end()
        key = next(g for g in step.groups() if g is not None)
        if step.group(4) is not None:
            index = int(key)
            if not isinstance(value, list) or not -len(value) <= index < len(value):
                return None
            value = value[index]
        elif isinstance(value, dict):
            value = value.get(key)
        else:
            return None
        if value is None:
            return None
    return value


class InputVariable(TemplateObject):
    """``$input``: the incoming payload."""

    properties = {"body": "body"}
    methods = {"path": "path", "json": "json"}

    def __init__(self, body: str):
        self.body = body
        if not body.strip():
            self._document: Any = {}
        else:
            try:
                self._document = json.loads(body)
            except json.JSONDecodeError:
                self._document = body

    def path(self, path: str) -> Any:
        return evaluate_path(self._document, path)

    def json(self, path: str) -> str:
        return json.dumps(evaluate_path(self._document, path), separators=(",", ":"), ensure_ascii=False)


def escape_javascript(value: Any) -> str:
    """Escape like ``StringEscapeUtils.escapeJavaScript`` (commons-lang 2).

    ``'`` becomes ``\\'``, which is not a JSON escape; templates that embed
    the result in JSON undo it with ``replaceAll``.
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else render_value(value)
    encoded = text.encode("utf-16-be", "surrogatepass")
    out: list[str] = []
    for i in range(0, len(encoded), 2):
        unit = int.from_bytes(encoded[i:i + 2], "big")
        if unit > 0x7F:
            out.append("\\u%04X" % unit)
        elif unit < 32:
            out.append(_CONTROL_ESCAPES.get(unit, "\\u%04X" % unit))
        else:
            ch = chr(unit)
            out.append(_QUOTE_ESCAPES.get(ch, ch))
    return "".join(out)


_CONTROL_ESCAPES = {0x08: "\\b", 0x0A: "\\n", 0x09: "\\t", 0x0C: "\\f", 0x0D: "\\r"}
_QUOTE_ESCAPES = {"'": "\\'", '"': '\\"', "\\": "\\\\", "/": "\\/"}


class UtilVariable(TemplateObject):
    """``$util``: string helpers."""

    methods = {"escapeJavaScript": "escape_javascript"}

    def escape_javascript(self, value: Any) -> str:
        return escape_javascript(value)


class ResponseOverride(TemplateObject):
    """``$context.responseOverride``: writable status."""

    properties = {"status": "status"}

    def __init__(self) -> None:
        self.status: Any = None


class ContextVariable(TemplateObject):
    """``$context``: per-request state."""

    properties = {"responseOverride": "response_override"}

    def __init__(self) -> None:
        self.response_override = ResponseOverride()


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def render_value(value: Any) -> str:
    """String form of a value as the template engine prints it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return "{" + ", ".join(f"{k}={render_value(v)}" for k, v in value.items()) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(v) for v in value) + "]"
    return str(value)


def replace_all(text: str, pattern: str, replacement: str) -> str:
    """Java ``String.replaceAll``: ``$n`` is a group, ``\\x`` is a literal ``x``."""

    def expand(match: re.Match[str]) -> str:
        out: list[str] = []
        i = 0
        while i < len(replacement):
            ch = replacement[i]
            nxt = replacement[i + 1] if i + 1 < len(replacement) else ""
            if ch == "\\" and nxt:
                out.append(nxt)
                i += 2
            elif ch == "$" and nxt.isdigit():
                out.append(match.group(int(nxt)) or "")
                i += 2
            else:
                out.append(ch)
                i += 1
        return "".join(out)

    return re.sub(pattern, expand, text)


_MISSING = object()


def _member(value: Any, name: str) -> Any:
    if isinstance(value, dict):
        return value.get(name)
    if isinstance(value, TemplateObject):
        attr = value.properties.get(name)
        return getattr(value, attr) if attr else None
    return None


def _invoke(value: Any, name: str, args: list[Any]) -> Any:
    if value is None:
        return None
    if isinstance(value, TemplateObject):
        attr = value.methods.get(name)
        return getattr(value, attr)(*args) if attr else None
    if name == "toString" and not args:
        return render_value(value)
    if name == "equals" and len(args) == 1:
        return value == args[0]
    if name == "replaceAll" and len(args) == 2 and isinstance(value, str):
        return replace_all(value, render_value(args[0]), render_value(args[1]))
    return None


def _truthy(value: Any) -> bool:
    return value is not None and value is not False


class _Evaluator:
    def __init__(self, variables: dict[str, Any]):
        self.variables = variables

    def run(self, nodes: tuple[Any, ...], out: list[str]) -> None:
        for node in nodes:
            if isinstance(node, Text):
                out.append(node.value)
            elif isinstance(node, Ref):
                value = self.resolve(node)
                if value is _MISSING:
                    if not node.quiet:
                        out.append(node.source)
                else:
                    out.append(render_value(value))
            elif isinstance(node, SetDirective):
                self.assign(node.target, self.evaluate(node.value))
            elif isinstance(node, IfDirective):
                for cond, body in node.branches:
                    if _truthy(self.evaluate(cond)):
                        self.run(body, out)
                        break
                else:
                    self.run(node.otherwise, out)

    def resolve(self, ref: Ref) -> Any:
        if ref.root not in self.variables:
            return _MISSING
        value = self.variables[ref.root]
        for step in ref.chain:
            if isinstance(step, Prop):
                value = _member(value, step.name)
            else:
                value = _invoke(value, step.name, [self.evaluate(a) for a in step.args])
        return value

    def assign(self, target: Ref, value: Any) -> None:
        if not target.chain:
            self.variables[target.root] = value
            return
        owner = self.resolve(Ref(target.root, target.chain[:-1], target.source))
        name = target.chain[-1].name
        if isinstance(owner, dict):
            owner[name] = value
        elif isinstance(owner, TemplateObject) and name in owner.properties:
            setattr(owner, owner.properties[name], value)

    def evaluate(self, expr: Any) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Ref):
            value = self.resolve(expr)
            return None if value is _MISSING else value
        if isinstance(expr, Not):
            return not _truthy(self.evaluate(expr.operand))
        if expr.op == "&&":
            return _truthy(self.evaluate(expr.left)) and _truthy(self.evaluate(expr.right))
        if expr.op == "||":
            return _truthy(self.evaluate(expr.left)) or _truthy(self.evaluate(expr.right))
        equal = self.evaluate(expr.left) == self.evaluate(expr.right)
        return equal if expr.op == "==" else not equal


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RenderedTemplate:
    text: str
    status_override: int | None = None


class MappingTemplate:
    """A parsed mapping template, renderable many times."""

    def __init__(self, source: str):
        self.source = source
        self._nodes = _Parser(source).parse()

    def render(self, body: str = "", *, context: ContextVariable | None = None) -> RenderedTemplate:
        context = context or ContextVariable()
        variables: dict[str, Any] = {
            "input": InputVariable(body),
            "util": UtilVariable(),
            "context": context,
        }
        out: list[str] = []
        _Evaluator(variables).run(self._nodes, out)

        status = context.response_override.status
        if status is not None:
            try:
                status = int(status)
            except (TypeError, ValueError) as e:
                raise TemplateSyntaxError(f"responseOverride.status must be numeric, got {status!r}") from e
        return RenderedTemplate(text="".join(out), status_override=status)


def render_template(source: str, body: str = "", **kwargs: Any) -> RenderedTemplate:
    """Parse and render ``source`` once."""
    return MappingTemplate(source).render(body, **kwargs)
