"""
Field terms and their inline type notation.

A field term looks like ``name: type`` (``name?: type`` when optional).
Type grammar:

    type   := member ("|" member)*
    member := "[" type "]"            array
            | "{" key ":" value "}"   free-form mapping
            | "`" literal "`"         string constant
            | "(" text "," "#" id ")" cross-reference
            | identifier              builtin, dotted (string) or anchor name
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from litschema.markup.inline import CROSS_REFERENCE_PATTERN, display_text

BUILTIN_SCALARS = {
    "string": "string",
    "str": "string",
    "duration": "string",
    "number": "number",
    "int": "number",
    "integer": "number",
    "float": "number",
    "boolean": "boolean",
    "bool": "boolean",
}

BUILTIN_OBJECTS = {"object", "map", "any", "config"}


class TypeNotationError(ValueError):
    """Raised when a type annotation does not follow the notation."""


# ============================================================================
# TYPE EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class NamedType:
    """Bare identifier: a builtin, a dotted path, or an anchor name."""
    name: str

    @property
    def builtin(self) -> Optional[str]:
        lowered = self.name.lower()
        if lowered in BUILTIN_SCALARS:
            return BUILTIN_SCALARS[lowered]
        if lowered in BUILTIN_OBJECTS:
            return "object"
        if "." in self.name:
            return "string"
        return None


@dataclass(frozen=True)
class ReferenceType:
    """Explicit ``(text, #anchor)`` reference."""
    text: str
    anchor: str


@dataclass(frozen=True)
class ConstantType:
    value: str


@dataclass(frozen=True)
class MappingType:
    key: str
    value: str


@dataclass(frozen=True)
class ArrayOf:
    items: "TypeExpr"


@dataclass(frozen=True)
class UnionOf:
    members: Tuple["TypeExpr", ...]

    @property
    def is_enum(self) -> bool:
        return all(isinstance(m, ConstantType) for m in self.members)


TypeExpr = Union[NamedType, ReferenceType, ConstantType, MappingType, ArrayOf, UnionOf]


@dataclass(frozen=True)
class FieldTerm:
    """A definition term recognised as a field declaration."""
    name: str
    type_expr: TypeExpr
    type_text: str
    optional: bool = False
    anchor: Optional[str] = None


def referenced_anchors(expr: TypeExpr) -> List[str]:
    """Anchors an expression refers to, in order of appearance."""
    if isinstance(expr, ReferenceType):
        return [expr.anchor]
    if isinstance(expr, NamedType):
        return [] if expr.builtin else [expr.name]
    if isinstance(expr, ArrayOf):
        return referenced_anchors(expr.items)
    if isinstance(expr, UnionOf):
        anchors = []
        for member in expr.members:
            anchors.extend(referenced_anchors(member))
        return anchors
    return []


# ============================================================================
# PARSING
# ============================================================================

TOKEN_PATTERN = re.compile(
    r'\s*(?:'
    r'(?P<ref>\(\s*[^(),]+?\s*,\s*#[A-Za-z0-9_.-]+\s*\))'
    r'|(?P<const>`[^`]*`)'
    r'|(?P<mapping>\{[^{}]*\})'
    r'|(?P<ident>[A-Za-z_][A-Za-z0-9_.-]*)'
    r'|(?P<punct>[\[\]|])'
    r')'
)

MAPPING_PATTERN = re.compile(r'^\{\s*([A-Za-z0-9._]+)\s*:\s*([A-Za-z0-9._]+)\s*\}$')

FIELD_TERM_PATTERN = re.compile(
    r'^(?P<name>\(\s*[^(),]+?\s*,\s*#[A-Za-z0-9_.-]+\s*\)|[A-Za-z_][A-Za-z0-9_.-]*)'
    r'(?P<optional>\?)?\s*:\s*(?P<type>\S.*?)\s*$'
)


def tokenize(text: str) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    text = text.rstrip()

    while pos < len(text):
        match = TOKEN_PATTERN.match(text, pos)
        if not match or match.end() == pos:
            raise TypeNotationError(f"unexpected {text[pos:].strip()!r} in type {text!r}")
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()

    return tokens


class _TypeParser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def parse(self) -> TypeExpr:
        if not self.tokens:
            raise TypeNotationError("empty type")
        expr = self._type()
        if self.pos != len(self.tokens):
            raise TypeNotationError(
                f"unexpected {self.tokens[self.pos][1]!r} in type {self.text!r}"
            )
        return expr

    def _peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _type(self) -> TypeExpr:
        members = [self._member()]
        while self._peek() == ("punct", "|"):
            self.pos += 1
            members.append(self._member())
        if len(members) == 1:
            return members[0]
        return UnionOf(tuple(members))

    def _member(self) -> TypeExpr:
        token = self._peek()
        if token is None:
            raise TypeNotationError(f"type {self.text!r} ends unexpectedly")

        kind, value = token
        self.pos += 1

        if kind == "punct" and value == "[":
            inner = self._type()
            if self._peek() != ("punct", "]"):
                raise TypeNotationError(f"missing ']' in type {self.text!r}")
            self.pos += 1
            return ArrayOf(inner)

        if kind == "ref":
            match = CROSS_REFERENCE_PATTERN.fullmatch(value.strip())
            return ReferenceType(text=display_text(match.group(1)), anchor=match.group(2))

        if kind == "const":
            return ConstantType(value[1:-1])

        if kind == "mapping":
            match = MAPPING_PATTERN.match(value)
            if not match:
                raise TypeNotationError(f"malformed mapping {value!r}")
            return MappingType(key=match.group(1), value=match.group(2))

        if kind == "ident":
            return NamedType(value)

        raise TypeNotationError(f"unexpected {value!r} in type {self.text!r}")


def parse_type(text: str) -> TypeExpr:
    """
    Parse a type annotation.

    Raises:
        TypeNotationError: If the text does not follow the notation
    """
    return _TypeParser(text).parse()


def parse_field_term(term: str, optional_type_prefixes: List[str]) -> Optional[FieldTerm]:
    """
    Recognise a ``name: type`` field term.

    Args:
        term: Raw definition term
        optional_type_prefixes: Lower-case words that mark the type optional

    Returns:
        FieldTerm, or None when the term is not a field declaration

    Raises:
        TypeNotationError: If the term has the field shape but its type is malformed
    """
    match = FIELD_TERM_PATTERN.match(term.strip())
    if not match:
        return None

    raw_name = match.group("name")
    optional = bool(match.group("optional"))
    type_text = match.group("type")

    anchor = None
    name = raw_name
    ref = CROSS_REFERENCE_PATTERN.fullmatch(raw_name)
    if ref:
        name, anchor = ref.group(1), ref.group(2)

    if type_text.endswith("?"):
        optional = True
        type_text = type_text[:-1].rstrip()

    first_word, _, rest = type_text.partition(" ")
    if rest and first_word.lower() in optional_type_prefixes:
        optional = True
        type_text = rest.strip()

    return FieldTerm(
        name=name,
        type_expr=parse_type(type_text),
        type_text=type_text,
        optional=optional,
        anchor=anchor,
    )
