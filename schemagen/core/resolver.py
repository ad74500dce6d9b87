"""Reference resolution for ``$ref``.

``DocumentIndex`` knows every loaded document (the root schema plus the
remote documents the caller supplied) and every ``$id`` declared inside
them. Resolving a reference never performs I/O: a document that is not in
the index is an ``UnresolvableReference``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple
from urllib.parse import unquote, urldefrag, urljoin

from ..utils.error_handler import UnresolvableReference

logger = logging.getLogger(__name__)


# Keywords whose value is a single sub-schema, a list of them, or a map of them.
SCHEMA_KEYWORDS = (
    "additionalItems",
    "additionalProperties",
    "contains",
    "propertyNames",
    "not",
    "if",
    "then",
    "else",
)
SCHEMA_LIST_KEYWORDS = ("allOf", "anyOf", "oneOf")
SCHEMA_MAP_KEYWORDS = ("definitions", "properties", "patternProperties")

# RFC 6901 array index: no sign, no leading zeros.
ARRAY_INDEX = re.compile(r"0|[1-9][0-9]*")


@dataclass(frozen=True)
class Location:
    """Where a sub-schema lives: its document, its pointer and the base URI in scope."""

    document: str
    pointer: str
    base: str

    def child(self, *tokens: Any) -> "Location":
        pointer = self.pointer + "".join("/" + escape_token(str(t)) for t in tokens)
        return Location(self.document, pointer, self.base)

    @property
    def fragment(self) -> str:
        return "#" + self.pointer


def escape_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def join_uri(base: str, ref: str) -> str:
    """Resolve ``ref`` against ``base``.

    Fragment-only references are joined by hand so that bases with schemes
    ``urljoin`` does not treat as hierarchical (``urn:``, ``tag:``) work.
    """
    if not base:
        return ref
    if ref.startswith("#"):
        return urldefrag(base).url + ref
    return urljoin(base, ref)


def scope_of(base: str, schema: Any) -> str:
    """Base URI in effect inside ``schema`` given the base of its parent."""
    if isinstance(schema, dict) and "$ref" not in schema and isinstance(schema.get("$id"), str):
        return urldefrag(join_uri(base, schema["$id"])).url
    return base


def iter_subschemas(schema: Dict[str, Any]) -> Iterator[Tuple[Tuple[str, ...], Any]]:
    """Yield ``(path tokens, sub-schema)`` for every schema-valued position."""
    for keyword in SCHEMA_KEYWORDS:
        if keyword in schema:
            yield (keyword,), schema[keyword]
    items = schema.get("items")
    if isinstance(items, list):
        for index, child in enumerate(items):
            yield ("items", str(index)), child
    elif items is not None:
        yield ("items",), items
    for keyword in SCHEMA_LIST_KEYWORDS:
        value = schema.get(keyword)
        if isinstance(value, list):
            for index, child in enumerate(value):
                yield (keyword, str(index)), child
    for keyword in SCHEMA_MAP_KEYWORDS + ("dependencies",):
        value = schema.get(keyword)
        if isinstance(value, dict):
            for name, child in value.items():
                if isinstance(child, (dict, bool)):
                    yield (keyword, name), child


class DocumentIndex:
    """Documents, embedded resources and plain-name anchors known to one compilation."""

    def __init__(self) -> None:
        self.documents: Dict[str, Any] = {}
        self.resources: Dict[str, Tuple[str, str]] = {}
        self.anchors: Dict[str, Tuple[str, str]] = {}
        # base URI of the parent scope, and the scope inside, per schema position
        self._outer: Dict[Tuple[str, str], str] = {}
        self._inner: Dict[Tuple[str, str], str] = {}

    def add_document(self, uri: str, document: Any) -> Location:
        uri = urldefrag(uri).url
        self.documents[uri] = document
        self.resources[uri] = (uri, "")
        self._walk(document, uri, "", uri)
        logger.debug(
            "Indexed document %r (%d resources, %d anchors)",
            uri, len(self.resources), len(self.anchors),
        )
        return Location(uri, "", uri)

    def _walk(self, schema: Any, document: str, pointer: str, base: str) -> None:
        key = (document, pointer)
        self._outer[key] = base
        if not isinstance(schema, dict):
            self._inner[key] = base
            return
        inner = base
        if "$ref" not in schema and isinstance(schema.get("$id"), str):
            inner = self._register_id(schema["$id"], base, document, pointer)
        self._inner[key] = inner
        for tokens, child in iter_subschemas(schema):
            child_pointer = pointer + "".join("/" + escape_token(t) for t in tokens)
            self._walk(child, document, child_pointer, inner)

    def _register_id(self, schema_id: str, base: str, document: str, pointer: str) -> str:
        resolved = join_uri(base, schema_id)
        url, fragment = urldefrag(resolved)
        if fragment:
            self.anchors[f"{url}#{fragment}"] = (document, pointer)
        else:
            self.resources[url] = (document, pointer)
        return url

    def _base_for(self, document: str, pointer: str) -> str:
        key = (document, pointer)
        if key in self._outer:
            return self._outer[key]
        # not a schema position we walked; use the scope of the closest ancestor
        while pointer:
            pointer = pointer.rsplit("/", 1)[0]
            inner = self._inner.get((document, pointer))
            if inner is not None:
                return inner
        return document

    def _follow(self, ref: str, document: str, pointer: str, origin: str) -> Any:
        if pointer and not pointer.startswith("/"):
            raise UnresolvableReference(ref, origin, f"invalid JSON pointer '{pointer}'")
        node = self.documents[document]
        for raw in pointer.split("/")[1:]:
            token = unescape_token(raw)
            if isinstance(node, list):
                if not ARRAY_INDEX.fullmatch(token) or int(token) >= len(node):
                    raise UnresolvableReference(ref, origin, f"no array element '{token}'")
                node = node[int(token)]
            elif isinstance(node, dict) and token in node:
                node = node[token]
            else:
                raise UnresolvableReference(ref, origin, f"segment '{token}' not found")
        return node

    def resolve(self, ref: str, base: str, origin: str = "") -> Tuple[Location, Any]:
        """Resolve ``ref`` seen in a schema whose scope is ``base``.

        Returns the target's location, whose ``base`` is the scope of the
        target's parent, and the target schema itself.
        """
        full = join_uri(base, ref)
        url, fragment = urldefrag(full)
        fragment = unquote(fragment)

        if fragment and not fragment.startswith("/"):
            target = self.anchors.get(f"{url}#{fragment}")
            if target is None:
                raise UnresolvableReference(ref, origin, f"no schema with $id '#{fragment}'")
            document, pointer = target
        else:
            resource = self.resources.get(url)
            if resource is None:
                raise UnresolvableReference(ref, origin, f"unknown document '{url}'")
            document, pointer = resource
            pointer = pointer + fragment

        schema = self._follow(ref, document, pointer, origin)
        logger.debug("Resolved %r to %s#%s", ref, document, pointer)
        return Location(document, pointer, self._base_for(document, pointer)), schema


def build_index(root: Any, base_uri: str = "", remotes: Optional[Mapping[str, Any]] = None) -> Tuple[DocumentIndex, Location]:
    """Index the remote documents, then the root so the root wins on clashes."""
    index = DocumentIndex()
    for uri, document in (remotes or {}).items():
        index.add_document(uri, document)
    return index, index.add_document(base_uri, root)
