"""Android ``strings.xml`` model: parsing, ordering and atomic writes.

A string's value is its inner XML, so inline markup such as ``<b>`` or
``<xliff:g>`` survives a read/write cycle. Rewriting an existing file goes
through :class:`StringsDocument`, which keeps comments, attributes and every
element that is not a ``<string>``.
"""

from __future__ import annotations

import io
import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple
from xml.sax.saxutils import escape, quoteattr

from .errors import ResourceParseError

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'
INDENT = "    "

KNOWN_NAMESPACES = {
    "android": "http://schemas.android.com/apk/res/android",
    "tools": "http://schemas.android.com/tools",
    "xliff": "urn:oasis:names:tc:xliff:document:1.2",
}
for _prefix, _uri in KNOWN_NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

ROOT_START_TAG = re.compile(r"<resources\b[^>]*>")
NAMESPACE_DECLARATION = re.compile(r"""xmlns:([\w.-]+)\s*=\s*["']([^"']*)["']""")
VALUE_WRAPPER = "value"


@dataclass(frozen=True)
class StringResource:
    name: str
    value: str
    translatable: bool = True


# Insertion order is the authoring order of the file.
ResourceSet = Dict[str, StringResource]


def strip_known_bom(data: bytes) -> Tuple[bytes, Optional[str]]:
    for bom, encoding in (
        (b"\xff\xfe", "utf-16-le"),
        (b"\xfe\xff", "utf-16-be"),
        (b"\xef\xbb\xbf", "utf-8"),
    ):
        if data.startswith(bom):
            return data[len(bom):], encoding
    return data, None


def decode_auto(data: bytes) -> str:
    raw, encoding = strip_known_bom(data)
    return raw.decode(encoding or "utf-8")


def tag_matches(tag: object, name: str) -> bool:
    if not isinstance(tag, str):
        return False
    return tag.split("}")[-1].lower() == name


def is_named_string(elem: ET.Element) -> bool:
    return tag_matches(elem.tag, "string") and bool(elem.attrib.get("name"))


class CommentedTreeBuilder(ET.TreeBuilder):
    """TreeBuilder that preserves XML comments while parsing."""

    def comment(self, data):
        self.start(ET.Comment, {})
        self.data(data)
        self.end(ET.Comment)


def declared_namespaces(content: str) -> Dict[str, str]:
    """Prefixes declared on the ``<resources>`` start tag."""
    match = ROOT_START_TAG.search(content)
    if not match:
        return {}
    return dict(NAMESPACE_DECLARATION.findall(match.group(0)))


def _strip_declarations(markup: str, namespaces: Mapping[str, str]) -> str:
    # ET.tostring re-declares namespaces on every serialized child.
    for prefix, uri in namespaces.items():
        markup = markup.replace(f' xmlns:{prefix}="{escape(uri)}"', "")
    return markup


def inner_xml(elem: ET.Element, namespaces: Mapping[str, str] = KNOWN_NAMESPACES) -> str:
    """Text and child markup of ``elem``, escaped as it appears in the file."""
    parts = [escape(elem.text or "")]
    for child in elem:
        # tostring includes the child's tail.
        parts.append(ET.tostring(child, encoding="unicode"))
    return _strip_declarations("".join(parts), namespaces)


def set_inner_xml(
    elem: ET.Element,
    value: str,
    namespaces: Mapping[str, str] = KNOWN_NAMESPACES,
) -> None:
    """Replace the content of ``elem`` with the markup in ``value``.

    A value that is not well-formed markup is stored as plain text.
    """
    for child in list(elem):
        elem.remove(child)

    declarations = "".join(
        f" xmlns:{prefix}={quoteattr(uri)}" for prefix, uri in namespaces.items()
    )
    try:
        wrapper = ET.fromstring(f"<{VALUE_WRAPPER}{declarations}>{value}</{VALUE_WRAPPER}>")
    except ET.ParseError:
        elem.text = value
        return

    elem.text = wrapper.text
    for child in wrapper:
        elem.append(child)


def _used_namespaces(root: ET.Element) -> Set[str]:
    uris: Set[str] = set()
    for elem in root.iter():
        for name in (elem.tag, *elem.attrib):
            if isinstance(name, str) and name.startswith("{"):
                uris.add(name[1:].split("}", 1)[0])
    return uris


class StringsDocument:
    """A parsed strings.xml tree that can be updated in place."""

    def __init__(
        self,
        root: Optional[ET.Element] = None,
        namespaces: Optional[Mapping[str, str]] = None,
    ):
        self.root = root if root is not None else ET.Element("resources")
        self.declared = dict(namespaces or {})
        self.namespaces = {**KNOWN_NAMESPACES, **self.declared}

    @classmethod
    def parse(cls, data: bytes) -> "StringsDocument":
        """Parse the bytes of a strings.xml document; empty input is an empty document."""
        content = decode_auto(data)
        if not content.strip():
            return cls()

        namespaces = declared_namespaces(content)
        for prefix, uri in namespaces.items():
            if uri in KNOWN_NAMESPACES.values():
                continue
            try:
                ET.register_namespace(prefix, uri)
            except ValueError:
                continue
        parser = ET.XMLParser(target=CommentedTreeBuilder())
        try:
            root = ET.fromstring(content, parser=parser)
        except ET.ParseError as exc:
            raise ResourceParseError(f"Invalid strings XML: {exc}") from exc
        return cls(root, namespaces)

    @classmethod
    def load(cls, path: Path) -> "StringsDocument":
        """Read a strings.xml file; a missing file is an empty document."""
        try:
            data = Path(path).read_bytes()
        except FileNotFoundError:
            return cls()
        try:
            return cls.parse(data)
        except ResourceParseError as exc:
            raise ResourceParseError(f"{path}: {exc}") from exc

    @classmethod
    def from_resources(cls, resources: ResourceSet) -> "StringsDocument":
        document = cls()
        for resource in resources.values():
            document.set_value(resource.name, resource.value, resource.translatable)
        return document

    def string_elements(self) -> Dict[str, ET.Element]:
        elements: Dict[str, ET.Element] = {}
        for elem in self.root:
            if is_named_string(elem):
                elements[elem.attrib["name"]] = elem
        return elements

    def resources(self) -> ResourceSet:
        """Only ``<string>`` children with a non-empty ``name`` are read;
        ``translatable`` is false only for the literal value ``"false"``."""
        return {
            name: StringResource(
                name=name,
                value=inner_xml(elem, self.namespaces),
                translatable=elem.attrib.get("translatable") != "false",
            )
            for name, elem in self.string_elements().items()
        }

    def set_value(self, name: str, value: str, translatable: bool = True) -> None:
        """Update the value of ``name``; a new entry follows the last string."""
        elem = self.string_elements().get(name)
        if elem is None:
            elem = ET.Element("string", {"name": name})
            if not translatable:
                elem.set("translatable", "false")
            children = list(self.root)
            strings = [i for i, child in enumerate(children) if is_named_string(child)]
            self.root.insert(strings[-1] + 1 if strings else len(children), elem)
        set_inner_xml(elem, value, self.namespaces)

    def arrange(self, names: Sequence[str]) -> None:
        """Keep only the strings in ``names``, in that order.

        Strings fill the positions strings held before; other elements stay
        where they are.
        """
        elements = self.string_elements()
        ordered = [elements[name] for name in names if name in elements]
        children = list(self.root)
        slots = [i for i, child in enumerate(children) if is_named_string(child)]

        rebuilt: List[ET.Element] = []
        queue = iter(ordered)
        for i, child in enumerate(children):
            if not is_named_string(child):
                rebuilt.append(child)
                continue
            nxt = next(queue, None)
            if nxt is not None:
                rebuilt.append(nxt)
            if i == slots[-1]:
                rebuilt.extend(queue)
        if not slots:
            rebuilt.extend(queue)

        for child in children:
            self.root.remove(child)
        self.root.extend(rebuilt)

    def to_bytes(self) -> bytes:
        layout(self.root)
        used = _used_namespaces(self.root)
        # ElementTree only declares namespaces it uses.
        unused = {f"xmlns:{prefix}": uri for prefix, uri in self.declared.items() if uri not in used}
        self.root.attrib.update(unused)

        buffer = io.StringIO()
        try:
            ET.ElementTree(self.root).write(buffer, encoding="unicode", short_empty_elements=False)
        finally:
            for attr in unused:
                self.root.attrib.pop(attr, None)
        return (XML_DECLARATION + buffer.getvalue() + "\n").encode("utf-8")


def parse_strings(data: bytes) -> ResourceSet:
    """Parse the bytes of a strings.xml document into an ordered set."""
    return StringsDocument.parse(data).resources()


def load_strings(path: Path) -> ResourceSet:
    """Read a strings.xml file; a missing file is an empty set."""
    return StringsDocument.load(path).resources()


def layout(root: ET.Element) -> None:
    """One child per line, indented once; child content is left as written."""
    children = list(root)
    if not children:
        root.text = None
        return
    root.text = "\n" + INDENT
    for child in children:
        child.tail = "\n" + INDENT
    # The last child closes back onto the root's indentation.
    children[-1].tail = "\n"


def serialize_strings(resources: ResourceSet) -> bytes:
    return StringsDocument.from_resources(resources).to_bytes()


def atomic_write(data: bytes, output: Path) -> None:
    temp_path = output.with_name(output.name + ".tmp")
    try:
        with temp_path.open("wb") as fp:
            fp.write(data)
            fp.flush()
            os.fsync(fp.fileno())
        os.replace(temp_path, output)
    except BaseException:
        if temp_path.exists():
            temp_path.unlink()
        raise


def write_bytes(path: Path, data: bytes) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write(data, path)


def write_strings(path: Path, resources: ResourceSet) -> None:
    write_bytes(path, serialize_strings(resources))


def order_resources(
    resources: ResourceSet,
    order: Iterable[str],
    exclude: Iterable[str] = (),
) -> ResourceSet:
    """Rebuild ``resources`` in ``order``.

    Keys missing from ``order`` or listed in ``exclude`` are dropped; keys in
    ``order`` that ``resources`` lacks are not created.
    """
    excluded = set(exclude)
    ordered: ResourceSet = {}
    for name in order:
        if name in excluded or name in ordered:
            continue
        resource = resources.get(name)
        if resource is not None:
            ordered[name] = resource
    return ordered
