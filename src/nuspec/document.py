"""Typed access to a NuGet manifest (.nuspec) XML document.

The nuspec default namespace is taken from the root ``<package>`` element once
and applied to every lookup and every element created afterwards, so callers
only ever deal in local names.
"""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

_INSTRUCTION_RE = re.compile(r"<\?(?P<target>[A-Za-z_][\w.-]*)(?P<body>.*?)\?>", re.DOTALL)
_ATTRIBUTE_RE = re.compile(r"""([A-Za-z_][\w.-]*)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
_PROLOG_ITEM_RE = re.compile(r"<\?.*?\?>|<!--.*?-->", re.DOTALL)
_ROOT_START_RE = re.compile(r"<(?![?!])")


class NuSpecError(Exception):
    """Raised when a manifest is unreadable or structurally invalid."""


def _split_tag(tag: str):
    if tag.startswith("{"):
        ns, _, local = tag[1:].partition("}")
        return ns, local
    return "", tag


def parse_instruction_attributes(body: str) -> Dict[str, str]:
    """Parse ``key="value"`` pairs out of a processing instruction body."""
    attrs: Dict[str, str] = {}
    for match in _ATTRIBUTE_RE.finditer(body or ""):
        key = match.group(1)
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attrs[key] = value
    return attrs


class NuSpecDocument:
    """A loaded manifest with get-or-create element access."""

    def __init__(self, root: ET.Element, raw_text: str = "", path: Optional[str] = None):
        self.root = root
        self.raw_text = raw_text
        self.path = path
        self.namespace, local = _split_tag(root.tag)
        if local != "package":
            raise NuSpecError(
                "The NuSpec file does not contain a <package> XML element. "
                "The NuSpec file appears to be invalid."
            )

    @classmethod
    def from_bytes(cls, data: bytes, path: Optional[str] = None) -> "NuSpecDocument":
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
        try:
            parser.feed(data)
            root = parser.close()
        except ET.ParseError as e:
            raise NuSpecError(f"Couldn't parse NuSpec file: {e}") from e
        return cls(root, data.decode("utf-8-sig", errors="replace"), path)

    @classmethod
    def load(cls, path: str) -> "NuSpecDocument":
        """Read and parse the manifest at ``path``."""
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError as e:
            raise NuSpecError(f"Couldn't read NuSpec file {path}: {e}") from e
        return cls.from_bytes(data, path)

    def qualify(self, name: str) -> str:
        return f"{{{self.namespace}}}{name}" if self.namespace else name

    @property
    def package(self) -> ET.Element:
        return self.root

    @property
    def metadata(self) -> ET.Element:
        """The required ``<metadata>`` element."""
        metadata = self.find(self.root, "metadata")
        if metadata is None:
            raise NuSpecError(
                "The NuSpec file does not contain a <metadata> XML element. "
                "The NuSpec file appears to be invalid."
            )
        return metadata

    def children(self, parent: ET.Element, name: str) -> List[ET.Element]:
        tag = self.qualify(name)
        return [child for child in parent if child.tag == tag]

    def find(self, parent: ET.Element, name: str) -> Optional[ET.Element]:
        """Return the single child called ``name``, or None."""
        matches = self.children(parent, name)
        if len(matches) > 1:
            raise NuSpecError(f"The NuSpec file contains more than one <{name}> element.")
        return matches[0] if matches else None

    def get_or_create(self, parent: ET.Element, name: str) -> ET.Element:
        element = self.find(parent, name)
        if element is None:
            element = ET.SubElement(parent, self.qualify(name))
        return element

    def append(self, parent: ET.Element, name: str, **attrs: str) -> ET.Element:
        return ET.SubElement(parent, self.qualify(name), attrs)

    @staticmethod
    def text_of(element: Optional[ET.Element]) -> str:
        if element is None:
            return ""
        return "".join(element.itertext())

    def value(self, parent: ET.Element, name: str) -> str:
        return self.text_of(self.find(parent, name))

    def set_value(self, parent: ET.Element, name: str, value: str) -> ET.Element:
        """Replace the content of ``parent/name`` with ``value``, keeping attributes."""
        element = self.get_or_create(parent, name)
        attrib = dict(element.attrib)
        tail = element.tail
        element.clear()
        element.attrib.update(attrib)
        element.tail = tail
        element.text = value
        return element

    def set_value_if_blank(self, parent: ET.Element, name: str, value: Optional[str]) -> bool:
        """Fill ``parent/name`` only when it is missing or whitespace; return True if written."""
        element = self.get_or_create(parent, name)
        if self.text_of(element).strip():
            return False
        self.set_value(parent, name, value or "")
        return True

    def instructions(self, target: str) -> List[Dict[str, str]]:
        """Attributes of every ``<?target ...?>`` processing instruction, in document order.

        Only real instructions count: the prolog and the parsed tree are
        searched, never text inside comments or CDATA sections.
        """
        items = [item for item in self.prolog() if item.startswith("<?")]
        items += [
            f"<?{element.text or ''}?>" for element in self.root.iter()
            if element.tag is ET.ProcessingInstruction
        ]
        found = []
        for item in items:
            match = _INSTRUCTION_RE.fullmatch(item)
            if match and match.group("target") == target:
                found.append(parse_instruction_attributes(match.group("body")))
        return found

    def prolog(self) -> List[str]:
        """Comments and processing instructions that precede the root element."""
        head = _ROOT_START_RE.split(self.raw_text, maxsplit=1)[0]
        return [
            m.group(0) for m in _PROLOG_ITEM_RE.finditer(head)
            if not m.group(0).startswith("<?xml ")
        ]

    def to_bytes(self) -> bytes:
        tree = ET.ElementTree(self.root)
        ET.indent(tree, space="  ")
        try:
            body = ET.tostring(
                self.root,
                encoding="unicode",
                default_namespace=self.namespace or None,
            )
        except ValueError:
            # Unqualified elements cannot share the default namespace; prefix it instead.
            logger.debug("NuSpec file mixes namespaces; writing prefixed element names")
            body = ET.tostring(self.root, encoding="unicode")
        lines = ['<?xml version="1.0" encoding="utf-8"?>'] + self.prolog() + [body]
        return ("\n".join(lines) + "\n").encode("utf-8")

    def save(self, path: Optional[str] = None) -> None:
        """Serialize the whole document, then overwrite ``path`` in one write."""
        target = path or self.path
        if not target:
            raise NuSpecError("No path given to save the NuSpec file to.")
        data = self.to_bytes()
        with open(target, "wb") as fh:
            fh.write(data)
        logger.debug("Wrote NuSpec file %s", target)
