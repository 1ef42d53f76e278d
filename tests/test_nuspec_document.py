"""Tests for nuspec document access."""

import pytest

from nuspec.document import NuSpecDocument, NuSpecError, parse_instruction_attributes

NS = "http://schemas.microsoft.com/packaging/2010/07/nuspec.xsd"
Q = "{%s}" % NS

DOC = (
    '<?xml version="1.0"?>\n'
    '<!-- generated by a template -->\n'
    '<package xmlns="%s">\n'
    "  <metadata>\n"
    "    <id>MyLib</id>\n"
    '    <summary lang="en">  </summary>\n'
    "    <description>Keep <!-- note --> me</description>\n"
    "  </metadata>\n"
    "</package>\n" % NS
).encode("utf-8")


@pytest.fixture
def document():
    return NuSpecDocument.from_bytes(DOC)


class TestStructure:
    """Root and metadata discovery."""

    def test_namespace_is_taken_from_root(self, document):
        assert document.namespace == NS
        assert document.qualify("files") == Q + "files"

    def test_metadata(self, document):
        assert document.metadata.tag == Q + "metadata"

    def test_wrong_root(self):
        with pytest.raises(NuSpecError, match="<package>"):
            NuSpecDocument.from_bytes(b"<project><metadata /></project>")

    def test_missing_metadata(self):
        document = NuSpecDocument.from_bytes(b"<package><files /></package>")
        with pytest.raises(NuSpecError, match="<metadata>"):
            document.metadata

    def test_duplicate_metadata(self):
        document = NuSpecDocument.from_bytes(b"<package><metadata /><metadata /></package>")
        with pytest.raises(NuSpecError, match="more than one"):
            document.metadata

    def test_parse_error(self):
        with pytest.raises(NuSpecError):
            NuSpecDocument.from_bytes(b"<package>")

    def test_missing_file(self, tmp_path):
        with pytest.raises(NuSpecError):
            NuSpecDocument.load(str(tmp_path / "missing.nuspec"))


class TestValues:
    """Get-or-create and value helpers."""

    def test_get_or_create_reuses_existing(self, document):
        metadata = document.metadata
        assert document.get_or_create(metadata, "id") is document.find(metadata, "id")

    def test_get_or_create_adds_qualified_element(self, document):
        tags = document.get_or_create(document.metadata, "tags")
        assert tags.tag == Q + "tags"
        assert document.find(document.metadata, "tags") is tags

    def test_set_value_keeps_attributes(self, document):
        element = document.set_value(document.metadata, "summary", "Short")
        assert element.text == "Short"
        assert element.get("lang") == "en"

    def test_set_value_if_blank(self, document):
        metadata = document.metadata
        assert document.set_value_if_blank(metadata, "summary", "Filled") is True
        assert document.value(metadata, "summary") == "Filled"
        assert document.set_value_if_blank(metadata, "description", "Other") is False
        assert document.value(metadata, "description") == "Keep  me"

    def test_value_of_missing_element(self, document):
        assert document.value(document.metadata, "owners") == ""


class TestSerialization:
    """Writing the document back."""

    def test_round_trip_keeps_namespace_and_comments(self, document, tmp_path):
        document.append(document.get_or_create(document.package, "files"), "file", src="a", target="lib")
        path = tmp_path / "out.nuspec"
        document.save(str(path))

        text = path.read_text(encoding="utf-8")
        assert text.startswith('<?xml version="1.0" encoding="utf-8"?>')
        assert "<!-- generated by a template -->" in text
        assert '<package xmlns="%s">' % NS in text
        assert '<file src="a" target="lib" />' in text
        assert "<!-- note -->" in text

        reloaded = NuSpecDocument.load(str(path))
        assert reloaded.value(reloaded.metadata, "id") == "MyLib"

    def test_save_without_path(self, document):
        with pytest.raises(NuSpecError):
            document.save()


class TestInstructions:
    """Processing instruction attribute parsing."""

    def test_attributes(self):
        assert parse_instruction_attributes(' a="1" b=\'two\' c = "x y" ') == {"a": "1", "b": "two", "c": "x y"}

    def test_garbage_is_ignored(self):
        assert parse_instruction_attributes(" a=1 b ") == {}

    def test_instructions_in_document_order(self):
        data = (
            '<?xml version="1.0"?>\n<?nupack version="1.0.0" versionPolicy="full"?>\n'
            '<package><?nupack version="2.0.0"?><metadata /></package>\n'
        ).encode("utf-8")
        found = NuSpecDocument.from_bytes(data).instructions("nupack")
        assert found == [{"version": "1.0.0", "versionPolicy": "full"}, {"version": "2.0.0"}]

    def test_commented_out_instructions_are_ignored(self):
        data = (
            '<?xml version="1.0"?>\n<!-- <?nupack version="9.9.9"?> -->\n'
            '<package><!-- <?nupack version="8.8.8"?> -->'
            '<metadata><description><![CDATA[<?nupack version="7.7.7"?>]]></description></metadata>'
            '<?other version="6.6.6"?></package>\n'
        ).encode("utf-8")
        assert NuSpecDocument.from_bytes(data).instructions("nupack") == []


class TestMixedNamespaces:
    """Unqualified elements inside a namespaced manifest."""

    def test_unqualified_element_survives_save(self, tmp_path):
        data = (
            '<package xmlns="%s"><metadata><version>1</version><x xmlns="" a="b" /></metadata></package>' % NS
        ).encode("utf-8")
        document = NuSpecDocument.from_bytes(data)
        document.set_value(document.metadata, "version", "2.0.0")
        path = tmp_path / "mixed.nuspec"

        document.save(str(path))

        reloaded = NuSpecDocument.load(str(path))
        assert reloaded.namespace == NS
        assert reloaded.value(reloaded.metadata, "version") == "2.0.0"
        assert reloaded.metadata.find("x").get("a") == "b"
