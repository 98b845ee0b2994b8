"""
Unit tests for the tree-sitter parser adapter
"""

import pytest

from csharply.core.errors import SourceParseError
from csharply.core.parser import import_path, parse_source
from csharply.core.syntax import ImportGroup, NodeKind

WIDGET = """// File header
using System;
using static System.Math;
using Json = Newtonsoft.Json;

namespace Demo
{
    /// <summary>A widget.</summary>
    [Serializable]
    public class Widget
    {
        private int _count; // trailing comment
        public string Name { get; set; }
        public Widget(int count) { _count = count; }
        public T Get<T>(int index, string key) => default;
        public event EventHandler Changed;
        public enum Mode { A, B }
        public struct Inner { }
    }
}
"""


def find_class(root):
    namespace = root.members[0]
    return namespace.members[0]


class TestParseSource:
    """Test building the declaration model"""

    def test_lossless(self, unordered_class):
        """Test that printing the model reproduces the input exactly"""
        for source in (WIDGET, unordered_class, "", "\n\n", "class C { }"):
            assert parse_source(source).to_source() == source

    def test_lossless_crlf(self):
        """Test lossless printing with Windows line endings"""
        source = WIDGET.replace("\n", "\r\n")
        assert parse_source(source).to_source() == source

    def test_imports(self):
        """Test import paths and groups"""
        root = parse_source(WIDGET)

        assert [item.kind for item in root.imports] == [NodeKind.IMPORT] * 3
        assert [item.import_path for item in root.imports] == [
            "System",
            "System.Math",
            "Newtonsoft.Json",
        ]
        assert all(item.import_group == ImportGroup.USING for item in root.imports)

    def test_global_using_group(self):
        """Test that global usings get their own group"""
        root = parse_source("global using System.Linq;\nusing System;\n")

        assert root.imports[0].import_group == ImportGroup.GLOBAL_USING
        assert root.imports[1].import_group == ImportGroup.USING

    def test_member_kinds(self):
        """Test classification of class members"""
        widget = find_class(parse_source(WIDGET))

        assert widget.kind == NodeKind.CLASS
        assert widget.name == "Widget"
        assert widget.visibility == "public"
        assert [member.kind for member in widget.members] == [
            NodeKind.FIELD,
            NodeKind.PROPERTY,
            NodeKind.CONSTRUCTOR,
            NodeKind.METHOD,
            NodeKind.OTHER,
            NodeKind.ENUM,
            NodeKind.OTHER,
        ]

    def test_display_keys(self):
        """Test identifiers and arities"""
        members = find_class(parse_source(WIDGET)).members

        assert members[0].name == "_count"
        assert members[0].visibility == "private"
        assert members[1].name == "Name"
        assert members[2].key.parameter_count == 1
        assert members[3].name == "Get"
        assert members[3].key.parameter_count == 2
        assert members[3].key.type_parameter_count == 1

    def test_trivia_attachment(self):
        """Test that comments attach to the right declaration"""
        widget = find_class(parse_source(WIDGET))
        field, prop = widget.members[0], widget.members[1]

        assert "// trailing comment" in "".join(t.text for t in field.trailing)
        assert "trailing comment" not in "".join(t.text for t in prop.leading)
        # Documentation and attributes travel with the class
        assert "/// <summary>" in "".join(t.text for t in widget.leading)
        assert widget.text.startswith("[Serializable]")

    def test_container_spans(self):
        """Test brace spans of a braced container"""
        widget = find_class(parse_source(WIDGET))

        assert widget.braced
        assert widget.text.endswith("{")
        assert widget.close_text == "}"
        assert "".join(t.text for t in widget.open_trailing) == "\n"
        assert "".join(t.text for t in widget.close_leading) == "    "

    def test_file_scoped_namespace(self):
        """Test that file-scoped namespaces own the declarations after them"""
        source = "namespace Demo;\n\nusing System;\n\nclass B { }\n\nclass A { }\n"
        root = parse_source(source)

        assert len(root.members) == 1
        namespace = root.members[0]
        assert namespace.kind == NodeKind.NAMESPACE
        assert not namespace.braced
        assert [item.import_path for item in namespace.imports] == ["System"]
        assert [member.name for member in namespace.members] == ["B", "A"]
        assert root.to_source() == source

    def test_region_markers_become_trivia(self):
        """Test that region directives are not members"""
        source = "class C\n{\n    #region Fields\n    int _a;\n    #endregion\n}\n"
        members = parse_source(source).members[0].members

        assert len(members) == 1
        assert members[0].kind == NodeKind.FIELD

    def test_struct_and_record_are_opaque(self):
        """Test value types and records are kept as single declarations"""
        source = "struct S { public int B; public int A; }\nrecord R(int X);\n"
        members = parse_source(source).members

        assert [member.kind for member in members] == [NodeKind.OTHER, NodeKind.OTHER]
        assert [member.name for member in members] == ["S", "R"]
        assert members[0].text == "struct S { public int B; public int A; }"

    def test_region_lines_inside_bodies(self):
        """Test region lines inside a method body are located in its text"""
        source = (
            "class C\n{\n    void M()\n    {\n        #region Body\n"
            "        Run();\n        #endregion\n    }\n}\n"
        )
        method = parse_source(source).members[0].members[0]

        assert [method.text[start:end] for start, end in method.region_lines] == [
            "        #region Body\n",
            "        #endregion\n",
        ]

    def test_no_region_lines_without_markers(self):
        method = parse_source("class C\n{\n    void M()\n    {\n        Run();\n    }\n}\n")

        assert method.members[0].members[0].region_lines == ()

    def test_syntax_error(self, broken_source):
        """Test that broken code raises with a location"""
        with pytest.raises(SourceParseError) as exc_info:
            parse_source(broken_source)

        assert "Unable to parse C# source" in str(exc_info.value)


class TestImportPath:
    """Test extracting the sorted path from a using directive"""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("using System;", "System"),
            ("using static System.Math;", "System.Math"),
            ("global using System.Linq;", "System.Linq"),
            ("using Json = Newtonsoft.Json;", "Newtonsoft.Json"),
            ("using  System . Text ;", "System.Text"),
        ],
    )
    def test_import_path(self, text, expected):
        assert import_path(text) == expected
