"""
Pytest configuration and shared fixtures
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def unordered_class() -> str:
    """A class whose members are out of order and unevenly spaced"""
    return """using System.Text;
using Newtonsoft.Json;
using System;

namespace Demo
{
    public class Widget
    {
        #region Methods
        public void Render()
        {
            Draw();
        }

        private void Draw() { }
        #endregion


        public Widget(int size)
        {
            _size = size;
        }
        public Widget() { }
        private readonly int _size;
        public string Name { get; set; }
        public static int Count;
    }

    public interface IShape
    {
        void Render();
    }
}
"""


@pytest.fixture
def organized_class() -> str:
    """Expected organizer output for unordered_class"""
    return """using System;
using System.Text;
using Newtonsoft.Json;

namespace Demo
{
    public interface IShape
    {
        void Render();
    }

    public class Widget
    {
        public static int Count;
        private readonly int _size;

        public string Name { get; set; }

        public Widget() { }

        public Widget(int size)
        {
            _size = size;
        }

        public void Render()
        {
            Draw();
        }

        private void Draw() { }
    }
}
"""


@pytest.fixture
def broken_source() -> str:
    """C# that does not parse"""
    return "class Broken\n{\n    void M(\n}\n"


@pytest.fixture
def sample_cs_project(temp_dir: Path, unordered_class: str) -> Path:
    """Create a small C# project tree with files the organizer must skip"""
    project = temp_dir / "project"
    (project / "src" / "Models").mkdir(parents=True)
    (project / "bin" / "Debug").mkdir(parents=True)
    (project / "obj").mkdir()

    (project / "src" / "Widget.cs").write_text(unordered_class)
    (project / "src" / "Models" / "Point.cs").write_text(
        """namespace Demo.Models
{
    public class Point
    {
        public int Y { get; }
        public int X { get; }
    }
}
"""
    )

    # Generated or build output, never organized
    (project / "src" / "Resources.Designer.cs").write_text("class Resources { int b; int a; }\n")
    (project / "src" / "Api.g.cs").write_text("class Api { int b; int a; }\n")
    (project / "src" / "Generated.cs").write_text(
        "// <auto-generated>\n//     Generated by a tool.\n// </auto-generated>\n"
        "class Generated { int b; int a; }\n"
    )
    (project / "bin" / "Debug" / "Copy.cs").write_text("class Copy { int b; int a; }\n")
    (project / "obj" / "Temp.cs").write_text("class Temp { int b; int a; }\n")

    # Not C#
    (project / "README.md").write_text("# Demo\n")
    (project / "Demo.csproj").write_text("<Project Sdk=\"Microsoft.NET.Sdk\" />\n")

    return project


@pytest.fixture
def broken_cs_project(temp_dir: Path, broken_source: str) -> Path:
    """Create a project where one file fails to parse"""
    project = temp_dir / "broken"
    project.mkdir()
    (project / "Good.cs").write_text("class Good\n{\n    int _b;\n    int _a;\n}\n")
    (project / "Bad.cs").write_text(broken_source)
    return project
