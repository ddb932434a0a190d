import io
import json
from pathlib import Path

import networkx as nx
import pytest

from shared.console import DepsConsole
from shared.logger import DepsLogger

from dexdeps.core.engine import DepsEngine
from dexdeps.core.models import ContainerScanResult
from dexdeps.output.console import DepsConsoleOutput
from dexdeps.output.report import DepsReportGenerator
from dexdeps.parsers.container import DexSource

from . import _util


@pytest.fixture
def result() -> ContainerScanResult:
    sources = [
        DexSource("classes.dex", io.BytesIO(_util.sample_dex())),
        DexSource("classes2.dex", io.BytesIO(b"dex\n036\x00" + b"\x00" * 104)),
    ]
    engine = DepsEngine(logger=DepsLogger("test.report", console_output=False))
    return engine.scan_sources(sources, target="app.apk")


def test_build_json(result: ContainerScanResult) -> None:
    report = DepsReportGenerator().build_json(result)

    assert report["duration_seconds"] is not None
    scan = report["scan"]
    assert scan["target"] == "app.apk"
    assert scan["scope"] == "all"
    ok, failed = scan["results"]
    assert ok["classes"][2]["name"] == "Lcom/example/Main;"
    assert ok["classes"][2]["methods"][1]["argument_types"] == ["[Ljava/lang/String;"]
    assert failed["error_kind"] == "BadMagicError"
    assert failed["classes"] == []


def test_generate_json(result: ContainerScanResult, tmp_path: Path) -> None:
    out = DepsReportGenerator().generate_json(result, tmp_path / "out" / "refs.json")
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["scan"]["summary"] == result.summary


def test_render_text(result: ContainerScanResult) -> None:
    lines = DepsReportGenerator().render_text(result).splitlines()

    assert lines[0] == "# classes.dex"
    assert "class int internal" in lines
    assert "class android.app.Activity external" in lines
    assert "  field com.example.Main.count:I internal" in lines
    assert "  method java.lang.String.valueOf(I)Ljava/lang/String; external" in lines
    assert "# classes2.dex" in lines
    assert lines[-1].startswith("! BadMagicError: ")


def test_render_text_without_members(result: ContainerScanResult) -> None:
    text = DepsReportGenerator().render_text(result, show_members=False)
    assert "  field" not in text
    assert "  method" not in text
    assert "class com.example.Main internal" in text


def test_graphml_skips_failed_images(result: ContainerScanResult, tmp_path: Path) -> None:
    gen = DepsReportGenerator()
    graph = gen.build_graph(result)
    assert set(nx.get_node_attributes(graph, "source").values()) == {"classes.dex"}

    out = gen.generate_graphml(result, tmp_path / "refs.graphml")
    assert nx.read_graphml(out).number_of_nodes() == graph.number_of_nodes()


def test_console_display(result: ContainerScanResult) -> None:
    console = DepsConsole(record=True)
    DepsConsoleOutput(console=console).display(result)
    text = console.export_text()

    assert "app.apk" in text
    assert "com.example.Main" in text
    assert "valueOf" in text
    assert "Most used types" in text
    assert "BadMagicError" in text
