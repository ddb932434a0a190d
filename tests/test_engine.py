import io
from pathlib import Path

import pytest

from shared.config import DepsConfig
from shared.logger import DepsLogger

from dexdeps.core.engine import DepsEngine
from dexdeps.core.errors import BadMagicError, ContainerError
from dexdeps.core.models import ReferenceScope
from dexdeps.parsers.container import DexSource

from . import _util


@pytest.fixture
def logger() -> DepsLogger:
    return DepsLogger("test.engine", console_output=False)


@pytest.fixture
def apk(tmp_path: Path) -> Path:
    return _util.write_apk(
        tmp_path / "app.apk",
        {
            "classes.dex": _util.sample_dex(),
            "classes2.dex": b"not a dex file at all",
            "classes3.dex": _util.sample_dex(endian="big"),
        },
    )


def test_scan_raw_dex(tmp_path: Path, logger: DepsLogger) -> None:
    path = tmp_path / "classes.dex"
    path.write_bytes(_util.sample_dex())

    result = DepsEngine(logger=logger).scan(path)

    assert result.target == str(path)
    assert result.scope is ReferenceScope.ALL
    assert len(result.results) == 1
    dex = result.results[0]
    assert dex.ok
    assert dex.version == "035"
    assert dex.endian == "little"
    assert dex.counts.types == len(_util.SAMPLE_TYPES)
    assert len(dex.classes) == len(_util.SAMPLE_TYPES)
    assert dex.field_ref_count == 3
    assert dex.method_ref_count == 4
    assert result.end_time is not None
    assert result.duration_seconds is not None


def test_corrupt_image_is_isolated(apk: Path, logger: DepsLogger) -> None:
    result = DepsEngine(logger=logger).scan(apk, scope="external")

    first, second, third = result.results
    assert first.ok and third.ok
    assert third.endian == "big"
    assert [c.name for c in third.classes] == [c.name for c in first.classes]
    assert not second.ok
    assert second.source == "classes2.dex"
    assert second.error_kind == "BadMagicError"
    assert second.error_offset == 0
    assert second.classes == []
    assert not result.all_failed
    assert "Failed: 1" in result.summary
    assert result.summary.startswith("DEX images: 3")


def test_fail_fast_propagates(apk: Path, logger: DepsLogger) -> None:
    config = DepsConfig()
    config.scan.fail_fast = True
    with pytest.raises(BadMagicError):
        DepsEngine(config=config, logger=logger).scan(apk)


def test_scope_from_config(tmp_path: Path, logger: DepsLogger) -> None:
    path = tmp_path / "classes.dex"
    path.write_bytes(_util.sample_dex())
    config = DepsConfig()
    config.scan.scope = "internal"

    result = DepsEngine(config=config, logger=logger).scan(path)

    assert result.scope is ReferenceScope.INTERNAL
    assert all(c.internal for c in result.results[0].classes)


def test_scan_sources_in_memory(logger: DepsLogger) -> None:
    sources = [
        DexSource("a.dex", io.BytesIO(_util.sample_dex())),
        DexSource("b.dex", io.BytesIO(_util.sample_dex()[:40])),
    ]
    result = DepsEngine(logger=logger).scan_sources(sources)

    assert result.target == "<memory>"
    assert [r.ok for r in result.results] == [True, False]
    assert result.results[1].error_kind == "TruncatedInputError"


def test_all_failed(logger: DepsLogger) -> None:
    sources = [DexSource("bad.dex", io.BytesIO(b"\x00" * 8))]
    result = DepsEngine(logger=logger).scan_sources(sources)
    assert result.all_failed


def test_container_errors_propagate(tmp_path: Path, logger: DepsLogger) -> None:
    with pytest.raises(ContainerError):
        DepsEngine(logger=logger).scan(tmp_path / "missing.apk")
