import json
from pathlib import Path

import networkx as nx
import pytest
from click.testing import CliRunner

from dexdeps.cli import dexdeps_cli

from . import _util


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def dex_path(tmp_path: Path) -> Path:
    path = tmp_path / "classes.dex"
    path.write_bytes(_util.sample_dex())
    return path


@pytest.fixture
def quiet_config(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text('[global]\nlog_level = "ERROR"\n', encoding="utf-8")
    return path


def test_console_listing(runner: CliRunner, dex_path: Path) -> None:
    result = runner.invoke(dexdeps_cli, [str(dex_path)])
    assert result.exit_code == 0, result.output
    assert "com.example.Main" in result.output
    assert "android.app.Activity" in result.output


def test_json_output(runner: CliRunner, dex_path: Path, quiet_config: Path) -> None:
    result = runner.invoke(
        dexdeps_cli,
        [str(dex_path), "--json", "--scope", "external", "--config", str(quiet_config)],
    )
    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    classes = report["scan"]["results"][0]["classes"]
    assert report["scan"]["scope"] == "external"
    assert [c["name"] for c in classes] == [
        "Landroid/app/Activity;", "Ljava/lang/Object;", "Ljava/lang/String;",
    ]
    assert not any(c["internal"] for c in classes)


@pytest.mark.parametrize("suffix", [".json", ".graphml", ".txt"])
def test_output_file(runner: CliRunner, dex_path: Path, tmp_path: Path, suffix: str) -> None:
    out = tmp_path / "reports" / f"refs{suffix}"
    result = runner.invoke(dexdeps_cli, [str(dex_path), "--no-members", "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert out.exists()

    if suffix == ".json":
        assert json.loads(out.read_text(encoding="utf-8"))["scan"]["results"]
    elif suffix == ".graphml":
        assert nx.read_graphml(out).number_of_nodes() > 0
    else:
        text = out.read_text(encoding="utf-8")
        assert "class com.example.Main internal" in text
        assert "  field" not in text


def test_partial_failure_exits_zero(runner: CliRunner, tmp_path: Path) -> None:
    apk = _util.write_apk(
        tmp_path / "app.apk",
        {"classes.dex": _util.sample_dex(), "classes2.dex": b"garbage!" * 20},
    )
    result = runner.invoke(dexdeps_cli, [str(apk)])
    assert result.exit_code == 0, result.output
    assert "could not be decoded" in result.output


def test_fail_fast(runner: CliRunner, tmp_path: Path) -> None:
    apk = _util.write_apk(
        tmp_path / "app.apk",
        {"classes.dex": _util.sample_dex(), "classes2.dex": b"garbage!" * 20},
    )
    result = runner.invoke(dexdeps_cli, [str(apk), "--fail-fast"])
    assert result.exit_code == 1
    assert "BadMagicError" in result.output


def test_every_image_failed(runner: CliRunner, tmp_path: Path) -> None:
    path = tmp_path / "classes.dex"
    path.write_bytes(_util.sample_dex(endian_tag=0x11223344))
    result = runner.invoke(dexdeps_cli, [str(path)])
    assert result.exit_code == 1


def test_archive_without_dex(runner: CliRunner, tmp_path: Path) -> None:
    apk = _util.write_apk(tmp_path / "empty.apk", {})
    result = runner.invoke(dexdeps_cli, [str(apk)])
    assert result.exit_code == 1
    assert "ContainerError" in result.output


def test_missing_path(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(dexdeps_cli, [str(tmp_path / "missing.dex")])
    assert result.exit_code == 2


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(dexdeps_cli, ["--version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output


def test_corrupt_archive_entry(runner: CliRunner, tmp_path: Path) -> None:
    apk = _util.write_corrupt_apk(tmp_path / "app.apk", _util.sample_dex())
    result = runner.invoke(dexdeps_cli, [str(apk)])
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "ContainerError" in result.output
    assert "CRC" in result.output


def test_unreadable_config_falls_back_to_defaults(
    runner: CliRunner, dex_path: Path, tmp_path: Path
) -> None:
    bad = tmp_path / "bad.toml"
    bad.write_text("[scan\nscope = ", encoding="utf-8")
    result = runner.invoke(dexdeps_cli, [str(dex_path), "--config", str(bad)])
    assert result.exit_code == 0, result.output
    assert "configuration" in result.output
    assert "defaults" in result.output
    assert "com.example.Main" in result.output


def test_verbose_reaches_module_loggers(
    runner: CliRunner, dex_path: Path, tmp_path: Path
) -> None:
    log_file = tmp_path / "logs" / "dexdeps.jsonl"
    config = tmp_path / "config.toml"
    config.write_text(
        f'[global]\nlog_file = "{log_file.as_posix()}"\nlog_json = true\n',
        encoding="utf-8",
    )

    result = runner.invoke(dexdeps_cli, [str(dex_path), "--config", str(config)])
    assert result.exit_code == 0, result.output
    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert not any(r["logger"] == "dexdeps.tables" for r in records)

    result = runner.invoke(dexdeps_cli, [str(dex_path), "--config", str(config), "-v"])
    assert result.exit_code == 0, result.output
    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    table_records = [r for r in records if r["logger"] == "dexdeps.tables"]
    assert table_records
    assert table_records[0]["level"] == "DEBUG"
    assert table_records[0]["message"].startswith(
        f"Loaded tables: {len(_util.SAMPLE_STRINGS)} strings, {len(_util.SAMPLE_TYPES)} types"
    )
