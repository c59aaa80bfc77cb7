import os
import sys
from pathlib import Path

import pytest

from chloe import Config, Dispatcher, MemorySettingsBackend, RuntimeLocator, SettingsStore

# Faux runtime Java : "java -jar <archive> <propriétés>"
FAKE_JAVA = """#!/bin/sh
[ "$1" = "-jar" ] || exit 64
if grep -q "sleep" "$3"; then exec sleep 5; fi
if grep -q "fail" "$3"; then echo "boom" >&2; exit 3; fi
echo "ok $3"
exit 0
"""

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="faux runtime en shell POSIX")


@pytest.fixture
def store():
    return SettingsStore(MemorySettingsBackend())


@pytest.fixture
def fake_java(tmp_path: Path) -> Path:
    p = tmp_path / "bin" / "java"
    p.parent.mkdir()
    p.write_text(FAKE_JAVA, encoding="utf-8")
    os.chmod(p, 0o755)
    return p


@pytest.fixture
def fake_jar(tmp_path: Path) -> Path:
    p = tmp_path / "Chloe5-0.0.1.jar"
    p.write_bytes(b"PK")
    return p


@pytest.fixture
def dispatcher(store, fake_java, fake_jar, tmp_path):
    config = Config(ENGINE_JAR=str(fake_jar), SCRATCH_DIR=str(tmp_path / "scratch"))
    locator = RuntimeLocator(store, config=config)
    locator.persist_runtime(fake_java)
    return Dispatcher(locator)
