import os
import subprocess
import sys
import threading
import time

import pytest

from chloe import (
    EnvSettingsBackend,
    FileSettingsBackend,
    MemorySettingsBackend,
    RuntimeLocator,
    SettingsStore,
)
from chloe.exceptions import SettingsLockTimeout


def test_missing_file_is_empty(tmp_path):
    store = SettingsStore(FileSettingsBackend(tmp_path / "absent.conf"))
    assert store.get("java_path") is None
    assert store.get("java_path", "java") == "java"


def test_set_creates_parent_and_keeps_one_line(tmp_path):
    path = tmp_path / "conf" / "chloe.conf"
    store = SettingsStore(FileSettingsBackend(path))
    store.set("java_path", "/opt/jre/bin/java")
    store.set("java_path", "/usr/bin/java")
    store.set("java_path", "/usr/bin/java")
    assert path.read_text(encoding="utf-8") == "java_path=/usr/bin/java\n"
    assert store.get("java_path") == "/usr/bin/java"
    assert not path.with_name("chloe.conf.lock").exists()


def test_other_keys_are_kept(tmp_path):
    path = tmp_path / "chloe.conf"
    path.write_text("# réglages\nlang=fr\n", encoding="utf-8")
    store = SettingsStore(FileSettingsBackend(path))
    store.set("java_path", "/usr/bin/java")
    assert store.as_dict() == {"lang": "fr", "java_path": "/usr/bin/java"}
    store.delete("lang")
    assert store.as_dict() == {"java_path": "/usr/bin/java"}


def test_lock_timeout(tmp_path):
    backend = FileSettingsBackend(tmp_path / "chloe.conf", lock_timeout=0.1)
    backend.lock_path.write_text(str(os.getpid()), encoding="utf-8")
    with pytest.raises(SettingsLockTimeout):
        SettingsStore(backend).set("java_path", "/usr/bin/java")


def test_env_backend():
    environ = {"CHLOE_JAVA_PATH": "/usr/bin/java", "PATH": "/bin"}
    store = SettingsStore(EnvSettingsBackend(environ=environ))
    assert store.get("java_path") == "/usr/bin/java"
    store.set("java_path", "/opt/java")
    assert environ["CHLOE_JAVA_PATH"] == "/opt/java"
    store.delete("java_path")
    assert environ == {"PATH": "/bin"}


def test_memory_backend_copies_data():
    initial = {"java_path": "/usr/bin/java"}
    store = SettingsStore(MemorySettingsBackend(initial))
    store.set("java_path", "/opt/java")
    assert initial["java_path"] == "/usr/bin/java"
    assert store.get("java_path") == "/opt/java"


def _dead_pid() -> int:
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    proc.wait()
    return proc.pid


@pytest.mark.skipif(os.name != "posix", reason="détection du PID sous POSIX")
def test_lock_of_dead_process_is_recovered(tmp_path):
    path = tmp_path / "chloe.conf"
    backend = FileSettingsBackend(path, lock_timeout=0.3)
    backend.lock_path.write_text(str(_dead_pid()), encoding="ascii")
    RuntimeLocator(SettingsStore(backend)).persist_runtime("/usr/bin/java")
    assert SettingsStore(backend).get("java_path") == "/usr/bin/java"
    assert not backend.lock_path.exists()


def test_old_lock_is_recovered(tmp_path):
    backend = FileSettingsBackend(tmp_path / "chloe.conf", lock_timeout=0.3, stale_after=5.0)
    backend.lock_path.write_text(str(os.getpid()), encoding="ascii")
    old = time.time() - 60
    os.utime(backend.lock_path, (old, old))
    SettingsStore(backend).set("java_path", "/usr/bin/java")
    assert SettingsStore(backend).get("java_path") == "/usr/bin/java"


def test_concurrent_updates_are_not_lost(tmp_path):
    path = tmp_path / "chloe.conf"
    errors = []

    def worker(n):
        # Un store par thread : seul le fichier verrou sérialise les écritures
        store = SettingsStore(FileSettingsBackend(path))
        try:
            for i in range(5):
                store.set(f"cle_{n}_{i}", str(i))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    data = SettingsStore(FileSettingsBackend(path)).as_dict()
    assert data == {f"cle_{n}_{i}": str(i) for n in range(8) for i in range(5)}
    assert not FileSettingsBackend(path).lock_path.exists()
