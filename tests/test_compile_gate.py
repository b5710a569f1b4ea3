import asyncio
import os
import shutil
import subprocess
import time

import pytest

from codejudge.features.compiler import service as compiler_service
from codejudge.features.compiler.service import LocalCompileGate
from codejudge.features.judge0.languages import Language


class _Proc:
    def __init__(self, returncode, stdout=b""):
        self.returncode = returncode
        self.stdout = stdout


def _gate(tmp_path, **kwargs):
    return LocalCompileGate(scratch_root=str(tmp_path / "scratch"), timeout_s=5, enabled=True, **kwargs)


def test_interpreted_languages_pass_without_compiling(tmp_path, monkeypatch):
    gate = _gate(tmp_path)

    def fail_run(*args, **kwargs):
        raise AssertionError("compiler must not be invoked")

    monkeypatch.setattr(compiler_service.subprocess, "run", fail_run)

    for language in (Language.python, Language.javascript, Language.typescript):
        assert asyncio.run(gate.check_compiles("print(1)", language)).ok


def test_disabled_gate_passes(tmp_path, monkeypatch):
    gate = LocalCompileGate(scratch_root=str(tmp_path), enabled=False)

    def fail_run(*args, **kwargs):
        raise AssertionError("compiler must not be invoked")

    monkeypatch.setattr(compiler_service.subprocess, "run", fail_run)

    assert asyncio.run(gate.check_compiles("int main(", Language.cpp)).ok


def test_nonzero_exit_reports_diagnostic_without_scratch_path(tmp_path, monkeypatch):
    gate = _gate(tmp_path)
    seen = {}

    def fake_run(argv, cwd, **kwargs):
        seen["argv"] = argv
        seen["cwd"] = cwd
        src = argv[2]
        assert os.path.isfile(src)
        msg = f"{src}:1:5: error: expected ';' before '}}' token\n"
        return _Proc(1, msg.encode())

    monkeypatch.setattr(compiler_service.subprocess, "run", fake_run)

    check = asyncio.run(gate.check_compiles("int main() { return 0 }", Language.cpp))

    assert check.ok is False
    assert "error: expected ';'" in check.diagnostic
    assert seen["cwd"] not in check.diagnostic
    assert seen["argv"][0] == "g++"
    # Scratch directory is gone once the check returns
    assert not os.path.exists(seen["cwd"])


def test_warnings_on_zero_exit_still_pass(tmp_path, monkeypatch):
    gate = _gate(tmp_path)

    def fake_run(argv, cwd, **kwargs):
        return _Proc(0, b"warning: unused variable 'x'\n")

    monkeypatch.setattr(compiler_service.subprocess, "run", fake_run)

    assert asyncio.run(gate.check_compiles("int main(){int x;}", Language.c)).ok


def test_java_source_is_named_after_public_class(tmp_path, monkeypatch):
    gate = _gate(tmp_path)
    seen = {}

    def fake_run(argv, cwd, **kwargs):
        seen["argv"] = argv
        return _Proc(0)

    monkeypatch.setattr(compiler_service.subprocess, "run", fake_run)

    assert asyncio.run(gate.check_compiles("public class Main {}", Language.java)).ok
    assert seen["argv"][0] == "javac"
    assert os.path.basename(seen["argv"][1]) == "Main.java"


def test_missing_toolchain_fails_closed(tmp_path, monkeypatch):
    gate = _gate(tmp_path)

    def fake_run(argv, cwd, **kwargs):
        raise FileNotFoundError(argv[0])

    monkeypatch.setattr(compiler_service.subprocess, "run", fake_run)

    check = asyncio.run(gate.check_compiles("int main(){}", Language.c))
    assert check.ok is False
    assert "not available" in check.diagnostic


def test_compiler_timeout_fails_closed(tmp_path, monkeypatch):
    gate = _gate(tmp_path)

    def fake_run(argv, cwd, **kwargs):
        raise subprocess.TimeoutExpired(argv, kwargs.get("timeout"))

    monkeypatch.setattr(compiler_service.subprocess, "run", fake_run)

    check = asyncio.run(gate.check_compiles("int main(){}", Language.cpp))
    assert check.ok is False
    assert "timed out" in check.diagnostic


def test_concurrent_checks_use_separate_directories(tmp_path, monkeypatch):
    gate = _gate(tmp_path)
    dirs = []

    def fake_run(argv, cwd, **kwargs):
        dirs.append(cwd)
        return _Proc(0)

    monkeypatch.setattr(compiler_service.subprocess, "run", fake_run)

    async def _run():
        return await asyncio.gather(*(gate.check_compiles("int main(){}", Language.cpp) for _ in range(4)))

    checks = asyncio.run(_run())
    assert all(c.ok for c in checks)
    assert len(set(dirs)) == 4
    assert os.listdir(gate.scratch_root) == []


def test_sweep_removes_only_stale_directories(tmp_path):
    gate = _gate(tmp_path)
    os.makedirs(gate.scratch_root)
    stale = os.path.join(gate.scratch_root, "stale")
    fresh = os.path.join(gate.scratch_root, "fresh")
    os.makedirs(stale)
    os.makedirs(fresh)
    old = time.time() - 7200
    os.utime(stale, (old, old))

    removed = gate.sweep_stale_scratch(max_age_s=3600)

    assert removed == 1
    assert not os.path.exists(stale)
    assert os.path.exists(fresh)


def test_sweep_without_scratch_root_is_noop(tmp_path):
    gate = _gate(tmp_path)
    assert gate.sweep_stale_scratch(max_age_s=0) == 0


@pytest.mark.skipif(shutil.which("g++") is None, reason="g++ not installed")
def test_real_gpp_rejects_invalid_source(tmp_path):
    gate = _gate(tmp_path)

    check = asyncio.run(gate.check_compiles("int main() { return 0 ", Language.cpp))

    assert check.ok is False
    assert check.diagnostic


@pytest.mark.skipif(shutil.which("g++") is None, reason="g++ not installed")
def test_real_gpp_accepts_valid_source(tmp_path):
    gate = _gate(tmp_path)

    check = asyncio.run(gate.check_compiles("int main() { return 0; }\n", Language.cpp))

    assert check.ok is True
