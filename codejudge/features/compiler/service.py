"""Local compile gate.

Compiles C, C++ and Java sources with the host toolchain before a submission
reaches Judge0, so obviously broken code does not burn sandbox quota. The
sandbox remains authoritative; this is only a fast path.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional
from uuid import uuid4

from codejudge.core.config import get_settings
from codejudge.features.judge0.languages import Language

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileCheck:
    ok: bool
    diagnostic: Optional[str] = None


@dataclass(frozen=True)
class _Toolchain:
    source_name: str
    argv: List[str]  # {src} and {out} are substituted


_TOOLCHAINS: Dict[Language, _Toolchain] = {
    Language.c: _Toolchain("main.c", ["gcc", "{src}", "-o", "{out}"]),
    Language.cpp: _Toolchain("main.cpp", ["g++", "-std=c++17", "{src}", "-o", "{out}"]),
    # javac requires the file name to match the public class
    Language.java: _Toolchain("Main.java", ["javac", "{src}"]),
}

_PASS = CompileCheck(ok=True)


class LocalCompileGate:
    def __init__(self, scratch_root: Optional[str] = None, timeout_s: Optional[float] = None,
                 enabled: Optional[bool] = None):
        settings = get_settings()
        self.scratch_root = scratch_root or settings.compile_scratch_dir
        self.timeout_s = timeout_s if timeout_s is not None else settings.local_compile_timeout_s
        self.enabled = settings.local_compile_enabled if enabled is None else enabled

    @contextmanager
    def _scratch(self) -> Iterator[str]:
        """Per-invocation scratch directory, removed on every exit path."""
        os.makedirs(self.scratch_root, exist_ok=True)
        path = os.path.join(self.scratch_root, uuid4().hex)
        os.makedirs(path)
        try:
            yield path
        finally:
            shutil.rmtree(path, ignore_errors=True)

    def _compile_blocking(self, code: str, toolchain: _Toolchain) -> CompileCheck:
        with self._scratch() as workdir:
            src = os.path.join(workdir, toolchain.source_name)
            out = os.path.join(workdir, "main")
            with open(src, "w", encoding="utf-8") as f:
                f.write(code)
            argv = [arg.format(src=src, out=out) for arg in toolchain.argv]
            try:
                proc = subprocess.run(
                    argv,
                    cwd=workdir,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    timeout=self.timeout_s,
                )
            except FileNotFoundError:
                logger.error("compiler.missing_toolchain binary=%s", argv[0])
                return CompileCheck(ok=False, diagnostic=f"Compiler '{argv[0]}' is not available")
            except subprocess.TimeoutExpired:
                return CompileCheck(ok=False, diagnostic=f"Compilation timed out after {self.timeout_s:g}s")
            except OSError as e:
                logger.error("compiler.invoke_failed binary=%s error=%s", argv[0], e)
                return CompileCheck(ok=False, diagnostic=f"Compiler '{argv[0]}' could not be invoked: {e}")

            if proc.returncode != 0:
                output = (proc.stdout or b"").decode("utf-8", errors="replace")
                # Scratch paths mean nothing to the caller
                output = output.replace(workdir + os.sep, "")
                return CompileCheck(
                    ok=False,
                    diagnostic=output.strip() or f"{argv[0]} exited with status {proc.returncode}",
                )
            return _PASS

    async def check_compiles(self, code: str, language: Language) -> CompileCheck:
        toolchain = _TOOLCHAINS.get(language)
        if toolchain is None or not self.enabled:
            return _PASS
        result = await asyncio.to_thread(self._compile_blocking, code, toolchain)
        if not result.ok:
            logger.info("compiler.rejected language=%s", language.value)
        return result

    def sweep_stale_scratch(self, max_age_s: Optional[int] = None) -> int:
        """Delete scratch directories left behind by a crashed process."""
        if max_age_s is None:
            max_age_s = get_settings().compile_scratch_max_age_s
        if not os.path.isdir(self.scratch_root):
            return 0
        cutoff = time.time() - max_age_s
        removed = 0
        for entry in os.scandir(self.scratch_root):
            try:
                if entry.is_dir(follow_symlinks=False) and entry.stat().st_mtime < cutoff:
                    shutil.rmtree(entry.path, ignore_errors=True)
                    removed += 1
            except FileNotFoundError:
                continue
        if removed:
            logger.info("compiler.sweep removed=%d root=%s", removed, self.scratch_root)
        return removed


compile_gate = LocalCompileGate()
