"""
Test fixtures for native_image.

Provides synthetic application trees (exploded JAR and single JAR) and a
FakeExecutor that records executions and simulates what the compiler and
the compressors do to the filesystem.  No GraalVM, upx or gzexe required.
"""
import os
import textwrap
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from native_image.core.executor import Execution, ExecutionResult, Executor
from native_image.errors import ExecutionError


ENTRY_CLASS = "com.example.App"

MANIFEST = textwrap.dedent("""\
    Manifest-Version: 1.0
    Start-Class: com.example.App
    Main-Class: org.springframework.boot.loader.JarLauncher

    Name: com/example/
    Sealed: true
""")


# ── Application trees ────────────────────────────────────────────────────────

def make_class_app(root: Path, manifest: str = MANIFEST) -> Path:
    """Exploded JAR: manifest plus a couple of class files."""
    (root / "META-INF").mkdir(parents=True, exist_ok=True)
    (root / "META-INF" / "MANIFEST.MF").write_text(manifest)
    classes = root / "com" / "example"
    classes.mkdir(parents=True, exist_ok=True)
    (classes / "App.class").write_bytes(b"\xca\xfe\xba\xbe app")
    (classes / "Util.class").write_bytes(b"\xca\xfe\xba\xbe util")
    return root


def make_jar_app(root: Path, *jar_names: str) -> Path:
    """Directory holding one or more JAR files."""
    root.mkdir(parents=True, exist_ok=True)
    for name in jar_names or ("app.jar",):
        (root / name).write_bytes(b"PK\x03\x04 " + name.encode())
    return root


@pytest.fixture
def app_factory():
    """The tree builders, for tests that need to rebuild an application."""
    return make_class_app, make_jar_app


@pytest.fixture
def class_app(tmp_path: Path) -> Path:
    return make_class_app(tmp_path / "app")


@pytest.fixture
def jar_app(tmp_path: Path) -> Path:
    return make_jar_app(tmp_path / "app", "app.jar")


@pytest.fixture
def layers_path(tmp_path: Path) -> Path:
    path = tmp_path / "layers"
    path.mkdir()
    return path


# ── Fake executor ────────────────────────────────────────────────────────────

class FakeExecutor(Executor):
    """
    Records every Execution instead of launching a process.

    native-image --version   returns ``version_output`` on stdout
    native-image <args>      writes the binary named by -H:Name= (relative
                             to cwd) unless ``produce_binary`` is False, plus
                             ``extra_outputs`` (bytes, or None for a dir)
    upx -q -9 <binary>       rewrites the binary in place
    gzexe <binary>           rewrites the binary, keeps "<binary>~"
                             unless ``leave_backup`` is False
    """

    def __init__(self, version_output: bytes = b"native-image 22.3.0 GraalVM CE\n"):
        super().__init__(log_output=False)
        self.version_output = version_output
        self.executions: List[Execution] = []
        self.fail_commands: Set[str] = set()
        self.fail_version = False
        self.fail_compile = False
        self.leave_backup = True
        self.produce_binary = True
        self.extra_outputs: Dict[str, Optional[bytes]] = {}

    def commands(self) -> List[str]:
        return [e.command for e in self.executions]

    def compilations(self) -> List[Execution]:
        return [
            e for e in self.executions
            if e.command == "native-image" and e.args != ["--version"]
        ]

    def execute(self, execution: Execution) -> ExecutionResult:
        self.executions.append(execution)

        if execution.command in self.fail_commands:
            raise ExecutionError(execution.command, 1, "fatal: simulated failure\n")

        if execution.command == "native-image":
            if execution.args == ["--version"]:
                if self.fail_version:
                    raise ExecutionError(execution.command, 127, "not found\n")
                return ExecutionResult(stdout=self.version_output, stderr=b"", exit_code=0)
            if self.fail_compile:
                raise ExecutionError(execution.command, 1, "Error: Image build request failed\n")
            self._compile(execution)
        elif execution.command == "upx":
            Path(execution.args[-1]).write_bytes(b"UPX! compressed")
        elif execution.command == "gzexe":
            binary = Path(execution.args[-1])
            if self.leave_backup:
                backup = binary.with_name(binary.name + "~")
                backup.write_bytes(binary.read_bytes())
            binary.write_bytes(b"#!/bin/sh\n# gzexe wrapper\n")

        return ExecutionResult(stdout=b"", stderr=b"", exit_code=0)

    def _compile(self, execution: Execution) -> None:
        name_args = [a for a in execution.args if a.startswith("-H:Name=")]
        # relative names resolve against the working directory, as in native-image
        binary = Path(execution.cwd or ".") / name_args[-1].split("=", 1)[1]
        if not self.produce_binary:
            return
        binary.write_bytes(b"\x00native binary for " + binary.name.encode())
        os.chmod(binary, 0o755)

        for name, content in self.extra_outputs.items():
            target = binary.parent / name
            if content is None:
                target.mkdir()
                (target / "resource.bin").write_bytes(b"resource")
            else:
                target.write_bytes(content)


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


# ── Environment ──────────────────────────────────────────────────────────────

ENV_VARS = (
    "BP_NATIVE_IMAGE",
    "BP_BOOT_NATIVE_IMAGE",
    "BP_NATIVE_IMAGE_BUILD_ARGUMENTS",
    "BP_BOOT_NATIVE_IMAGE_BUILD_ARGUMENTS",
    "BP_NATIVE_IMAGE_BUILD_ARGUMENTS_FILE",
    "BP_NATIVE_IMAGE_BUILT_ARTIFACT",
    "BP_BINARY_COMPRESSION_METHOD",
    "CLASSPATH",
    "CNB_STACK_ID",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Environment with none of the recognized options set."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
