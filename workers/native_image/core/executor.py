"""
Executor — run external processes and the native-image compiler.

Every process is launched and awaited before the next one starts.
A launch failure or a non-zero exit raises ExecutionError; there is no
timeout and no retry.  Output is captured as bytes and only decoded
(with replacement) for logging and error messages.
"""
import hashlib
import logging
import os
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from native_image.errors import ExecutionError

logger = logging.getLogger(__name__)

MODULE_SYSTEM_VAR = "USE_NATIVE_IMAGE_JAVA_PLATFORM_MODULE_SYSTEM"


def decode_output(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Execution:
    """One external process invocation."""
    command: str
    args: List[str] = field(default_factory=list)
    cwd: Optional[Path] = None
    env: Optional[Dict[str, str]] = None
    stream: bool = False   # log output lines as they arrive, stderr merged into stdout

    def command_line(self) -> str:
        return " ".join([self.command] + list(self.args))


@dataclass(frozen=True)
class ExecutionResult:
    stdout: bytes
    stderr: bytes
    exit_code: int
    duration_ms: int = 0


class Executor:
    """Runs an Execution with subprocess and logs its output."""

    def __init__(self, log_output: bool = True):
        self.log_output = log_output

    def execute(self, execution: Execution) -> ExecutionResult:
        t0 = time.monotonic()
        try:
            if execution.stream:
                stdout, stderr, returncode = self._stream(execution)
            else:
                stdout, stderr, returncode = self._run(execution)
        except OSError as e:
            raise ExecutionError(
                execution.command, None, reason=f"unable to launch: {e}"
            ) from e
        duration = int((time.monotonic() - t0) * 1000)

        if returncode != 0:
            tail = stderr if not execution.stream else stdout
            raise ExecutionError(execution.command, returncode, decode_output(tail))

        return ExecutionResult(
            stdout=stdout,
            stderr=stderr,
            exit_code=returncode,
            duration_ms=duration,
        )

    def _run(self, execution: Execution):
        result = subprocess.run(
            [execution.command] + list(execution.args),
            cwd=str(execution.cwd) if execution.cwd else None,
            env=execution.env,
            capture_output=True,
        )
        if self.log_output:
            for line in decode_output(result.stdout + result.stderr).splitlines():
                logger.info("  %s", line)
        return result.stdout, result.stderr, result.returncode

    def _stream(self, execution: Execution):
        chunks: List[bytes] = []
        with subprocess.Popen(
            [execution.command] + list(execution.args),
            cwd=str(execution.cwd) if execution.cwd else None,
            env=execution.env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        ) as proc:
            for raw in proc.stdout:
                chunks.append(raw)
                if self.log_output:
                    logger.info("  %s", decode_output(raw).rstrip("\r\n"))
            returncode = proc.wait()
        return b"".join(chunks), b"", returncode


class NativeImageCompiler:
    """The native-image compiler seen through an Executor."""

    def __init__(
        self,
        executor: Executor,
        command: str = "native-image",
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.executor = executor
        self.command = command
        self.environ = dict(os.environ if environ is None else environ)

    def version_hash(self) -> str:
        """SHA-256 of the compiler's raw --version output."""
        result = self.executor.execute(Execution(self.command, ["--version"]))
        return hashlib.sha256(result.stdout).hexdigest()

    def compile_environment(self) -> Dict[str, str]:
        env = dict(self.environ)
        # GraalVM 22.2+ needs this off unless the user chose otherwise
        env.setdefault(MODULE_SYSTEM_VAR, "false")
        return env

    def compile(self, arguments: List[str], layer_path: Path) -> ExecutionResult:
        logger.info("Executing %s %s", self.command, " ".join(arguments))
        return self.executor.execute(Execution(
            command=self.command,
            args=list(arguments),
            cwd=layer_path,
            env=self.compile_environment(),
            stream=True,
        ))
