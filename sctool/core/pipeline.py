"""
Process pipeline runner.

Strings external commands together like a Unix shell pipeline
(``a | b | c``): each stage's stdout is an OS pipe connected to the next
stage's stdin, the final stage's stdout is captured, and the stderr of
every stage is collected into one combined buffer.

Behavior:
- run_pipeline([]) is a no-op returning an empty result
- stages are started in order; a stage that fails to spawn stops the
  pipeline (already started stages are terminated and reaped)
- stages are waited in order; the first non-zero exit is reported, but
  every started stage is still reaped before returning
- only the first error is carried by the result
"""

from __future__ import annotations

import io
import logging
import os
import shlex
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Dict, List, Optional, Sequence, Tuple, Union

from .errors import PipelineError, StageStartError, StageWaitError

logger = logging.getLogger(__name__)

StdinSource = Union[None, bytes, bytearray, str, IO]

_CHUNK = 64 * 1024


@dataclass
class ProcessSpec:
    """One stage: executable, its arguments and optional first-stage input.

    ``stdin`` is only honoured on the first stage of a pipeline; it may be
    bytes/str (fed by a writer thread) or a readable file object; in-memory
    streams are read up front and str content is encoded as UTF-8.
    ``env`` entries are layered over the current environment.
    """
    executable: str
    args: List[str] = field(default_factory=list)
    stdin: StdinSource = None
    cwd: Optional[Path] = None
    env: Optional[Dict[str, str]] = None

    @property
    def argv(self) -> List[str]:
        return [str(self.executable), *[str(a) for a in self.args]]

    def __str__(self) -> str:
        return " ".join(shlex.quote(x) for x in self.argv)


@dataclass
class PipelineResult:
    """Captured output of the last stage, combined stderr and the first error."""
    output: bytes = b""
    stderr: bytes = b""
    error: Optional[PipelineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        return self.output.decode(errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode(errors="replace")

    def check(self) -> "PipelineResult":
        """Raise the carried error, if any; otherwise return self."""
        if self.error is not None:
            raise self.error
        return self


def _stdin_source(data: StdinSource) -> Tuple[object, Optional[bytes]]:
    """Return (Popen stdin argument, bytes to feed through a pipe)."""
    if data is None:
        return subprocess.DEVNULL, None
    if isinstance(data, str):
        return subprocess.PIPE, data.encode()
    if isinstance(data, (bytes, bytearray)):
        return subprocess.PIPE, bytes(data)
    try:
        data.fileno()
    except (AttributeError, OSError, io.UnsupportedOperation):
        # in-memory streams have no descriptor to hand to the child
        content = data.read()
        if isinstance(content, str):
            content = content.encode()
        if not isinstance(content, (bytes, bytearray)):
            raise ValueError(f"stdin stream returned {type(content).__name__}, expected bytes or str")
        return subprocess.PIPE, bytes(content)
    return data, None


class _StreamIO:
    """Reader/writer threads for one pipeline invocation."""

    def __init__(self):
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self.failures: List[Tuple[int, Exception]] = []

    def _record(self, stage: int, exc: Exception) -> None:
        with self._lock:
            self.failures.append((stage, exc))

    def drain(self, stage: int, stream: IO[bytes], sink: List[bytes]) -> None:
        def run():
            try:
                for chunk in iter(lambda: stream.read(_CHUNK), b""):
                    sink.append(chunk)
            except (OSError, ValueError) as exc:
                self._record(stage, exc)
            finally:
                stream.close()
        self._start(run, f"drain-{stage}")

    def feed(self, stage: int, stream: IO[bytes], data: bytes) -> None:
        def run():
            try:
                stream.write(data)
            except BrokenPipeError:
                # consumer exited without reading everything, as with a shell pipe
                logger.debug("stage %d closed its input early", stage)
            except (OSError, ValueError, TypeError) as exc:
                self._record(stage, exc)
            finally:
                try:
                    stream.close()
                except BrokenPipeError:
                    pass
        self._start(run, f"feed-{stage}")

    def _start(self, target, name: str) -> None:
        t = threading.Thread(target=target, name=f"sctool-pipeline-{name}", daemon=True)
        t.start()
        self._threads.append(t)

    def join(self) -> None:
        for t in self._threads:
            t.join()


def run_pipeline(stages: Sequence[ProcessSpec]) -> PipelineResult:
    """Run ``stages`` as a pipeline and return the final output, combined stderr and first error.

    Args:
        stages: ordered stage specifications; only the first may carry stdin

    Returns:
        PipelineResult; call ``check()`` to raise its error
    """
    if not stages:
        return PipelineResult()
    for i, spec in enumerate(stages[1:], start=1):
        if spec.stdin is not None:
            raise ValueError(f"stage {i} has external input; only the first stage may")

    logger.debug("pipeline: %s", " | ".join(str(s) for s in stages))

    last = len(stages) - 1
    stderr_sinks: List[List[bytes]] = [[] for _ in stages]
    output_sink: List[bytes] = []
    streams = _StreamIO()
    procs: List[subprocess.Popen] = []
    error: Optional[PipelineError] = None

    for i, spec in enumerate(stages):
        feed_data: Optional[bytes] = None
        if i == 0:
            stdin, feed_data = _stdin_source(spec.stdin)
        else:
            stdin = procs[i - 1].stdout
        env = {**os.environ, **spec.env} if spec.env else None
        try:
            proc = subprocess.Popen(
                spec.argv,
                stdin=stdin,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=str(spec.cwd) if spec.cwd else None,
                env=env,
            )
        except OSError as exc:
            error = StageStartError(i, spec.argv, exc)
            logger.error("%s", error)
            break
        if i > 0:
            # the consumer holds its own copy; closing ours lets EOF/SIGPIPE propagate
            procs[i - 1].stdout.close()
        procs.append(proc)
        streams.drain(i, proc.stderr, stderr_sinks[i])
        if feed_data is not None:
            streams.feed(i, proc.stdin, feed_data)

    if error is not None:
        # started stages have no downstream consumer left
        if procs and procs[-1].stdout is not None:
            procs[-1].stdout.close()
        for proc in procs:
            proc.terminate()
    else:
        streams.drain(last, procs[last].stdout, output_sink)

    for i, proc in enumerate(procs):
        rc = proc.wait()
        if rc != 0 and error is None:
            error = StageWaitError(i, stages[i].argv, rc)
            logger.error("%s", error)
    streams.join()

    if error is None and streams.failures:
        stage, exc = streams.failures[0]
        error = StageWaitError(stage, stages[stage].argv, None, detail=str(exc))
        logger.error("%s", error)

    result = PipelineResult(
        output=b"".join(output_sink),
        stderr=b"".join(b"".join(chunks) for chunks in stderr_sinks),
        error=error,
    )
    if error is not None:
        error.stderr = result.stderr_text
    logger.debug("pipeline finished ok=%s out=%dB err=%dB", result.ok, len(result.output), len(result.stderr))
    return result


def run_command(spec: ProcessSpec) -> PipelineResult:
    """Run a single external command with captured output."""
    return run_pipeline([spec])
