import logging
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .constants import APP_NAME
from .exceptions import (
    BrokenPipelineError,
    ExternalToolError,
    PreconditionError,
    ToolFailedError,
    spawn_error,
)

logger = logging.getLogger(APP_NAME)


@dataclass
class Stage:
    """One process of a pipeline.

    Attributes:
        cmd (list[str]): The argument vector.
        cwd (Path): The working directory the process runs in.
    """

    cmd: list[str]
    cwd: Path


def _spawn(stage: Stage, **kwargs) -> subprocess.Popen:
    logger.debug(f"Starting: {' '.join(stage.cmd)} (in {stage.cwd})")
    try:
        return subprocess.Popen(stage.cmd, cwd=stage.cwd, **kwargs)
    except OSError as e:
        raise spawn_error(stage.cmd, e) from e


def run_pipeline(producer: Stage, consumer: Stage) -> None:
    """Streams the stdout of `producer` into the stdin of `consumer`.

    Both processes inherit stderr so their progress and diagnostics reach the
    terminal. The exit status of each side is checked on its own.

    Args:
        producer (Stage): The exporting process.
        consumer (Stage): The importing process.

    Raises:
        PreconditionError: If a stage's working directory does not exist.
        ToolNotFoundError: If either executable cannot be found.
        ToolStartError: If the OS refuses to start either executable.
        ToolFailedError: If the consumer fails, or the producer fails on its own.
        BrokenPipelineError: If the consumer exited cleanly but closed the
            stream before the producer finished writing.
    """
    for stage in (producer, consumer):
        if not stage.cwd.is_dir():
            raise PreconditionError(
                f"Directory {stage.cwd} does not exist (needed by {stage.cmd[0]})"
            )

    source = _spawn(producer, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE)
    try:
        sink = _spawn(consumer, stdin=source.stdout)
    except ExternalToolError:
        source.kill()
        source.wait()
        raise
    finally:
        # Only the consumer may hold the read end, so the producer sees
        # SIGPIPE if the consumer goes away.
        if source.stdout is not None:
            source.stdout.close()

    sink_status = sink.wait()
    source_status = source.wait()
    logger.debug(
        f"Pipeline finished: {producer.cmd[0]}={source_status}, "
        f"{consumer.cmd[0]}={sink_status}"
    )

    if sink_status != 0:
        raise ToolFailedError(consumer.cmd, sink_status)
    if source_status == -signal.SIGPIPE:
        raise BrokenPipelineError(producer.cmd)
    if source_status != 0:
        raise ToolFailedError(producer.cmd, source_status)
