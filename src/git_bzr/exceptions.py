"""Exceptions raised by git-bzr.

Every failure the dispatcher reports to the user derives from `GitBzrError`.
The `exit_code` attribute is the process status used when the error reaches
the top of the command line.
"""


class GitBzrError(Exception):
    """Base exception for all git-bzr errors."""

    exit_code = 1


class NotARepositoryError(GitBzrError):
    """Raised when the current directory is not inside a git work tree."""


class PreconditionError(GitBzrError):
    """Raised when an operation's preconditions are not met."""


class InconsistentStateError(GitBzrError):
    """Raised when persisted state is corrupt (e.g. half a marks pair)."""


class ExternalToolError(GitBzrError):
    """Base exception for failures of external executables.

    Attributes:
        command (list[str]): The argument vector that was executed.
    """

    def __init__(self, message: str, command: list[str] | None = None):
        super().__init__(message)
        self.command = list(command or [])


class ToolNotFoundError(ExternalToolError):
    """Raised when an executable cannot be found on PATH."""

    def __init__(self, command: list[str]):
        super().__init__(f"Executable not found: {command[0]}", command)


class ToolFailedError(ExternalToolError):
    """Raised when an external process exits with a non-zero status.

    Attributes:
        returncode (int): The process exit status.
        stderr (str): Captured standard error, if any was captured.
    """

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(
            f"`{' '.join(command)}` failed with exit status {returncode}{detail}",
            command,
        )


class BrokenPipelineError(ExternalToolError):
    """Raised when a pipeline producer is cut off by its consumer closing early."""

    def __init__(self, command: list[str]):
        super().__init__(
            f"`{' '.join(command)}` lost its output stream (broken pipe)", command
        )


class ToolStartError(ExternalToolError):
    """Raised when an executable exists but the OS refuses to start it.

    Attributes:
        os_error (OSError): The error reported by the operating system.
    """

    def __init__(self, command: list[str], os_error: OSError):
        self.os_error = os_error
        reason = os_error.strerror or str(os_error)
        super().__init__(f"Cannot start {command[0]}: {reason}", command)


def spawn_error(command: list[str], error: OSError) -> ExternalToolError:
    """Classifies an OSError raised while starting `command`.

    The caller must have checked the working directory already, so a
    FileNotFoundError can only mean the executable is missing.
    """
    if isinstance(error, FileNotFoundError):
        return ToolNotFoundError(command)
    return ToolStartError(command, error)
