"""Run an external tool while capping how much of its stdout is kept."""

import subprocess
import tempfile
from dataclasses import dataclass

_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class BoundedOutput:
    """Exit status and captured streams of a bounded subprocess run."""

    returncode: int
    stdout: bytes
    stderr: bytes
    exceeded: bool = False


def run_bounded(command: list[str], max_bytes: int, chunk_size: int = _CHUNK_SIZE) -> BoundedOutput:
    """
    Run ``command`` and read at most ``max_bytes + 1`` bytes of its stdout.

    The child is killed as soon as its output crosses ``max_bytes``, so memory
    use stays bounded regardless of how much the tool would write. Stderr goes
    to a temporary file so a chatty tool cannot block on a full pipe.

    Args:
        command: Executable and arguments
        max_bytes: Largest stdout accepted
        chunk_size: Read size per iteration

    Returns:
        BoundedOutput; ``exceeded`` is True when the child was killed

    Raises:
        OSError: If the executable cannot be started
    """
    chunks: list[bytes] = []
    total = 0
    exceeded = False

    with tempfile.TemporaryFile() as stderr_file:
        process = subprocess.Popen(command, stdout=subprocess.PIPE, stderr=stderr_file)
        try:
            while True:
                chunk = process.stdout.read(min(chunk_size, max_bytes + 1 - total))
                if not chunk:
                    break
                chunks.append(chunk)
                total += len(chunk)
                if total > max_bytes:
                    exceeded = True
                    process.kill()
                    break
        except BaseException:
            process.kill()
            raise
        finally:
            process.stdout.close()
            returncode = process.wait()

        stderr_file.seek(0)
        stderr = stderr_file.read()

    return BoundedOutput(
        returncode=returncode,
        stdout=b"".join(chunks),
        stderr=stderr,
        exceeded=exceeded,
    )
