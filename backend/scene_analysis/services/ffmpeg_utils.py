import os
import re
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence, Union

_FFMPEG_NAMES = {"ffmpeg", "ffmpeg.exe"}

# Banner/info lines that precede the real failure reason in ffmpeg stderr.
_NOISE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^ffmpeg version\b",
        r"^ffprobe version\b",
        r"^built with\b",
        r"^configuration:",
        r"^(libav(util|codec|format|device|filter)|libswscale|libswresample|libpostproc)\b",
        r"^Input #\d+",
        r"^Output #\d+",
        r"^Stream mapping:",
        r"^Press \[q\] to stop",
    )
]


@dataclass
class FFmpegError(Exception):
    """
    Typed ffmpeg/ffprobe failure.
    - message: sanitized/shortened text safe for logs and error payloads
    - stderr: full stderr for debugging
    - cmd: the command executed
    """
    message: str
    stderr: str = ""
    stdout: str = ""
    returncode: Optional[int] = None
    cmd: Optional[list[str]] = None
    timed_out: bool = False

    def __str__(self) -> str:
        return self.message


def _as_text(data: Union[str, bytes, None]) -> str:
    if not data:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def sanitize_ffmpeg_stderr(stderr: str, max_lines: int = 25, max_chars: int = 4000) -> str:
    """
    Keep the error understandable but short: the last N meaningful lines,
    with banners dropped and long lines trimmed.
    """
    if not stderr:
        return "FFmpeg failed (no stderr)"

    s = stderr.replace("\r\n", "\n").replace("\r", "\n")
    lines = [ln.strip() for ln in s.split("\n") if ln.strip()]
    tail = lines[-max_lines:]

    cleaned: list[str] = []
    for ln in tail:
        if any(p.match(ln) for p in _NOISE_PATTERNS):
            continue
        if len(ln) > 500:
            ln = ln[:500] + "…"
        cleaned.append(ln)

    out = "\n".join(cleaned).strip()
    if not out:
        out = "FFmpeg failed (no useful stderr)"
    if len(out) > max_chars:
        out = out[-max_chars:]
    return out


def prepare_ffmpeg_cmd(cmd: Sequence[str], *, binary: str = "ffmpeg", threads: int = 0) -> list[str]:
    """
    Normalize an ffmpeg command line.

    Accepts either a full command (["ffmpeg", ...]) or args only (["-i", ...]),
    in which case `binary` is prepended. Injects -nostdin (prevents background
    hangs) and, when threads > 0, -threads N right after it.
    """
    cmd_list = [str(c) for c in cmd]
    if not cmd_list:
        raise ValueError("Empty ffmpeg command")

    if os.path.basename(cmd_list[0]).lower() not in _FFMPEG_NAMES and cmd_list[0] != binary:
        cmd_list.insert(0, binary)

    if "-nostdin" not in cmd_list:
        cmd_list.insert(1, "-nostdin")

    if threads > 0 and "-threads" not in cmd_list:
        idx = cmd_list.index("-nostdin") + 1
        cmd_list[idx:idx] = ["-threads", str(threads)]
    return cmd_list


def _run(cmd_list: list[str], *, tool: str, timeout: Optional[float], text: bool) -> subprocess.CompletedProcess:
    try:
        # Tags and corrupt streams can put arbitrary bytes on stderr.
        return subprocess.run(
            cmd_list,
            capture_output=True,
            text=text,
            encoding="utf-8" if text else None,
            errors="replace" if text else None,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise FFmpegError(
            message=f"{tool} timed out after {timeout}s",
            stderr=_as_text(getattr(e, "stderr", "")),
            cmd=cmd_list,
            timed_out=True,
        )
    except OSError as e:
        # Missing binary, permission denied, ...
        raise FFmpegError(
            message=f"{tool} could not be started: {e}",
            cmd=cmd_list,
        )


def run_ffmpeg_capture(
    cmd: Sequence[str],
    *,
    check: bool = True,
    timeout: Optional[float] = None,
    text: bool = True,
    binary: str = "ffmpeg",
    threads: int = 0,
) -> subprocess.CompletedProcess:
    """
    Run ffmpeg with robust defaults:
    - inject -nostdin (and -threads when configured)
    - capture output for diagnostics
    - optionally raise FFmpegError with sanitized stderr
    """
    cmd_list = prepare_ffmpeg_cmd(cmd, binary=binary, threads=threads)
    proc = _run(cmd_list, tool="FFmpeg", timeout=timeout, text=text)

    if check and proc.returncode != 0:
        stderr = _as_text(proc.stderr)
        rc = proc.returncode

        # ffmpeg killed by the OOM killer exits 137 (or -9) with no stderr.
        if not stderr:
            extra = "Likely out of memory." if rc in (137, -9) else "No stderr captured."
            msg = f"FFmpeg failed (exit {rc}). {extra}"
        else:
            msg = f"FFmpeg failed (exit {rc}):\n{sanitize_ffmpeg_stderr(stderr)}"

        raise FFmpegError(
            message=msg,
            stderr=stderr,
            stdout=_as_text(proc.stdout) if text else "",
            returncode=rc,
            cmd=cmd_list,
        )

    return proc


def run_ffprobe_capture(
    cmd: Sequence[str],
    *,
    check: bool = True,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """
    Run ffprobe, capturing output; optionally raise FFmpegError with sanitized stderr.
    """
    cmd_list = [str(c) for c in cmd]
    if not cmd_list:
        raise ValueError("Empty ffprobe command")

    proc = _run(cmd_list, tool="FFprobe", timeout=timeout, text=True)

    if check and proc.returncode != 0:
        raise FFmpegError(
            message=f"FFprobe failed (exit {proc.returncode}):\n{sanitize_ffmpeg_stderr(proc.stderr or '')}",
            stderr=proc.stderr or "",
            stdout=proc.stdout or "",
            returncode=proc.returncode,
            cmd=cmd_list,
        )

    return proc
