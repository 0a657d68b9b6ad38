"""
Ghostscript-backed PDF compression.

Streams a PDF buffer through `gs -sDEVICE=pdfwrite` reading from stdin and
writing to stdout, downsampling embedded images and re-encoding them as JPEG.
"""

import asyncio
import logging
from typing import List, Optional, Union

from .config import get_settings
from .errors import CompressionError

logger = logging.getLogger(__name__)

DEFAULT_DPI = 150
DEFAULT_JPEG_QUALITY = 95
MIN_DPI, MAX_DPI = 10, 600
MIN_QUALITY, MAX_QUALITY = 1, 100

PdfBytes = Union[bytes, bytearray, memoryview]


def clamp_dpi(dpi: float) -> int:
    """Round and clamp an image resolution to 10-600 DPI."""
    return max(MIN_DPI, min(MAX_DPI, round(dpi)))


def clamp_quality(quality: float) -> int:
    """Round and clamp a JPEG quality to 1-100."""
    return max(MIN_QUALITY, min(MAX_QUALITY, round(quality)))


def build_ghostscript_args(dpi: int, jpeg_quality: int) -> List[str]:
    """
    Build the Ghostscript argument list for a stdin-to-stdout compression.

    Args:
        dpi: Target resolution for color, gray and mono images (already clamped)
        jpeg_quality: JPEG re-encoding quality (already clamped)

    Returns:
        Arguments to pass after the Ghostscript executable
    """
    return [
        "-q",
        "-dSAFER",
        "-sDEVICE=pdfwrite",
        "-dDetectDuplicateImages=true",
        "-dCompatibilityLevel=1.4",
        "-dEmbedAllFonts=true",
        "-dSubsetFonts=true",
        "-dColorImageDownsampleType=/Bicubic",
        "-dGrayImageDownsampleType=/Bicubic",
        "-dMonoImageDownsampleType=/Bicubic",
        "-dDownsampleColorImages=true",
        "-dDownsampleGrayImages=true",
        "-dDownsampleMonoImages=true",
        f"-dColorImageResolution={dpi}",
        f"-dGrayImageResolution={dpi}",
        f"-dMonoImageResolution={dpi}",
        f"-dJPEGQuality={jpeg_quality}",
        "-dNOPAUSE",
        "-dBATCH",
        "-sOutputFile=-",
        "-",
    ]


async def _kill(process) -> None:
    """Kill and reap a Ghostscript process that is still running."""
    if process.returncode is None:
        process.kill()
    await process.wait()


async def compress_pdf_buffer(
    pdf_buffer: PdfBytes,
    dpi: Optional[float] = DEFAULT_DPI,
    jpeg_quality: Optional[float] = DEFAULT_JPEG_QUALITY,
    command: Optional[str] = None,
    timeout: Optional[float] = None,
) -> bytes:
    """
    Compress a PDF buffer with Ghostscript.

    Out-of-range dpi/quality values are clamped, None falls back to the
    defaults. One subprocess per call, no retry.

    Args:
        pdf_buffer: Input PDF bytes
        dpi: Image downsampling resolution (10-600, default 150)
        jpeg_quality: JPEG quality (1-100, default 95)
        command: Ghostscript executable (defaults to the configured one)
        timeout: Seconds before the subprocess is killed (defaults to the
            configured value; None waits indefinitely)

    Returns:
        The compressed PDF bytes

    Raises:
        CompressionError: Ghostscript could not be started, timed out or
            exited with a non-zero status
    """
    settings = get_settings()
    command = command or settings.ghostscript_command
    if timeout is None:
        timeout = settings.compression_timeout_seconds

    dpi = clamp_dpi(DEFAULT_DPI if dpi is None else dpi)
    jpeg_quality = clamp_quality(DEFAULT_JPEG_QUALITY if jpeg_quality is None else jpeg_quality)
    pdf_bytes = bytes(pdf_buffer)

    try:
        process = await asyncio.create_subprocess_exec(
            command,
            *build_ghostscript_args(dpi, jpeg_quality),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error(f"Ghostscript error: {e}")
        raise CompressionError(f"Failed to execute Ghostscript: {e}") from e

    try:
        # communicate() writes stdin, closes it and drains stdout/stderr concurrently
        stdout, stderr = await asyncio.wait_for(
            process.communicate(input=pdf_bytes), timeout=timeout
        )
    except asyncio.TimeoutError:
        await _kill(process)
        raise CompressionError(f"Ghostscript timed out after {timeout}s")
    except asyncio.CancelledError:
        await _kill(process)
        raise

    if stderr:
        logger.warning(f"Ghostscript stderr: {stderr.decode(errors='replace').strip()}")

    if process.returncode != 0:
        raise CompressionError(
            f"Ghostscript process exited with code {process.returncode}. "
            "Check the input PDF or Ghostscript configuration.",
            exit_code=process.returncode,
        )

    return stdout
