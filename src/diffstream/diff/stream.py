"""Run the diff parser concurrently with whatever produces the stream."""

from __future__ import annotations

import io
import logging
import threading
from concurrent.futures import Future
from typing import BinaryIO, Optional, Union

from diffstream.config.schema import ParseLimits
from diffstream.diff.models import Diff
from diffstream.diff.parser import DiffParser


def stream_parse_diff(
    stream: BinaryIO,
    limits: Optional[ParseLimits] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> "Future[Diff]":
    """Parse *stream* on a worker thread.

    Returns a future that completes exactly once, with the Diff or with
    the error that stopped the parse. Start this before the producer
    begins writing into a pipe so the two sides cannot deadlock on the
    pipe buffer. Closing *stream* from another thread aborts the parse
    with a DiffReadError.
    """
    future: "Future[Diff]" = Future()
    parser = DiffParser(stream, limits, logger=logger)

    def _run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            diff = parser.parse()
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(diff)

    threading.Thread(target=_run, name="diffstream-parser", daemon=True).start()
    return future


def parse_diff(
    data: Union[bytes, str, BinaryIO],
    limits: Optional[ParseLimits] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> Diff:
    """Parse a complete diff given as bytes, text, or a binary stream."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    if isinstance(data, bytes):
        data = io.BytesIO(data)
    return DiffParser(data, limits, logger=logger).parse()
