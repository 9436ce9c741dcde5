"""Decoding of /api/generate stream lines."""

import json
import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from .errors import DecodeError
from .models import StreamRecord

logger = logging.getLogger(__name__)


class StreamDecoder:
    """
    Parses NDJSON lines into StreamRecords.

    decode() is strict and raises DecodeError. feed() is the per-line
    boundary used while streaming: a bad line is logged and skipped, and
    anything after the terminal record is ignored.
    """

    def __init__(self):
        self.finished = False
        self.errors: List[DecodeError] = []

    def decode(self, line: str) -> StreamRecord:
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise DecodeError(line, str(e)) from e

        if not isinstance(data, dict):
            raise DecodeError(line, f"expected a JSON object, got {type(data).__name__}")

        try:
            return StreamRecord.model_validate(data)
        except PydanticValidationError as e:
            raise DecodeError(line, str(e)) from e

    def feed(self, line: str) -> Optional[StreamRecord]:
        if self.finished:
            logger.debug(f"Ignoring line after terminal record: {line[:100]}")
            return None

        try:
            record = self.decode(line)
        except DecodeError as e:
            logger.warning(f"Error parsing JSON from stream: {line[:100]} ({e.details[:100]})")
            self.errors.append(e)
            return None

        if record.done:
            self.finished = True
        return record
