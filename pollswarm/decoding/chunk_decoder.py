import base64
import binascii
from typing import Any, Dict, Protocol

import orjson

from pollswarm.env import ChunkFormat
from pollswarm.errors import DecodeError


class ChunkDecoder(Protocol):
    def decode(self, chunk: bytes) -> Any:
        ...


class RawChunkDecoder:
    def decode(self, chunk: bytes) -> str:
        if len(chunk.strip()) == 0:
            raise DecodeError("Err. - empty chunk")

        try:
            return chunk.decode()

        except UnicodeDecodeError as err:
            raise DecodeError(f"Err. - chunk is not valid UTF-8: {err}") from err


class JSONChunkDecoder:
    def decode(self, chunk: bytes) -> Any:
        try:
            return orjson.loads(chunk)

        except orjson.JSONDecodeError as err:
            raise DecodeError(f"Err. - chunk is not valid JSON: {err}") from err


class Base64ChunkDecoder:
    def decode(self, chunk: bytes) -> bytes:
        if len(chunk.strip()) == 0:
            raise DecodeError("Err. - empty chunk")

        try:
            return base64.b64decode(chunk, validate=True)

        except (binascii.Error, ValueError) as err:
            raise DecodeError(f"Err. - chunk is not valid base64: {err}") from err


DECODERS: Dict[ChunkFormat, type[ChunkDecoder]] = {
    "raw": RawChunkDecoder,
    "json": JSONChunkDecoder,
    "base64": Base64ChunkDecoder,
}


def get_decoder(chunk_format: ChunkFormat) -> ChunkDecoder:
    decoder_type = DECODERS.get(chunk_format)
    if decoder_type is None:
        raise ValueError(
            f"Err. - unknown chunk format {chunk_format!r}, expected one of {', '.join(DECODERS)}"
        )

    return decoder_type()
