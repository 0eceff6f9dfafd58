from .chunk_decoder import (
    Base64ChunkDecoder as Base64ChunkDecoder,
    ChunkDecoder as ChunkDecoder,
    JSONChunkDecoder as JSONChunkDecoder,
    RawChunkDecoder as RawChunkDecoder,
    get_decoder as get_decoder,
)
