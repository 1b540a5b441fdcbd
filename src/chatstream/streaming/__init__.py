from .decoder import DONE_SENTINEL, FrameDecoder, decode_frames, normalize_content
from .models import ChatCompletionChunk, ChunkChoice, DeltaRecord

__all__ = [
    "DONE_SENTINEL",
    "ChatCompletionChunk",
    "ChunkChoice",
    "DeltaRecord",
    "FrameDecoder",
    "decode_frames",
    "normalize_content",
]
