from pgf_runtime.core.codec.primitives import PROFILE_1_0, PROFILE_2_1, ByteCursor, FormatProfile
from pgf_runtime.core.codec.reader import BlockDiagnostic, DecodeResult, decode

__all__ = [
    "PROFILE_1_0",
    "PROFILE_2_1",
    "BlockDiagnostic",
    "ByteCursor",
    "DecodeResult",
    "FormatProfile",
    "decode",
]
