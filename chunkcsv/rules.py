"""
Fixed grammar and I/O constants.

Only these characters take part in the CSV grammar. Everything else is field data.
"""

CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB read window
SNIFF_BYTES = 64 * 1024

COMMA = ","
DQ = '"'
CR = "\r"
LF = "\n"
TAB = "\t"

UTF8_BOM = b"\xef\xbb\xbf"
BOM = "\ufeff"

DEL = 0x7F
C0_MAX = 0x1F


def is_control(ch: str) -> bool:
    code = ord(ch)
    return code <= C0_MAX or code == DEL
