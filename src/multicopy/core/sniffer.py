# src/multicopy/core/sniffer.py

SNIFF_BYTES = 1024
CONTROL_RATIO = 0.2


def is_binary(data: bytes) -> bool:
    """
    Looks at the first 1024 bytes.
    Any NUL byte means binary; otherwise it is binary when more than 20% of the
    inspected bytes are control characters other than TAB, LF, VT, FF and CR.
    """
    chunk = data[:SNIFF_BYTES]
    if b"\0" in chunk:
        return True

    controls = sum(1 for b in chunk if b < 9 or 13 < b < 32)
    return controls > len(chunk) * CONTROL_RATIO
