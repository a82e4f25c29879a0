# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

__all__ = ['readle', 'blocks']


def readle(b: bytes) -> int:
    """Return little-endian bytes to an int."""
    return int.from_bytes(b, 'little')


def blocks(size: int, block_size: int) -> int:
    """Round up size to a count of block_size blocks."""
    return (size + block_size - 1) // block_size
