# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

import logging
from mmap import mmap, ACCESS_READ
from os import fstat
from typing import TYPE_CHECKING

from .common import OutOfBoundsError, _raise_if_closed
from .util import readle

if TYPE_CHECKING:
    from typing import BinaryIO, Optional, Union

__all__ = ['ImageView']

logger = logging.getLogger(__name__)


class ImageView:
    """
    Read-only, bounds-checked view of a ROM image.

    Every read is checked against the image length and raises OutOfBoundsError instead of returning short data.
    Reads slice the underlying buffer directly and keep no seek position, so a view can be shared by any number of
    threads.
    """

    closed = False

    def __init__(self, data: 'Union[bytes, mmap]', fp: 'Optional[BinaryIO]' = None):
        self._data = data
        self._fp = fp
        self.size = len(data)
        # used for the timestamps of every entry
        self.stat = fstat(fp.fileno()) if fp is not None else None

    def __repr__(self):
        return f'{type(self).__name__}(size={self.size:#x})'

    def __len__(self) -> int:
        return self.size

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @classmethod
    def from_file(cls, fp: 'BinaryIO') -> 'ImageView':
        """Map an open file. The view takes ownership of fp and closes it in close()."""
        size = fstat(fp.fileno()).st_size
        if size == 0:
            # mmap refuses empty files; every read will fail the bounds check anyway
            logger.debug('image is empty, not mapping')
            return cls(b'', fp)
        return cls(mmap(fp.fileno(), 0, access=ACCESS_READ), fp)

    @classmethod
    def from_path(cls, path: str) -> 'ImageView':
        fp = open(path, 'rb')
        try:
            return cls.from_file(fp)
        except BaseException:
            fp.close()
            raise

    def close(self):
        if self.closed:
            return
        self.closed = True
        if isinstance(self._data, mmap):
            self._data.close()
        self._data = b''
        if self._fp is not None:
            self._fp.close()
            self._fp = None

    def check(self, offset: int, size: int):
        """Raise OutOfBoundsError if [offset, offset + size) is not fully inside the image."""
        if offset < 0 or size < 0 or offset + size > self.size:
            raise OutOfBoundsError(offset, size, self.size)

    @_raise_if_closed
    def read(self, offset: int, size: int) -> bytes:
        self.check(offset, size)
        return self._data[offset:offset + size]

    @_raise_if_closed
    def read_u8(self, offset: int) -> int:
        self.check(offset, 1)
        return self._data[offset]

    def read_u16(self, offset: int) -> int:
        return readle(self.read(offset, 2))

    def read_u32(self, offset: int) -> int:
        return readle(self.read(offset, 4))
