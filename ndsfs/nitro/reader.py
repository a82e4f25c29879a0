# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

import logging
import os
from stat import S_IFDIR, S_IFREG
from typing import TYPE_CHECKING

from .common import (InvalidArgumentError, NitroFileNotFoundError, NitroIsADirectoryError, NitroNotADirectoryError,
                     NitroPermissionError, ReadOnlyFilesystemError, _raise_if_closed)
from .image import ImageView
from .tables import NitroHeader, TableDecoder
from .tree import NAME_ENCODING, build_tree
from .util import blocks

if TYPE_CHECKING:
    from typing import BinaryIO, Dict, Iterator, Tuple
    from .tree import Entry

__all__ = ['BLOCK_SIZE', 'DIR_MODE', 'FILE_MODE', 'NitroFSReader']

logger = logging.getLogger(__name__)

BLOCK_SIZE = 4096

# dr-xr-xr-x
DIR_MODE = S_IFDIR | 0o555
# -r--r--r--
FILE_MODE = S_IFREG | 0o444

# O_ACCMODE does not exist on Windows
O_ACCMODE = getattr(os, 'O_ACCMODE', os.O_RDONLY | os.O_WRONLY | os.O_RDWR)


class NitroFSReader:
    """
    Reads the NitroFS contents of a Nintendo DS ROM image.

    The tree is built once when the reader is created and never changes, so every method other than close is safe to
    call from multiple threads at once. Handles returned by open and opendir are entry slots in the tree; no per-open
    state is kept.

    Per-call failures raise a subclass of NitroOSError with the matching errno. Load failures raise ImageError and
    leave nothing open.
    """

    closed = False

    def __init__(self, image: ImageView, g_stat: 'Dict[str, int]' = None):
        self.image = image
        try:
            self.header = NitroHeader.load(image)
            logger.debug('header: %r', self.header)
            self._decoder = TableDecoder(image, self.header)
            self.tree = build_tree(self._decoder)
        except BaseException:
            image.close()
            raise

        if g_stat is None:
            if image.stat is not None:
                g_stat = {'st_ctime': int(image.stat.st_ctime), 'st_mtime': int(image.stat.st_mtime),
                          'st_atime': int(image.stat.st_atime)}
            else:
                g_stat = {'st_ctime': 0, 'st_mtime': 0, 'st_atime': 0}
        self.g_stat = g_stat

    def __repr__(self):
        return f'{type(self).__name__}(image={self.image!r}, entries={len(self.tree)})'

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @classmethod
    def load(cls, fp: 'BinaryIO', g_stat: 'Dict[str, int]' = None) -> 'NitroFSReader':
        """Load from an open file. The reader takes ownership of fp."""
        try:
            image = ImageView.from_file(fp)
        except BaseException:
            fp.close()
            raise
        return cls(image, g_stat)

    @classmethod
    def from_file(cls, fn: str, g_stat: 'Dict[str, int]' = None) -> 'NitroFSReader':
        return cls(ImageView.from_path(fn), g_stat)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.tree = None
        self.image.close()

    __del__ = close

    @property
    def total_size(self) -> int:
        return self.image.size

    def get_entry(self, path: str) -> 'Entry':
        entry = self.tree.resolve(path)
        if entry is None:
            raise NitroFileNotFoundError(path)
        return entry

    def _entry_from_handle(self, handle: int) -> 'Entry':
        if not isinstance(handle, int) or not 0 <= handle < len(self.tree):
            raise InvalidArgumentError(handle, f'invalid handle {handle!r}')
        return self.tree[handle]

    def stat_entry(self, entry: 'Entry') -> 'Dict[str, int]':
        parent = self.tree.parent_of(entry)
        st = {'st_ino': (parent.id << 8) | entry.id,
              'st_mode': DIR_MODE if entry.is_dir else FILE_MODE,
              'st_nlink': entry.link_count,
              'st_size': entry.size,
              'st_blksize': BLOCK_SIZE,
              'st_blocks': blocks(entry.size, BLOCK_SIZE)}
        return {**st, **self.g_stat}

    @_raise_if_closed
    def stat(self, path: str) -> 'Dict[str, int]':
        return self.stat_entry(self.get_entry(path))

    @_raise_if_closed
    def readdir(self, path: str, cursor: int = 0) -> 'Iterator[Tuple[str, Dict[str, int], int]]':
        """
        List a directory starting at cursor.

        Yields (name, attributes, next cursor). Cursor 0 is ".", 1 is "..", and n >= 2 is child n - 2. The caller may
        stop at any point and call again with the last cursor it received to continue from there.
        """
        if cursor < 0:
            raise InvalidArgumentError(path, f'negative cursor {cursor}')
        entry = self.get_entry(path)
        if not entry.is_dir:
            raise NitroNotADirectoryError(path)
        return self._iter_dir(entry, cursor)

    def _iter_dir(self, entry: 'Entry', cursor: int) -> 'Iterator[Tuple[str, Dict[str, int], int]]':
        if cursor == 0:
            cursor += 1
            yield '.', self.stat_entry(entry), cursor
        if cursor == 1:
            cursor += 1
            yield '..', self.stat_entry(self.tree.parent_of(entry)), cursor
        for slot in entry.children[cursor - 2:]:
            child = self.tree[slot]
            cursor += 1
            yield child.name.decode(NAME_ENCODING), self.stat_entry(child), cursor

    @_raise_if_closed
    def opendir(self, path: str) -> int:
        entry = self.get_entry(path)
        if not entry.is_dir:
            raise NitroNotADirectoryError(path)
        return entry.slot

    @_raise_if_closed
    def open(self, path: str, flags: int = os.O_RDONLY) -> int:
        entry = self.tree.resolve(path)
        if entry is None:
            if flags & os.O_CREAT:
                raise ReadOnlyFilesystemError(path)
            raise NitroFileNotFoundError(path)
        if (flags & O_ACCMODE) in {os.O_WRONLY, os.O_RDWR}:
            raise NitroPermissionError(path)
        return entry.slot

    @_raise_if_closed
    def read(self, handle: int, size: int, offset: int) -> bytes:
        entry = self._entry_from_handle(handle)
        if entry.is_dir:
            raise NitroIsADirectoryError(self.tree.path_of(entry))
        if offset < 0 or size < 0:
            raise InvalidArgumentError(self.tree.path_of(entry), f'invalid read of {size} bytes at {offset}')
        if offset >= entry.size:
            return b''
        if offset + size > entry.size:
            size = entry.size - offset
        fat_entry = self._decoder.read_fat(entry.id)
        return self.image.read(fat_entry.start_offset + offset, size)

    @_raise_if_closed
    def statfs(self) -> 'Dict[str, int]':
        return {'f_bsize': BLOCK_SIZE, 'f_frsize': BLOCK_SIZE, 'f_blocks': blocks(self.image.size, BLOCK_SIZE),
                'f_bavail': 0, 'f_bfree': 0, 'f_files': len(self.tree)}
